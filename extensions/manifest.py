"""Extension manifest store.

Persists installed extension records, per kind, in ``extensions.yaml``
under the framework home directory.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from pathlib import Path
from typing import Any, Protocol

import yaml

from extensions.records import ExtensionKind, ExtensionRegistry, RawRecord

logger = logging.getLogger(__name__)

MANIFEST_BASENAME = "extensions.yaml"

# Bump when the on-disk layout changes
CURRENT_SCHEMA_REV = 1


class ManifestError(Exception):
    """Raised when manifest parsing or validation fails."""

    pass


class ManifestStore(Protocol):
    """What an extension config needs from a manifest store."""

    @property
    def manifest_path(self) -> Path: ...

    @property
    def home(self) -> Path: ...

    def get_extension_data(self, kind: ExtensionKind) -> ExtensionRegistry: ...

    async def add_extension(
        self, kind: ExtensionKind, name: str, data: RawRecord
    ) -> bool: ...

    async def write(self) -> Any: ...


def _empty_data() -> dict[str, Any]:
    data: dict[str, Any] = {kind.config_key: {} for kind in ExtensionKind}
    data["schema_rev"] = CURRENT_SCHEMA_REV
    return data


class Manifest:
    """YAML-backed manifest of installed extensions.

    The registries returned by :meth:`get_extension_data` are live: changes
    made to them are persisted by the next :meth:`write`.

    Example:
        >>> manifest = Manifest(Path.home() / ".extman")
        >>> await manifest.read()
        >>> drivers = manifest.get_extension_data(ExtensionKind.DRIVER)
    """

    def __init__(self, home: Path | str, basename: str = MANIFEST_BASENAME):
        """Initialize the manifest.

        Args:
            home: Framework home directory.
            basename: Manifest file name inside the home.
        """
        self._home = Path(home).expanduser().resolve()
        self._manifest_path = self._home / basename
        self._data: dict[str, Any] = _empty_data()
        self._written: str | None = None

    @property
    def home(self) -> Path:
        return self._home

    @property
    def manifest_path(self) -> Path:
        return self._manifest_path

    @property
    def schema_rev(self) -> int:
        return int(self._data.get("schema_rev", CURRENT_SCHEMA_REV))

    async def read(self) -> dict[str, Any]:
        """Load the manifest from disk.

        A missing file yields an empty manifest.

        Returns:
            The manifest data.

        Raises:
            ManifestError: If the file is not a valid YAML mapping.
        """
        data = await asyncio.to_thread(self._read_sync)

        # Keep registry dicts identical so existing references stay live
        for kind in ExtensionKind:
            registry = self._data[kind.config_key]
            registry.clear()
            registry.update(data.get(kind.config_key) or {})
        self._data["schema_rev"] = data.get("schema_rev", CURRENT_SCHEMA_REV)

        logger.debug("Read manifest %s", self._manifest_path)
        return self._data

    def _read_sync(self) -> dict[str, Any]:
        if not self._manifest_path.exists():
            logger.debug("No manifest at %s; starting empty", self._manifest_path)
            return _empty_data()

        try:
            with open(self._manifest_path, "r", encoding="utf-8") as f:
                text = f.read()
            data = yaml.safe_load(text)
        except UnicodeDecodeError as e:
            raise ManifestError(f"Manifest is not valid UTF-8: {self._manifest_path}: {e}")
        except yaml.YAMLError as e:
            raise ManifestError(f"Invalid YAML in {self._manifest_path}: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ManifestError(f"Manifest must be a YAML mapping: {self._manifest_path}")

        for kind in ExtensionKind:
            section = data.get(kind.config_key)
            if section is not None and not isinstance(section, dict):
                raise ManifestError(
                    f"Section '{kind.config_key}' must be a mapping: {self._manifest_path}"
                )

        self._written = text
        return data

    def get_extension_data(self, kind: ExtensionKind) -> ExtensionRegistry:
        """Get the live registry for an extension kind."""
        return self._data[ExtensionKind(kind).config_key]

    def has_extension(self, kind: ExtensionKind, name: str) -> bool:
        return name in self.get_extension_data(kind)

    async def add_extension(
        self, kind: ExtensionKind, name: str, data: RawRecord
    ) -> bool:
        """Store an extension record and persist the manifest.

        Args:
            kind: Extension kind.
            name: Extension name (unique per kind).
            data: Extension record.

        Returns:
            True if the manifest file changed.
        """
        self.get_extension_data(kind)[name] = copy.deepcopy(dict(data))
        return await self.write()

    async def write(self) -> bool:
        """Persist the manifest to disk.

        Returns:
            True if the file changed, False if it already had this content.
        """
        text = yaml.safe_dump(
            self._data,
            default_flow_style=False,
            sort_keys=False,
        )
        if text == self._written and self._manifest_path.exists():
            return False

        await asyncio.to_thread(self._write_sync, text)
        self._written = text
        logger.info("Wrote manifest %s", self._manifest_path)
        return True

    def _write_sync(self, text: str) -> None:
        self._manifest_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._manifest_path, "w", encoding="utf-8") as f:
            f.write(text)

    def __repr__(self) -> str:
        return f"Manifest(manifest_path={str(self._manifest_path)!r})"
