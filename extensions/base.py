"""Base class for extension configs.

An extension config owns the installed records of one extension kind:
it validates them, writes changes through to the manifest, and locates
and loads the code of installed extensions.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from extensions.loader import (
    ExtensionLoadError,
    ModuleLoader,
    ResolutionError,
    package_dir_name,
)
from extensions.manifest import ManifestStore
from extensions.records import (
    ExtensionKind,
    ExtensionRecord,
    ExtensionRegistry,
    Problem,
    RawRecord,
)
from extensions.schema import SchemaRegistrar
from extensions.schema import registrar as default_registrar
from extensions.validation import (
    format_value,
    get_generic_problems,
    get_schema_problems,
    parse_record,
    read_extension_schema,
)

logger = logging.getLogger(__name__)

ExtensionLogFn = Callable[..., None]


class ExtensionNotInstalledError(ResolutionError):
    """Raised when an extension name is not in the registry."""

    def __init__(self, kind: ExtensionKind, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind.value.capitalize()} '{name}' is not installed")


class InvalidExtensionError(ResolutionError):
    """Raised when an installed record is malformed."""

    def __init__(self, kind: ExtensionKind, name: str, problems: list[Problem]):
        self.kind = kind
        self.name = name
        self.problems = problems
        details = "; ".join(p.message for p in problems)
        super().__init__(f"{kind.value.capitalize()} '{name}' is invalid: {details}")


def _plain(data: Mapping[str, Any]) -> RawRecord:
    """Copy a record into manifest-serializable form."""
    return {key: value.value if isinstance(value, Enum) else value for key, value in data.items()}


class ExtensionConfig(ABC):
    """Installed extensions of one kind.

    Subclasses fix the kind, describe installed extensions, and may add
    kind-specific validation by overriding :meth:`get_config_problems`.

    Attributes:
        kind: Extension kind handled by this config.
        config_key: Manifest section name (e.g. ``drivers``).
        installed_extensions: Live registry of name -> raw record.
        log: Operator-facing log function for validation reports.
        manifest: Manifest store the registry is persisted to.
    """

    def __init__(
        self,
        kind: ExtensionKind,
        manifest: ManifestStore,
        log_fn: ExtensionLogFn | None = None,
        *,
        registrar: SchemaRegistrar | None = None,
        loader: ModuleLoader | None = None,
    ):
        """Initialize the config.

        Args:
            kind: Extension kind.
            manifest: Manifest store holding the installed records.
            log_fn: Where validation reports go (default: ``logger.error``).
            registrar: Schema registrar (default: the shared registrar).
            loader: Module loader (default: no forced reloads).
        """
        self.kind = ExtensionKind(kind)
        self.config_key = self.kind.config_key
        self.manifest = manifest
        self.installed_extensions: ExtensionRegistry = manifest.get_extension_data(self.kind)
        self.log: ExtensionLogFn = log_fn if callable(log_fn) else logger.error
        self.registrar = registrar if registrar is not None else default_registrar
        self.loader = loader if loader is not None else ModuleLoader()

    @property
    def manifest_path(self) -> Path:
        return Path(self.manifest.manifest_path)

    @property
    def home(self) -> Path:
        return Path(self.manifest.home)

    # ----- Validation -----

    def validate(self, records: ExtensionRegistry) -> ExtensionRegistry:
        """Check records for problems and drop the invalid ones.

        Problems are reported through :attr:`log`, never raised.

        Args:
            records: Registry to check; modified in place.

        Returns:
            The same registry, without the invalid records.
        """
        found_problems: dict[str, list[Problem]] = {}
        for name, raw in list(records.items()):
            found_problems[name] = [
                *self.get_generic_config_problems(raw, name),
                *self.get_config_problems(raw, name),
                *self.get_schema_problems(raw, name),
            ]

        # Cross-record checks only see records that passed their own checks
        passing = {name: records[name] for name, problems in found_problems.items() if not problems}
        for name, problems in self.get_registry_problems(passing).items():
            found_problems[name].extend(problems)

        summaries = []
        for name, problems in found_problems.items():
            if not problems:
                continue
            del records[name]
            summaries.append(
                f"{self.kind.value} {name} had errors and will not be available. Errors:"
            )
            for problem in problems:
                summaries.append(
                    f"  - {problem.message} (Actual value: {format_value(problem.value)})"
                )

        if summaries:
            self.log(
                "Encountered one or more errors while validating "
                f"the {self.config_key} extension file ({self.manifest_path}):"
            )
            for summary in summaries:
                self.log(summary)

        return records

    def get_generic_config_problems(self, raw: RawRecord, name: str) -> list[Problem]:
        return get_generic_problems(raw)

    def get_config_problems(self, raw: RawRecord, name: str) -> list[Problem]:
        """Kind-specific checks. Override when the kind needs any."""
        return []

    def get_registry_problems(self, records: ExtensionRegistry) -> dict[str, list[Problem]]:
        """Checks across otherwise valid records, as name -> problems.

        Override when extensions of a kind must not conflict with each other.
        """
        return {}

    def get_schema_problems(self, raw: RawRecord, name: str) -> list[Problem]:
        return get_schema_problems(
            self.home, self.kind, name, raw, self.registrar, self.loader
        )

    def read_extension_schema(self, name: str, raw: RawRecord) -> Any:
        """Load an extension's schema and register it."""
        return read_extension_schema(
            self.home, self.kind, name, raw, self.registrar, self.loader
        )

    # ----- Lifecycle -----

    async def add_extension(
        self, name: str, record: ExtensionRecord | Mapping[str, Any]
    ) -> bool:
        """Persist a newly installed extension.

        Returns:
            True if the manifest changed.
        """
        data = record.to_dict() if isinstance(record, ExtensionRecord) else _plain(record)
        return await self.manifest.add_extension(self.kind, name, data)

    async def update_extension(self, name: str, data: Mapping[str, Any]) -> None:
        """Shallow-merge new fields over an installed record and persist.

        Raises:
            ExtensionNotInstalledError: If the extension is not installed.
        """
        if name not in self.installed_extensions:
            raise ExtensionNotInstalledError(self.kind, name)
        self.installed_extensions[name] = {
            **self.installed_extensions[name],
            **_plain(data),
        }
        await self.manifest.write()

    async def remove_extension(self, name: str) -> None:
        """Forget an installed extension and persist. Unknown names are ignored."""
        self.installed_extensions.pop(name, None)
        await self.manifest.write()

    def is_installed(self, name: str) -> bool:
        return name in self.installed_extensions

    # ----- Resolution -----

    def get_record(self, name: str) -> ExtensionRecord:
        """Typed record of an installed extension.

        Raises:
            ExtensionNotInstalledError: If the extension is not installed.
            InvalidExtensionError: If its record is malformed.
        """
        raw = self.installed_extensions.get(name)
        if raw is None:
            raise ExtensionNotInstalledError(self.kind, name)
        result = parse_record(raw)
        if isinstance(result, list):
            raise InvalidExtensionError(self.kind, name, result)
        return result

    def get_install_path(self, name: str) -> Path:
        """Absolute install directory of an extension."""
        record = self.get_record(name)
        return (self.home / record.install_path).resolve()

    def get_require_path(self, name: str) -> Path:
        """Absolute path of an extension's importable package directory."""
        record = self.get_record(name)
        return self.get_install_path(name) / package_dir_name(record.package_name)

    def load_main_class(self, name: str) -> Any:
        """Load an extension and return its main class.

        Raises:
            ExtensionNotInstalledError: If the extension is not installed.
            ModuleResolutionError: If its package cannot be found.
            ExtensionLoadError: If it fails to import or lacks the main class.
        """
        record = self.get_record(name)
        require_path = self.get_require_path(name)
        resolved = self.loader.resolve(require_path.parent, require_path.name)
        module = self.loader.load(resolved)

        try:
            return getattr(module, record.main_class)
        except AttributeError as e:
            raise ExtensionLoadError(
                f"{self.kind.value.capitalize()} '{name}' does not export "
                f"'{record.main_class}' ({resolved})"
            ) from e

    # ----- Reporting -----

    @abstractmethod
    def describe(self, name: str) -> str:
        """One-line, human-readable description of an installed extension."""
        raise NotImplementedError("This must be implemented in a subclass")

    def list_installed(self, active_names: list[str] | None = None) -> None:
        """Log the installed extensions of this kind."""
        if not self.installed_extensions:
            logger.info(
                'No %s have been installed in %s. Use the "extman %s" '
                "command to install the one(s) you want to use.",
                self.config_key,
                self.home,
                self.kind.value,
            )
            return

        logger.info("Available %s:", self.config_key)
        for name in self.installed_extensions:
            logger.info("  - %s", self.describe(name))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, "
            f"installed={len(self.installed_extensions)})"
        )
