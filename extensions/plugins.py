"""Plugin extensions."""

from __future__ import annotations

import logging

from extensions.base import ExtensionConfig, ExtensionLogFn
from extensions.loader import ModuleLoader
from extensions.manifest import ManifestStore
from extensions.records import ExtensionKind
from extensions.schema import SchemaRegistrar

logger = logging.getLogger(__name__)


class PluginConfig(ExtensionConfig):
    """Installed plugins. Plugins need no checks beyond the generic ones."""

    def __init__(
        self,
        manifest: ManifestStore,
        log_fn: ExtensionLogFn | None = None,
        *,
        registrar: SchemaRegistrar | None = None,
        loader: ModuleLoader | None = None,
    ):
        super().__init__(
            ExtensionKind.PLUGIN,
            manifest,
            log_fn,
            registrar=registrar,
            loader=loader,
        )

    def describe(self, name: str) -> str:
        return f"{name}@{self.installed_extensions[name].get('version')}"

    def list_installed(self, active_names: list[str] | None = None) -> None:
        """Log installed plugins, marking the active ones."""
        if not self.installed_extensions:
            super().list_installed(active_names)
            return

        active = set(active_names or [])
        logger.info("Available %s:", self.config_key)
        for name in self.installed_extensions:
            suffix = " (ACTIVE)" if name in active else ""
            logger.info("  - %s%s", self.describe(name), suffix)

        if not active:
            logger.info(
                "No plugins activated. Use the --use-plugins flag with names "
                "of plugins to activate"
            )
