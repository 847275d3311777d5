"""Bootstrap driver and plugin configs from the manifest on disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from extensions.base import ExtensionLogFn
from extensions.drivers import DriverConfig
from extensions.loader import ModuleLoader
from extensions.manifest import Manifest
from extensions.plugins import PluginConfig
from extensions.schema import SchemaRegistrar
from extensions.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class LoadedConfigs:
    """Validated extension configs sharing one manifest."""

    manifest: Manifest
    drivers: DriverConfig
    plugins: PluginConfig


async def load_extensions(
    settings: Settings | None = None,
    *,
    log_fn: ExtensionLogFn | None = None,
    registrar: SchemaRegistrar | None = None,
    validate: bool = True,
) -> LoadedConfigs:
    """Read the manifest and build validated driver and plugin configs.

    Args:
        settings: Settings to use (default: global settings).
        log_fn: Operator-facing log function for validation reports.
        registrar: Schema registrar (default: the shared registrar).
        validate: Drop invalid records before returning.

    Returns:
        The manifest and both configs.
    """
    settings = settings or get_settings()
    manifest = Manifest(settings.home, settings.manifest_basename)
    await manifest.read()

    loader = ModuleLoader(force_reload=settings.reload_extensions)
    drivers = DriverConfig(manifest, log_fn, registrar=registrar, loader=loader)
    plugins = PluginConfig(manifest, log_fn, registrar=registrar, loader=loader)

    if validate:
        drivers.validate(drivers.installed_extensions)
        plugins.validate(plugins.installed_extensions)

    logger.debug(
        "Loaded %d driver(s) and %d plugin(s) from %s",
        len(drivers.installed_extensions),
        len(plugins.installed_extensions),
        manifest.manifest_path,
    )
    return LoadedConfigs(manifest=manifest, drivers=drivers, plugins=plugins)
