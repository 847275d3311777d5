"""Extension manifest manager for extman.

This package tracks the extensions installed for the host framework,
validates their records, registers the config schemas they ship, and
locates and loads their main classes.

Extensions come in two kinds:
- drivers: automation backends selected by automation name and platform
- plugins: add-ons that hook into the host

Installed extensions are recorded in ~/.extman/extensions.yaml by default.
"""

from extensions.base import (
    ExtensionConfig,
    ExtensionNotInstalledError,
    InvalidExtensionError,
)
from extensions.bootstrap import LoadedConfigs, load_extensions
from extensions.drivers import DriverConfig, DriverNotFoundError, MatchedDriver
from extensions.loader import (
    ExtensionLoadError,
    ModuleLoader,
    ModuleResolutionError,
    ResolutionError,
)
from extensions.manifest import Manifest, ManifestError, ManifestStore
from extensions.plugins import PluginConfig
from extensions.records import (
    ExtensionKind,
    ExtensionRecord,
    InstallType,
    Problem,
)
from extensions.schema import (
    SchemaNameConflictError,
    SchemaRegistrar,
    SchemaRegistrationError,
)

__all__ = [
    "DriverConfig",
    "DriverNotFoundError",
    "ExtensionConfig",
    "ExtensionKind",
    "ExtensionLoadError",
    "ExtensionNotInstalledError",
    "ExtensionRecord",
    "InstallType",
    "InvalidExtensionError",
    "LoadedConfigs",
    "Manifest",
    "ManifestError",
    "ManifestStore",
    "MatchedDriver",
    "ModuleLoader",
    "ModuleResolutionError",
    "PluginConfig",
    "Problem",
    "ResolutionError",
    "SchemaNameConflictError",
    "SchemaRegistrar",
    "SchemaRegistrationError",
    "load_extensions",
]
