"""Configuration management for extman.

Loads settings from:
1. config.toml in the home directory (or an explicit path)
2. Environment variables (overrides)
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

from extensions.manifest import MANIFEST_BASENAME

# Load .env file if present
load_dotenv()

DEFAULT_HOME = Path.home() / ".extman"
CONFIG_BASENAME = "config.toml"


@dataclass
class Settings:
    """Extension manager settings."""

    home: Path = DEFAULT_HOME
    manifest_basename: str = MANIFEST_BASENAME
    reload_extensions: bool = False  # Evict cached extension modules before loading
    log_level: str = "INFO"

    @property
    def manifest_path(self) -> Path:
        return self.home / self.manifest_basename

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Create Settings from the [extensions] table of config.toml."""
        settings = cls()
        if "home" in data:
            settings.home = Path(data["home"]).expanduser()
        if "manifest_basename" in data:
            settings.manifest_basename = str(data["manifest_basename"])
        if "reload_extensions" in data:
            settings.reload_extensions = _bool(data["reload_extensions"])
        if "log_level" in data:
            settings.log_level = str(data["log_level"]).upper()
        return settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from file and environment.

    Args:
        config_path: Optional explicit path to config.toml. Defaults to
            config.toml inside the home directory.

    Returns:
        Settings with merged values.
    """
    env_home = os.getenv("EXTMAN_HOME")

    if config_path is None:
        home = Path(env_home).expanduser() if env_home else DEFAULT_HOME
        config_path = home / CONFIG_BASENAME

    config_data: dict[str, Any] = {}
    path = Path(config_path)
    if path.exists():
        with open(path, "rb") as f:
            config_data = tomllib.load(f).get("extensions", {})

    # Environment overrides (only set values)
    env_overrides = {
        "home": env_home,
        "reload_extensions": os.getenv("EXTMAN_RELOAD_EXTENSIONS"),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    for key, value in env_overrides.items():
        if value:
            config_data[key] = value

    return Settings.from_dict(config_data)


def _bool(value: Any) -> bool:
    """Interpret a config or environment value as a flag."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# Global settings instance (lazy loaded)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns:
        Settings object (loaded once, cached).
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings() -> Settings:
    """Force reload of settings."""
    global _settings
    _settings = load_settings()
    return _settings
