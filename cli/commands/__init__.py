"""CLI command modules for extman."""

from cli.commands.extensions import driver_app, plugin_app

__all__ = ["driver_app", "plugin_app"]
