"""extman CLI.

Main command-line interface for inspecting installed extensions.
"""

from pathlib import Path
from typing import Optional

import typer

from cli.commands.extensions import driver_app, plugin_app
from cli.extman.output import console, setup_logging
from extensions.settings import get_settings

app = typer.Typer(
    name="extman",
    help="extman - manage the drivers and plugins installed for the host framework",
    no_args_is_help=True,
)

# Register extension sub-apps
app.add_typer(driver_app, name="driver")
app.add_typer(plugin_app, name="plugin")


@app.callback()
def main_callback(
    home: Optional[Path] = typer.Option(
        None,
        "--home",
        help="Framework home directory (default: $EXTMAN_HOME or ~/.extman)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
) -> None:
    """Apply global options before running a command."""
    settings = get_settings()
    if home is not None:
        settings.home = home.expanduser()
    setup_logging("DEBUG" if verbose else settings.log_level)


@app.command()
def version() -> None:
    """Show extman version."""
    from cli.extman import __version__

    console.print(f"extman v{__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
