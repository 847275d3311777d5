"""Driver and plugin CLI commands for extman.

Inspect and maintain installed extensions. Installing and downloading
extensions is handled elsewhere; these commands only read and edit the
manifest.
"""

import asyncio
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from cli.extman.output import (
    console,
    print_error,
    print_info,
    print_key_value,
    print_report,
    print_success,
    print_warning,
)
from extensions import (
    ExtensionConfig,
    ExtensionKind,
    InvalidExtensionError,
    load_extensions,
)
from extensions.base import ExtensionLogFn
from extensions.settings import get_settings


async def _open_config(
    kind: ExtensionKind,
    validate: bool = True,
    log_fn: ExtensionLogFn | None = None,
) -> ExtensionConfig:
    """Read the manifest and return the config for one kind."""
    configs = await load_extensions(get_settings(), log_fn=log_fn, validate=False)
    config = configs.drivers if kind == ExtensionKind.DRIVER else configs.plugins
    if validate:
        config.validate(config.installed_extensions)
    return config


def _warn(message: str) -> None:
    print_warning(escape(message))


def _build_app(kind: ExtensionKind) -> typer.Typer:
    """Create the command group for one extension kind."""
    kind_app = typer.Typer(
        name=kind.value,
        help=f"Manage installed {kind.config_key}.",
        no_args_is_help=True,
    )

    @kind_app.command("list")
    def list_extensions(
        active: Optional[List[str]] = typer.Option(
            None,
            "--active",
            "-a",
            help="Mark an extension as active (repeatable)",
        ),
    ) -> None:
        """List installed extensions.

        Examples:
            extman driver list
            extman plugin list --active images
        """
        config = asyncio.run(_open_config(kind, log_fn=_warn))

        if not config.installed_extensions:
            print_warning(f"No {kind.config_key} installed in {config.home}")
            print_info(f'Use the "extman {kind.value}" command to install the one(s) you want to use.')
            return

        active_names = set(active or [])
        table = Table(title=f"Installed {kind.config_key.capitalize()}")
        table.add_column("Name", style="cyan")
        table.add_column("Version")
        table.add_column("Package", style="green")
        table.add_column("Install Type")
        table.add_column("Description")

        for name in sorted(config.installed_extensions):
            record = config.get_record(name)
            description = escape(config.describe(name))
            if name in active_names:
                description += " [bold](ACTIVE)[/bold]"
            table.add_row(
                escape(name),
                escape(record.version),
                escape(record.package_name),
                record.install_type.value,
                description,
            )

        console.print(table)
        console.print(f"\n[dim]Total: {len(config.installed_extensions)} {kind.config_key}[/dim]")

    @kind_app.command("show")
    def show(
        name: str = typer.Argument(..., help="Extension name"),
    ) -> None:
        """Show details of an installed extension.

        Example:
            extman driver show fake
        """
        config = asyncio.run(_open_config(kind, validate=False))

        if not config.is_installed(name):
            print_error(f"{kind.value.capitalize()} '{name}' is not installed")
            raise typer.Exit(1)

        try:
            record = config.get_record(name)
        except InvalidExtensionError as e:
            print_error(escape(str(e)))
            raise typer.Exit(1)

        console.print(f"\n[bold cyan]{escape(name)}[/bold cyan] v{escape(record.version)}\n")
        print_key_value("Package", record.package_name)
        print_key_value("Install Spec", record.install_spec)
        print_key_value("Install Type", record.install_type.value)
        print_key_value("Install Path", config.get_install_path(name))
        print_key_value("Require Path", config.get_require_path(name))
        print_key_value("Main Class", record.main_class)
        if record.has_schema:
            schema = record.schema_ref if isinstance(record.schema_ref, str) else "(inline)"
            print_key_value("Schema", schema)
        if kind == ExtensionKind.DRIVER:
            print_key_value("Automation Name", record.extra("automation_name"))
            print_key_value("Platforms", ", ".join(record.extra("platform_names") or []))

    @kind_app.command("doctor")
    def doctor() -> None:
        """Validate installed extensions and report problems.

        Exits with status 1 when any extension is invalid.

        Example:
            extman plugin doctor
        """
        report: list[str] = []
        config = asyncio.run(_open_config(kind, validate=False, log_fn=report.append))
        total = len(config.installed_extensions)
        config.validate(config.installed_extensions)

        if report:
            print_report(report)
            broken = total - len(config.installed_extensions)
            print_error(f"{broken} of {total} {kind.config_key} had errors")
            raise typer.Exit(1)

        print_success(f"All {total} {kind.config_key} are valid")

    @kind_app.command("remove")
    def remove(
        name: str = typer.Argument(..., help="Extension name to remove"),
        yes: bool = typer.Option(
            False,
            "--yes",
            "-y",
            help="Skip confirmation",
        ),
    ) -> None:
        """Remove an extension from the manifest.

        Installed files are left in place.

        Example:
            extman plugin remove images --yes
        """

        async def _remove() -> bool:
            config = await _open_config(kind, validate=False)
            if not config.is_installed(name):
                return False
            if not yes and not typer.confirm(f"Remove {kind.value} {name}?"):
                raise typer.Exit(0)
            await config.remove_extension(name)
            return True

        if not asyncio.run(_remove()):
            print_error(f"{kind.value.capitalize()} '{name}' is not installed")
            raise typer.Exit(1)

        print_success(f"Removed {kind.value}: {name}")

    return kind_app


driver_app = _build_app(ExtensionKind.DRIVER)
plugin_app = _build_app(ExtensionKind.PLUGIN)
