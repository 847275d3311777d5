"""Driver extensions.

Drivers implement automation for one automation name across one or
more platforms.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from extensions.base import ExtensionConfig, ExtensionLogFn
from extensions.loader import ModuleLoader, ResolutionError
from extensions.manifest import ManifestStore
from extensions.records import ExtensionKind, ExtensionRegistry, Problem, RawRecord
from extensions.schema import SchemaRegistrar


class DriverNotFoundError(ResolutionError):
    """Raised when no installed driver supports the requested automation."""

    pass


@dataclass
class MatchedDriver:
    """A driver selected for an automation name and platform."""

    name: str
    version: str
    driver_class: Any


class DriverConfig(ExtensionConfig):
    """Installed drivers.

    Example:
        >>> drivers = DriverConfig(manifest)
        >>> drivers.validate(drivers.installed_extensions)
        >>> match = drivers.find_matching_driver("Fake", "iOS")
    """

    def __init__(
        self,
        manifest: ManifestStore,
        log_fn: ExtensionLogFn | None = None,
        *,
        registrar: SchemaRegistrar | None = None,
        loader: ModuleLoader | None = None,
    ):
        super().__init__(
            ExtensionKind.DRIVER,
            manifest,
            log_fn,
            registrar=registrar,
            loader=loader,
        )

    def get_config_problems(self, raw: RawRecord, name: str) -> list[Problem]:
        if not isinstance(raw, Mapping):
            return []

        problems = []
        platform_names = raw.get("platform_names")
        automation_name = raw.get("automation_name")

        if not isinstance(platform_names, list):
            problems.append(
                Problem("Missing or incorrect supported platform_names list.", platform_names)
            )
        elif not platform_names:
            problems.append(Problem("Empty platform_names list.", platform_names))
        else:
            for platform_name in platform_names:
                if not isinstance(platform_name, str):
                    problems.append(
                        Problem("Incorrectly formatted platform name.", platform_name)
                    )

        if not isinstance(automation_name, str):
            problems.append(
                Problem("Missing or incorrect automation_name", automation_name)
            )

        return problems

    def get_registry_problems(self, records: ExtensionRegistry) -> dict[str, list[Problem]]:
        """Reject drivers whose automation name an earlier driver already claims."""
        claimed: set[str] = set()
        problems: dict[str, list[Problem]] = {}
        for name, raw in records.items():
            automation_name = raw["automation_name"]
            key = automation_name.lower()
            if key in claimed:
                problems[name] = [
                    Problem(
                        "Multiple drivers claim support for the same automation_name",
                        automation_name,
                    )
                ]
            claimed.add(key)
        return problems

    def describe(self, name: str) -> str:
        raw = self.installed_extensions[name]
        return f"{name}@{raw.get('version')} (automation_name '{raw.get('automation_name')}')"

    def find_matching_driver(
        self, automation_name: str, platform_name: str | None = None
    ) -> MatchedDriver:
        """Find and load the driver for an automation name.

        Matching is case-insensitive. When a platform is given, the driver
        must also list it in ``platform_names``.

        Raises:
            DriverNotFoundError: If no installed driver matches.
        """
        wanted = automation_name.lower()
        for name, raw in self.installed_extensions.items():
            if str(raw.get("automation_name", "")).lower() != wanted:
                continue
            platforms = [str(p).lower() for p in raw.get("platform_names") or []]
            if platform_name is not None and platform_name.lower() not in platforms:
                continue
            return MatchedDriver(
                name=name,
                version=raw.get("version", ""),
                driver_class=self.load_main_class(name),
            )

        message = f"Could not find a driver for automation_name '{automation_name}'"
        if platform_name is not None:
            message += f" and platform_name '{platform_name}'"
        raise DriverNotFoundError(
            f"{message}. Installed drivers: {', '.join(self.installed_extensions) or 'none'}"
        )
