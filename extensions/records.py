"""Extension record schema for extman.

Defines the structure of one installed extension as stored in the
manifest (extensions.yaml), plus the problem type produced by validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field


class ExtensionKind(str, Enum):
    """Kind of extension."""

    DRIVER = "driver"
    PLUGIN = "plugin"

    @property
    def config_key(self) -> str:
        """Manifest section holding extensions of this kind."""
        return f"{self.value}s"


class InstallType(str, Enum):
    """How an extension was obtained."""

    NPM = "npm"
    LOCAL = "local"
    GIT = "git"
    GITHUB = "github"


INSTALL_TYPES = frozenset(t.value for t in InstallType)

# Untrusted record exactly as read from the manifest
RawRecord: TypeAlias = dict[str, Any]

# Extension name -> raw record, for a single kind
ExtensionRegistry: TypeAlias = dict[str, RawRecord]


@dataclass(frozen=True)
class Problem:
    """A validation problem and the value that caused it."""

    message: str
    value: Any = None


class ExtensionRecord(BaseModel):
    """Typed view of one installed extension.

    Attributes:
        version: Version of the installed extension.
        package_name: Name of the package providing the extension.
        install_spec: Specifier originally used to install it.
        install_type: How the extension was obtained.
        install_path: Install directory, relative to the framework home.
        main_class: Name of the exported class the host instantiates.
        schema_ref: Optional config schema, as a file path relative to the
            extension package or an inline mapping. Serialized as ``schema``.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        use_enum_values=False,
    )

    version: str
    package_name: str
    install_spec: str
    install_type: InstallType
    install_path: str
    main_class: str
    schema_ref: str | dict[str, Any] | None = Field(default=None, alias="schema")

    def to_dict(self) -> RawRecord:
        """Convert to the manifest representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @property
    def has_schema(self) -> bool:
        return self.schema_ref is not None

    def extra(self, key: str, default: Any = None) -> Any:
        """Get a kind-specific field (e.g. ``automation_name``)."""
        return (self.model_extra or {}).get(key, default)
