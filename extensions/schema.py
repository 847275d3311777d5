"""Configuration schema registrar for extensions.

Extensions may ship a JSON Schema describing the options they accept.
Schemas are registered here per (kind, name) during validation and can
later be used to check an extension's configuration.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from extensions.records import ExtensionKind

logger = logging.getLogger(__name__)

ALLOWED_SCHEMA_EXTENSIONS = (".json", ".yaml", ".yml")


class SchemaRegistrationError(Exception):
    """Raised when a schema cannot be registered."""

    pass


class SchemaNameConflictError(SchemaRegistrationError):
    """Raised when a different schema is already registered for an extension."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(
            f"Name for {kind} schema '{name}' conflicts with an existing schema"
        )


def is_allowed_schema_file_extension(path: str | Path) -> bool:
    """Check whether a schema file path has a supported extension."""
    return Path(path).suffix.lower() in ALLOWED_SCHEMA_EXTENSIONS


def load_schema_file(path: Path) -> Any:
    """Load a schema document from a JSON or YAML file.

    Args:
        path: Absolute path to the schema file.

    Returns:
        The parsed document.

    Raises:
        SchemaRegistrationError: If the extension is unsupported or the file
            cannot be parsed.
        OSError: If the file cannot be read.
    """
    if not is_allowed_schema_file_extension(path):
        raise SchemaRegistrationError(f"Unsupported schema file: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SchemaRegistrationError(f"Invalid schema file {path}: {e}")


def _kind_value(kind: ExtensionKind | str) -> str:
    return kind.value if isinstance(kind, ExtensionKind) else str(kind)


class SchemaRegistrar:
    """Registry of extension config schemas, keyed by (kind, name).

    Example:
        >>> registrar = SchemaRegistrar()
        >>> registrar.register("driver", "fake", {"type": "object"})
        >>> registrar.validate_config("driver", "fake", {"a": 1})
        []
    """

    def __init__(self) -> None:
        self._schemas: dict[tuple[str, str], dict[str, Any]] = {}

    def register(self, kind: ExtensionKind | str, name: str, schema: Any) -> None:
        """Register a schema for an extension.

        Registering an identical schema twice is a no-op.

        Args:
            kind: Extension kind.
            name: Extension name (unique per kind).
            schema: JSON Schema document.

        Raises:
            TypeError: If kind or name is empty.
            SchemaRegistrationError: If the schema is not a valid JSON Schema object.
            SchemaNameConflictError: If a different schema is already registered.
        """
        kind_value = _kind_value(kind)
        if not kind_value or not name:
            raise TypeError("Expected nonempty extension kind and name")
        if not isinstance(schema, Mapping):
            raise SchemaRegistrationError(
                f"Schema must be an object, got {type(schema).__name__}"
            )

        try:
            Draft202012Validator.check_schema(schema)
        except SchemaError as e:
            raise SchemaRegistrationError(f"Invalid schema: {e.message}")

        key = (kind_value, name)
        existing = self._schemas.get(key)
        if existing is not None:
            if existing == schema:
                return
            raise SchemaNameConflictError(kind_value, name)

        self._schemas[key] = copy.deepcopy(dict(schema))
        logger.debug("Registered schema %s", self.schema_id(kind_value, name))

    def is_registered(self, kind: ExtensionKind | str, name: str) -> bool:
        return (_kind_value(kind), name) in self._schemas

    def get_schema(self, kind: ExtensionKind | str, name: str) -> dict[str, Any] | None:
        schema = self._schemas.get((_kind_value(kind), name))
        return copy.deepcopy(schema) if schema is not None else None

    @staticmethod
    def schema_id(kind: ExtensionKind | str, name: str) -> str:
        """Stable identifier for a registered schema, e.g. ``driver-fake.json``."""
        normalized = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
        return f"{_kind_value(kind)}-{normalized}.json"

    def validate_config(
        self, kind: ExtensionKind | str, name: str, config: Any
    ) -> list[str]:
        """Check an extension config against its registered schema.

        Returns:
            Error messages; empty if valid.

        Raises:
            KeyError: If no schema is registered for the extension.
        """
        schema = self._schemas.get((_kind_value(kind), name))
        if schema is None:
            raise KeyError(f"No schema registered for {_kind_value(kind)} '{name}'")

        errors = []
        for error in Draft202012Validator(schema).iter_errors(config):
            path = ".".join(str(item) for item in error.absolute_path)
            errors.append(f"{path}: {error.message}" if path else error.message)
        return errors

    def reset(self) -> None:
        """Forget all registered schemas."""
        self._schemas.clear()

    def __len__(self) -> int:
        return len(self._schemas)


# Default registrar used when none is injected
registrar = SchemaRegistrar()
