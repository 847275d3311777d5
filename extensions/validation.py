"""Validation of raw extension records.

Each check takes an untrusted record straight from the manifest and
returns a list of problems; an empty list means the record passed.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from extensions.loader import ModuleLoader, ResolutionError, package_dir_name
from extensions.records import (
    INSTALL_TYPES,
    ExtensionKind,
    ExtensionRecord,
    Problem,
    RawRecord,
)
from extensions.schema import (
    ALLOWED_SCHEMA_EXTENSIONS,
    SchemaRegistrar,
    SchemaRegistrationError,
    is_allowed_schema_file_extension,
    load_schema_file,
)

# (field, message) for every required string field
_REQUIRED_STRING_FIELDS = (
    ("version", "Missing or incorrect version"),
    ("package_name", "Missing or incorrect package name"),
    ("install_spec", "Missing or incorrect installation spec"),
    ("install_path", "Missing or incorrect installation path"),
    ("main_class", "Missing or incorrect main class name"),
)

_SCHEMA_FORMAT_MESSAGE = (
    "Incorrectly formatted schema field; must be a path to a schema file "
    "or a schema object."
)


def get_generic_problems(raw: RawRecord) -> list[Problem]:
    """Check the fields every extension record must have.

    Args:
        raw: Record as read from the manifest.

    Returns:
        One problem per missing or malformed field.
    """
    if not isinstance(raw, Mapping):
        return [Problem("Extension record must be a mapping", raw)]

    problems = []
    for key, message in _REQUIRED_STRING_FIELDS:
        value = raw.get(key)
        if not isinstance(value, str):
            problems.append(Problem(message, value))

    install_type = raw.get("install_type")
    if not isinstance(install_type, str) or install_type not in INSTALL_TYPES:
        problems.append(Problem("Missing or incorrect install type", install_type))

    return problems


def parse_record(raw: RawRecord) -> ExtensionRecord | list[Problem]:
    """Turn an untrusted record into a typed one.

    Returns:
        The typed record, or the problems that prevent it.
    """
    problems = get_generic_problems(raw)
    if problems:
        return problems
    try:
        return ExtensionRecord.model_validate(raw)
    except ValidationError as e:
        # Union fields report one error per member; keep one problem each
        for error in e.errors():
            problem = _problem_from_error(error, raw)
            if problem not in problems:
                problems.append(problem)
        return problems


def _problem_from_error(error: Mapping[str, Any], raw: RawRecord) -> Problem:
    field = str(error["loc"][0]) if error["loc"] else "record"
    if field in ("schema", "schema_ref"):
        return Problem(_SCHEMA_FORMAT_MESSAGE, raw.get("schema"))
    return Problem(f"Incorrect {field}: {error['msg']}", raw.get(field))


def has_schema(raw: RawRecord) -> bool:
    """Whether a record declares a schema (path or inline object)."""
    return isinstance(raw, Mapping) and isinstance(raw.get("schema"), (str, Mapping))


def read_extension_schema(
    home: Path,
    kind: ExtensionKind,
    name: str,
    raw: RawRecord,
    registrar: SchemaRegistrar,
    loader: ModuleLoader,
) -> Any:
    """Load a record's schema and register it.

    A string schema is a file path relative to the extension's package
    directory; a mapping is used as-is.

    Returns:
        The registered schema.

    Raises:
        TypeError: If the record has no schema.
        ResolutionError: If the schema file cannot be found.
        SchemaRegistrationError: If the schema is invalid or conflicts.
    """
    schema_ref = raw.get("schema")
    if not has_schema(raw):
        raise TypeError(
            f"No schema found in config for {kind.value} {raw.get('package_name')}"
        )

    if isinstance(schema_ref, str):
        install_dir = home / raw["install_path"]
        specifier = f"{package_dir_name(raw['package_name'])}/{schema_ref}"
        schema = load_schema_file(loader.resolve(install_dir, specifier))
    else:
        schema = schema_ref

    registrar.register(kind, name, schema)
    return schema


# Failures while reading a schema that become problems instead of errors
_SCHEMA_ERRORS = (
    ResolutionError,
    SchemaRegistrationError,
    OSError,
    ValueError,
    TypeError,
    KeyError,
    yaml.YAMLError,
)


def get_schema_problems(
    home: Path,
    kind: ExtensionKind,
    name: str,
    raw: RawRecord,
    registrar: SchemaRegistrar,
    loader: ModuleLoader,
) -> list[Problem]:
    """Check and register a record's schema, if it declares one.

    Returns:
        Problems found; empty when there is no schema or it registered.
    """
    if not isinstance(raw, Mapping) or raw.get("schema") is None:
        return []

    schema_ref = raw["schema"]
    if isinstance(schema_ref, str):
        if not is_allowed_schema_file_extension(schema_ref):
            return [
                Problem(
                    "Schema file has unsupported extension. Allowed: "
                    + ", ".join(ALLOWED_SCHEMA_EXTENSIONS),
                    schema_ref,
                )
            ]
        try:
            read_extension_schema(home, kind, name, raw, registrar, loader)
        except _SCHEMA_ERRORS as e:
            return [Problem(f"Unable to register schema at path {schema_ref}; {e}", schema_ref)]
        return []

    if isinstance(schema_ref, Mapping):
        try:
            read_extension_schema(home, kind, name, raw, registrar, loader)
        except _SCHEMA_ERRORS as e:
            return [Problem(f"Unable to register embedded schema; {e}", schema_ref)]
        return []

    return [Problem(_SCHEMA_FORMAT_MESSAGE, schema_ref)]


def format_value(value: Any) -> str:
    """Serialize an offending value for the operator log."""
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return repr(value)
