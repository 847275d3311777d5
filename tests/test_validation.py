"""Tests for record validation."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from extensions.loader import ModuleLoader
from extensions.records import ExtensionKind, ExtensionRecord, InstallType, Problem
from extensions.schema import SchemaRegistrar
from extensions.validation import (
    format_value,
    get_generic_problems,
    get_schema_problems,
    has_schema,
    parse_record,
    read_extension_schema,
)

from tests.helpers import write_package

REQUIRED_FIELDS = [
    "version",
    "package_name",
    "install_spec",
    "install_type",
    "install_path",
    "main_class",
]


# --- Generic checks ---


def test_generic_valid_record_has_no_problems(fake_record):
    assert get_generic_problems(fake_record) == []


def test_generic_empty_record_reports_every_field():
    problems = get_generic_problems({})
    assert len(problems) == len(REQUIRED_FIELDS)
    assert all(p.value is None for p in problems)


@pytest.mark.parametrize("field", REQUIRED_FIELDS)
def test_generic_missing_field_reported(fake_record, field):
    del fake_record[field]
    problems = get_generic_problems(fake_record)
    assert len(problems) == 1
    assert problems[0].value is None


@pytest.mark.parametrize("install_type", [t.value for t in InstallType])
def test_generic_known_install_types_accepted(fake_record, install_type):
    fake_record["install_type"] = install_type
    assert get_generic_problems(fake_record) == []


def test_generic_bogus_install_type(fake_record):
    fake_record["install_type"] = "bogus"
    problems = get_generic_problems(fake_record)
    assert problems == [Problem("Missing or incorrect install type", "bogus")]


def test_generic_non_string_fields(fake_record):
    fake_record["version"] = 1
    fake_record["main_class"] = ["FakeDriver"]
    problems = get_generic_problems(fake_record)
    messages = {p.message for p in problems}
    assert messages == {
        "Missing or incorrect version",
        "Missing or incorrect main class name",
    }


def test_generic_non_mapping_record():
    problems = get_generic_problems("not a record")
    assert len(problems) == 1
    assert problems[0].value == "not a record"


def test_parse_record_valid(fake_record):
    record = parse_record(fake_record)
    assert isinstance(record, ExtensionRecord)
    assert record.install_type is InstallType.NPM
    assert record.main_class == "FakeDriver"


def test_parse_record_invalid_returns_problems(fake_record):
    fake_record["install_type"] = "svn"
    result = parse_record(fake_record)
    assert isinstance(result, list)
    assert result[0].message == "Missing or incorrect install type"


@pytest.mark.parametrize("schema", [["schema.json"], 5, True])
def test_parse_record_malformed_schema_field(fake_record, schema):
    fake_record["schema"] = schema
    result = parse_record(fake_record)
    assert result == [
        Problem(
            "Incorrectly formatted schema field; must be a path to a schema file "
            "or a schema object.",
            schema,
        )
    ]


def test_parse_record_keeps_schema(fake_record):
    fake_record["schema"] = {"type": "object"}
    record = parse_record(fake_record)
    assert isinstance(record, ExtensionRecord)
    assert record.schema_ref == {"type": "object"}


# --- Schema checks ---


def test_has_schema(fake_record):
    assert not has_schema(fake_record)
    assert has_schema({**fake_record, "schema": "schema.json"})
    assert has_schema({**fake_record, "schema": {"type": "object"}})
    assert not has_schema({**fake_record, "schema": 3})


def test_schema_absent_does_not_register(home, fake_record):
    registrar = MagicMock(spec=SchemaRegistrar)
    problems = get_schema_problems(
        home, ExtensionKind.DRIVER, "fake", fake_record, registrar, ModuleLoader()
    )
    assert problems == []
    registrar.register.assert_not_called()


def test_schema_disallowed_extension_skips_resolution(home, fake_record):
    fake_record["schema"] = "schema.xml"
    loader = MagicMock(spec=ModuleLoader)
    registrar = MagicMock(spec=SchemaRegistrar)

    problems = get_schema_problems(
        home, ExtensionKind.DRIVER, "fake", fake_record, registrar, loader
    )

    assert len(problems) == 1
    assert "unsupported extension" in problems[0].message
    assert problems[0].value == "schema.xml"
    loader.resolve.assert_not_called()
    registrar.register.assert_not_called()


def test_schema_file_registered_once(home, fake_record):
    write_package(
        home,
        "node_modules/fake-driver",
        "fake_driver",
        {"schema.json": '{"type": "object", "properties": {"port": {"type": "integer"}}}'},
    )
    fake_record["schema"] = "schema.json"
    registrar = MagicMock(spec=SchemaRegistrar)

    problems = get_schema_problems(
        home, ExtensionKind.DRIVER, "fake", fake_record, registrar, ModuleLoader()
    )

    assert problems == []
    registrar.register.assert_called_once_with(
        ExtensionKind.DRIVER,
        "fake",
        {"type": "object", "properties": {"port": {"type": "integer"}}},
    )


def test_schema_yaml_file(home, fake_record, registrar):
    write_package(
        home,
        "node_modules/fake-driver",
        "fake_driver",
        {"config/schema.yaml": "type: object\nadditionalProperties: false\n"},
    )
    fake_record["schema"] = "config/schema.yaml"

    problems = get_schema_problems(
        home, ExtensionKind.DRIVER, "fake", fake_record, registrar, ModuleLoader()
    )

    assert problems == []
    assert registrar.get_schema("driver", "fake") == {
        "type": "object",
        "additionalProperties": False,
    }


def test_schema_file_missing(home, fake_record, registrar):
    fake_record["schema"] = "schema.json"

    problems = get_schema_problems(
        home, ExtensionKind.DRIVER, "fake", fake_record, registrar, ModuleLoader()
    )

    assert len(problems) == 1
    assert problems[0].message.startswith("Unable to register schema at path schema.json;")
    assert problems[0].value == "schema.json"
    assert not registrar.is_registered("driver", "fake")


def test_schema_file_malformed_json(home, fake_record, registrar):
    write_package(
        home, "node_modules/fake-driver", "fake_driver", {"schema.json": "{not json"}
    )
    fake_record["schema"] = "schema.json"

    problems = get_schema_problems(
        home, ExtensionKind.DRIVER, "fake", fake_record, registrar, ModuleLoader()
    )

    assert len(problems) == 1
    assert "Unable to register schema" in problems[0].message


def test_schema_inline_registered(home, fake_record, registrar):
    fake_record["schema"] = {"type": "object"}

    problems = get_schema_problems(
        home, ExtensionKind.PLUGIN, "fake", fake_record, registrar, ModuleLoader()
    )

    assert problems == []
    assert registrar.is_registered(ExtensionKind.PLUGIN, "fake")


def test_schema_inline_invalid(home, fake_record, registrar):
    fake_record["schema"] = {"type": 12}

    problems = get_schema_problems(
        home, ExtensionKind.PLUGIN, "fake", fake_record, registrar, ModuleLoader()
    )

    assert len(problems) == 1
    assert problems[0].message.startswith("Unable to register embedded schema;")
    assert problems[0].value == {"type": 12}


def test_schema_wrong_type(home, fake_record, registrar):
    fake_record["schema"] = ["schema.json"]

    problems = get_schema_problems(
        home, ExtensionKind.PLUGIN, "fake", fake_record, registrar, ModuleLoader()
    )

    assert len(problems) == 1
    assert problems[0].message.startswith("Incorrectly formatted schema field")


def test_read_extension_schema_without_schema(home, fake_record, registrar):
    with pytest.raises(TypeError):
        read_extension_schema(
            home, ExtensionKind.DRIVER, "fake", fake_record, registrar, ModuleLoader()
        )


def test_format_value():
    assert format_value(None) == "null"
    assert format_value("bogus") == '"bogus"'
    assert format_value(["iOS", 3]) == '["iOS", 3]'


def test_format_value_non_string_keys():
    value = {(1, 2): "point"}
    assert format_value(value) == repr(value)
