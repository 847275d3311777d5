"""Shared fixtures for extman tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from extensions.base import ExtensionConfig
from extensions.manifest import Manifest
from extensions.records import ExtensionKind
from extensions.schema import SchemaRegistrar
from extensions.schema import registrar as default_registrar


class FakeConfig(ExtensionConfig):
    """Driver-kind config without driver-specific checks."""

    def __init__(self, manifest, log_fn=None, **kwargs):
        super().__init__(ExtensionKind.DRIVER, manifest, log_fn, **kwargs)

    def describe(self, name: str) -> str:
        return f"{name}@{self.installed_extensions[name]['version']}"


@pytest.fixture(autouse=True)
def _reset_default_registrar():
    default_registrar.reset()
    yield
    default_registrar.reset()


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def manifest(home: Path) -> Manifest:
    return Manifest(home)


@pytest.fixture
def registrar() -> SchemaRegistrar:
    return SchemaRegistrar()


@pytest.fixture
def fake_record() -> dict:
    return {
        "version": "1.0.0",
        "package_name": "fake-driver",
        "install_spec": "fake-driver@1.0.0",
        "install_type": "npm",
        "install_path": "node_modules/fake-driver",
        "main_class": "FakeDriver",
    }


@pytest.fixture
def driver_record(fake_record: dict) -> dict:
    return {
        **fake_record,
        "automation_name": "Fake",
        "platform_names": ["iOS", "Android"],
    }
