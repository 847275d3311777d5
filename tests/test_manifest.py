"""Tests for the YAML manifest store."""

from __future__ import annotations

import pytest
import yaml

from extensions.manifest import CURRENT_SCHEMA_REV, Manifest, ManifestError
from extensions.records import ExtensionKind


@pytest.mark.asyncio
async def test_read_missing_file_is_empty(manifest):
    data = await manifest.read()

    assert data["drivers"] == {}
    assert data["plugins"] == {}
    assert manifest.schema_rev == CURRENT_SCHEMA_REV
    assert not manifest.manifest_path.exists()


@pytest.mark.asyncio
async def test_read_existing_file(home, fake_record):
    (home / "extensions.yaml").write_text(
        yaml.safe_dump({"drivers": {"fake": fake_record}, "schema_rev": 1})
    )
    manifest = Manifest(home)

    await manifest.read()

    assert manifest.get_extension_data(ExtensionKind.DRIVER) == {"fake": fake_record}
    assert manifest.get_extension_data(ExtensionKind.PLUGIN) == {}
    assert manifest.has_extension(ExtensionKind.DRIVER, "fake")
    assert not manifest.has_extension(ExtensionKind.PLUGIN, "fake")


@pytest.mark.asyncio
async def test_read_keeps_registries_live(home, fake_record):
    manifest = Manifest(home)
    drivers = manifest.get_extension_data(ExtensionKind.DRIVER)
    (home / "extensions.yaml").write_text(yaml.safe_dump({"drivers": {"fake": fake_record}}))

    await manifest.read()

    assert drivers is manifest.get_extension_data(ExtensionKind.DRIVER)
    assert "fake" in drivers


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text",
    [
        "drivers: [unclosed",
        "- just\n- a list\n",
        "drivers: [fake]\n",
    ],
)
async def test_read_malformed(home, text):
    (home / "extensions.yaml").write_text(text)
    with pytest.raises(ManifestError):
        await Manifest(home).read()


@pytest.mark.asyncio
async def test_read_non_utf8_file(home):
    (home / "extensions.yaml").write_bytes(b"drivers:\n  \xff\xfe: {}\n")
    with pytest.raises(ManifestError, match="UTF-8"):
        await Manifest(home).read()


@pytest.mark.asyncio
async def test_read_empty_file(home):
    (home / "extensions.yaml").write_text("")
    data = await Manifest(home).read()
    assert data["drivers"] == {}


@pytest.mark.asyncio
async def test_add_extension_writes_file(manifest, fake_record):
    changed = await manifest.add_extension(ExtensionKind.PLUGIN, "fake", fake_record)

    assert changed is True
    on_disk = yaml.safe_load(manifest.manifest_path.read_text())
    assert on_disk == {
        "drivers": {},
        "plugins": {"fake": fake_record},
        "schema_rev": CURRENT_SCHEMA_REV,
    }


@pytest.mark.asyncio
async def test_add_extension_copies_record(manifest, fake_record):
    await manifest.add_extension(ExtensionKind.DRIVER, "fake", fake_record)
    fake_record["version"] = "9.9.9"

    assert manifest.get_extension_data(ExtensionKind.DRIVER)["fake"]["version"] == "1.0.0"


@pytest.mark.asyncio
async def test_write_persists_live_changes(manifest, fake_record):
    manifest.get_extension_data(ExtensionKind.DRIVER)["fake"] = fake_record

    assert await manifest.write() is True
    assert await manifest.write() is False

    reread = Manifest(manifest.home)
    await reread.read()
    assert reread.get_extension_data(ExtensionKind.DRIVER) == {"fake": fake_record}


@pytest.mark.asyncio
async def test_write_unchanged_after_read(home, manifest, fake_record):
    await manifest.add_extension(ExtensionKind.DRIVER, "fake", fake_record)

    reread = Manifest(home)
    await reread.read()

    assert await reread.write() is False


@pytest.mark.asyncio
async def test_write_creates_home(tmp_path, fake_record):
    manifest = Manifest(tmp_path / "missing" / "home")

    await manifest.add_extension(ExtensionKind.DRIVER, "fake", fake_record)

    assert manifest.manifest_path.is_file()


def test_custom_basename(home):
    manifest = Manifest(home, "installed.yaml")
    assert manifest.manifest_path == home.resolve() / "installed.yaml"
