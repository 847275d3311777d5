"""Helpers for building fake installed extensions on disk."""

from __future__ import annotations

import textwrap
from pathlib import Path


def write_package(
    home: Path,
    install_path: str,
    package_dir: str,
    files: dict[str, str],
) -> Path:
    """Create an installed extension package under the home directory.

    Returns:
        The package directory.
    """
    pkg = home / install_path / package_dir
    pkg.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        target = pkg / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(content), encoding="utf-8")
    return pkg
