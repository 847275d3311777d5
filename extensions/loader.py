"""Module loader for installed extensions.

Resolves extension packages and schema files on disk and imports
extension code from file, keeping a process-wide module cache.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when an extension, module, or export cannot be located."""

    pass


class ModuleResolutionError(ResolutionError):
    """Raised when a module specifier does not resolve to a file."""

    pass


class ExtensionLoadError(ResolutionError):
    """Raised when extension code fails to load."""

    pass


# Resolved module path -> loaded module
_module_cache: dict[Path, ModuleType] = {}


def package_dir_name(package_name: str) -> str:
    """Directory name a package is importable under (``fake-driver`` -> ``fake_driver``)."""
    return re.sub(r"[-.]+", "_", package_name)


@dataclass
class ModuleLoader:
    """Resolve and import extension modules.

    Attributes:
        force_reload: Evict any cached module before loading it again.

    Example:
        >>> loader = ModuleLoader()
        >>> path = loader.resolve(Path("/home/x/.extman/drivers"), "fake_driver")
        >>> module = loader.load(path)
    """

    force_reload: bool = False

    def resolve(self, base_dir: Path | str, specifier: str) -> Path:
        """Resolve a module specifier relative to a base directory.

        The specifier may name a file, a package directory (resolved to its
        ``__init__.py``), or a module without its ``.py`` suffix.

        Args:
            base_dir: Directory to resolve from.
            specifier: Relative path of the module or file.

        Returns:
            Absolute path to the file.

        Raises:
            ModuleResolutionError: If nothing matches.
        """
        candidate = (Path(base_dir) / specifier).resolve()

        if candidate.is_file():
            return candidate
        if candidate.is_dir() and (candidate / "__init__.py").is_file():
            return candidate / "__init__.py"

        as_module = candidate.with_name(candidate.name + ".py")
        if as_module.is_file():
            return as_module

        raise ModuleResolutionError(f"Cannot find module '{specifier}' from '{base_dir}'")

    def load(self, path: Path | str) -> ModuleType:
        """Import a module from file, using the module cache.

        Args:
            path: Absolute path as returned by :meth:`resolve`.

        Returns:
            Loaded module.

        Raises:
            ExtensionLoadError: If the module cannot be imported.
        """
        path = Path(path).resolve()

        if self.force_reload and self.is_cached(path):
            logger.debug("Removing %s from module cache", path)
            self.evict(path)

        cached = _module_cache.get(path)
        if cached is not None:
            return cached

        module = self._load_module(_module_name_for(path), path)
        _module_cache[path] = module
        return module

    def is_cached(self, path: Path | str) -> bool:
        return Path(path).resolve() in _module_cache

    def evict(self, path: Path | str) -> bool:
        """Drop a module from the cache.

        Returns:
            True if a module was evicted.
        """
        module = _module_cache.pop(Path(path).resolve(), None)
        if module is None:
            return False
        sys.modules.pop(module.__name__, None)
        return True

    def _load_module(self, module_name: str, file_path: Path) -> ModuleType:
        """Dynamically load a Python module from file."""
        search_locations = None
        if file_path.name == "__init__.py":
            search_locations = [str(file_path.parent)]

        spec = importlib.util.spec_from_file_location(
            module_name, file_path, submodule_search_locations=search_locations
        )
        if spec is None or spec.loader is None:
            raise ExtensionLoadError(f"Could not load module spec from {file_path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise ExtensionLoadError(f"Failed to load module {file_path}: {e}") from e
        return module


def _module_name_for(path: Path) -> str:
    # Unique per file so two extensions with the same package name don't collide
    stem = path.parent.name if path.name == "__init__.py" else path.stem
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:10]
    return f"extman_ext_{package_dir_name(stem)}_{digest}"
