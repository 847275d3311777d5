"""extman CLI.

Command-line interface for inspecting and maintaining installed extensions.
"""

__version__ = "0.1.0"

from cli.extman.cli import app, main

__all__ = ["__version__", "app", "main"]
