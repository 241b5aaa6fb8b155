"""
Shared utilities for tokenlens.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

PACKAGE_ROOT = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_ROOT / "data"

LIGHT_THEME_CSS = "antd-light-theme.css"
DARK_THEME_CSS = "antd-dark-theme.css"
DESCRIPTIONS_FILE = "token_descriptions.yaml"

DEFAULT_CONFIG_NAME = "tokenlens.yaml"

BUILTIN_PRIORITY = 100
DISCOVERY_PRIORITY = 50
USER_PRIORITY_BASE = 10


# =============================================================================
# Exceptions
# =============================================================================


class TokenLensError(Exception):
    """Base class for tokenlens errors."""


class SourceLoadError(TokenLensError):
    """Raised by a token source when its data cannot be loaded."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id


class ConfigError(TokenLensError):
    """Raised when a settings file cannot be read or is invalid."""


# =============================================================================
# Logging
# =============================================================================


class Logger:
    """Simple colored logger with --no-color support."""

    COLORS = {
        "reset": "\033[0m",
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "cyan": "\033[96m",
        "bold": "\033[1m",
        "dim": "\033[2m",
    }

    def __init__(self, use_color: Optional[bool] = None):
        if use_color is None:
            self._use_color = sys.stdout.isatty()
        else:
            self._use_color = use_color

    def set_color(self, use_color: bool) -> None:
        """Set whether to use color output."""
        self._use_color = use_color

    def _color(self, text: str, color: str) -> str:
        if not self._use_color:
            return text
        return f"{self.COLORS.get(color, '')}{text}{self.COLORS['reset']}"

    def colorize(self, text: str, color: str) -> str:
        """Wrap text in a color code (no-op when color is off)."""
        return self._color(text, color)

    def header(self, message: str) -> None:
        """Print a section header."""
        print(f"\n{self._color('===', 'cyan')} {self._color(message, 'bold')} {self._color('===', 'cyan')}")

    def info(self, message: str) -> None:
        print(f"  {message}")

    def success(self, message: str) -> None:
        print(f"  {self._color('[OK]', 'green')} {message}")

    def warning(self, message: str) -> None:
        print(f"  {self._color('[WARN]', 'yellow')} {message}")

    def error(self, message: str) -> None:
        print(f"  {self._color('[ERROR]', 'red')} {message}")

    def dim(self, message: str) -> None:
        """Print a dim/secondary message."""
        print(f"  {self._color(message, 'dim')}")

    def table_row(self, col1: str, col2: str, col1_width: int = 36) -> None:
        """Print a table row with two columns."""
        print(f"  {col1:<{col1_width}} {col2}")


# Global logger instance
log = Logger()
