"""
Core data structures for design tokens.

Defines the closed enumerations (themes, categories, origins, source types),
the normalized token record every source produces, and the helpers used to
classify a token by name and value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# =============================================================================
# Enumerations
# =============================================================================


class Theme(str, Enum):
    """One of the two mutually exclusive value sets a token resolves under."""

    LIGHT = "light"
    DARK = "dark"


class TokenCategory(str, Enum):
    """Closed set of token categories."""

    COLOR = "color"
    SIZE = "size"
    FONT = "font"
    LINE = "line"
    MOTION = "motion"
    SHADOW = "shadow"
    Z_INDEX = "zIndex"
    OPACITY = "opacity"
    OTHER = "other"


class Origin(str, Enum):
    BUILTIN = "builtin"
    CUSTOM = "custom"


class SourceType(str, Enum):
    """Closed set of token source variants."""

    BUILTIN = "builtin"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"


# Config spellings accepted for each source type
SOURCE_TYPE_ALIASES: dict[str, SourceType] = {
    "builtin": SourceType.BUILTIN,
    "stylesheet": SourceType.STYLESHEET,
    "css": SourceType.STYLESHEET,
    "less": SourceType.STYLESHEET,
    "scss": SourceType.STYLESHEET,
    "script": SourceType.SCRIPT,
    "javascript": SourceType.SCRIPT,
    "js": SourceType.SCRIPT,
    "ts": SourceType.SCRIPT,
}


# =============================================================================
# Token Record
# =============================================================================


@dataclass(frozen=True)
class TokenRecord:
    """A single candidate definition of a token under one theme.

    Attributes:
        name: Token name, conventionally '--' prefixed (e.g. '--ant-color-primary').
        value: Raw value string (e.g. '#1677ff').
        theme: Theme the value applies to.
        category: Inferred category.
        origin: Whether the record came from the bundled dataset or the user.
        priority: Precedence used in conflict resolution; lower wins.
        description: Optional human-readable meaning of the token.
        source_file: File the record was read from, if any.
        source_type: Variant of the source that produced the record.
        source_id: Identity of the contributing source.
    """

    name: str
    value: str
    theme: Theme
    category: TokenCategory
    origin: Origin
    priority: int
    description: Optional[str] = None
    source_file: Optional[str] = None
    source_type: SourceType = SourceType.BUILTIN
    source_id: str = "builtin"

    @property
    def key(self) -> tuple[str, Theme]:
        """Conflict-resolution key."""
        return (self.name, self.theme)

    @property
    def precedence(self) -> tuple[int, str]:
        """Total order used to pick the active record; smaller wins."""
        return (self.priority, self.source_id)

    @property
    def is_color(self) -> bool:
        return is_color_value(self.value)


@dataclass
class LoadResult:
    """Outcome of loading a single source."""

    source_id: str
    success: bool
    source_type: Optional[SourceType] = None
    tokens: list[TokenRecord] = field(default_factory=list)
    error: Optional[str] = None
    load_time: float = 0.0


# =============================================================================
# Classification
# =============================================================================


COLOR_KEYWORDS = frozenset({
    "transparent",
    "currentcolor",
    "inherit",
    "initial",
    "unset",
    "black",
    "white",
    "red",
    "green",
    "blue",
    "yellow",
    "cyan",
    "magenta",
    "gray",
    "grey",
    "orange",
    "purple",
    "pink",
    "brown",
})

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{3,8}$")
_RGB_COLOR = re.compile(r"^rgba?\([\d\s,./%]+\)$", re.IGNORECASE)
_HSL_COLOR = re.compile(r"^hsla?\([\d\s,%./deg]+\)$", re.IGNORECASE)

# Palette names that mark a token as a color when they form a whole
# dash-separated segment of the name, as in --ant-blue-6
_PALETTE_NAMES = frozenset({
    "blue",
    "red",
    "green",
    "orange",
    "purple",
    "cyan",
    "magenta",
    "yellow",
    "pink",
    "volcano",
    "geekblue",
    "gold",
    "lime",
})

# Ordered first-match rules; color is checked separately before these.
_CATEGORY_RULES: list[tuple[TokenCategory, tuple[str, ...]]] = [
    (TokenCategory.SIZE, ("size", "width", "height", "padding", "margin", "radius", "control")),
    (TokenCategory.FONT, ("font",)),
    (TokenCategory.LINE, ("line", "border")),
    (TokenCategory.MOTION, ("motion", "duration")),
    (TokenCategory.SHADOW, ("shadow",)),
    (TokenCategory.Z_INDEX, ("z-index",)),
    (TokenCategory.OPACITY, ("opacity",)),
]


def is_color_value(value: str) -> bool:
    """Check whether a value is a literal color.

    Recognizes hex (#fff, #ffffff, #ffffffff), rgb/rgba, hsl/hsla and a set of
    common CSS color keywords.
    """
    if not value:
        return False
    value = value.strip()
    if _HEX_COLOR.match(value) or _RGB_COLOR.match(value) or _HSL_COLOR.match(value):
        return True
    return value.lower() in COLOR_KEYWORDS


def infer_category(name: str) -> TokenCategory:
    """Infer a token's category from its name.

    Rules are applied in order and the first match wins:
    color > size > font > line/border > motion > shadow > z-index > opacity.
    Anything else is 'other'.
    """
    lower = name.lower()

    if "color" in lower or not _PALETTE_NAMES.isdisjoint(lower.split("-")):
        return TokenCategory.COLOR

    for category, keywords in _CATEGORY_RULES:
        if any(k in lower for k in keywords):
            return category

    return TokenCategory.OTHER


def normalize_token_name(name: str) -> str:
    """Strip whitespace and ensure the '--' prefix. Case is preserved."""
    name = name.strip()
    if not name.startswith("--"):
        name = "--" + name
    return name
