"""
tokenlens: design token registry and reference scanner.

Loads CSS custom-property design tokens from a bundled Ant Design dataset,
user stylesheets and JS/TS theme configs, merges them by priority into a
queryable registry, and locates var(--token) references in documents.
"""

from .aggregator import SourceAggregator
from .config import Settings, SourceDescriptor, load_settings
from .discovery import TokenFileDiscovery
from .models import (
    LoadResult,
    Origin,
    SourceType,
    Theme,
    TokenCategory,
    TokenRecord,
)
from .registry import TokenRegistry
from .scanner import Position, Range, ScanMatch, TextDocument, TokenScanner
from .utils import ConfigError, SourceLoadError, TokenLensError

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "LoadResult",
    "Origin",
    "Position",
    "Range",
    "ScanMatch",
    "Settings",
    "SourceAggregator",
    "SourceDescriptor",
    "SourceLoadError",
    "SourceType",
    "TextDocument",
    "Theme",
    "TokenCategory",
    "TokenFileDiscovery",
    "TokenLensError",
    "TokenRecord",
    "TokenRegistry",
    "TokenScanner",
    "load_settings",
]
