"""
Token sources.

The variant set is closed: builtin dataset, stylesheet file, script config.
create_source() dispatches over it exhaustively.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..config import SourceDescriptor
from ..models import SourceType
from .base import BaseTokenSource, TokenSource, make_source_id
from .builtin import BuiltinTokenSource
from .script import ScriptTokenSource
from .stylesheet import StylesheetTokenSource


def create_source(
    descriptor: SourceDescriptor,
    assets_dir: Optional[Path] = None,
) -> BaseTokenSource:
    """Instantiate the source a descriptor describes.

    Args:
        descriptor: Source configuration.
        assets_dir: Directory holding the bundled dataset (builtin only).
    """
    if descriptor.type is SourceType.BUILTIN:
        return BuiltinTokenSource(descriptor, assets_dir)
    if descriptor.type is SourceType.STYLESHEET:
        return StylesheetTokenSource(descriptor)
    if descriptor.type is SourceType.SCRIPT:
        return ScriptTokenSource(descriptor)
    raise ValueError(f"Unsupported source type: {descriptor.type}")


__all__ = [
    "BaseTokenSource",
    "BuiltinTokenSource",
    "ScriptTokenSource",
    "StylesheetTokenSource",
    "TokenSource",
    "create_source",
    "make_source_id",
]
