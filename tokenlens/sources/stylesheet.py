"""Token source backed by a user stylesheet (CSS/LESS/SCSS)."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from ..models import Origin, SourceType, Theme, TokenRecord, infer_category, normalize_token_name
from ..parser import extract_variables, has_dark_scope, resolve_references
from ..utils import SourceLoadError
from .base import BaseTokenSource

_log = logging.getLogger(__name__)


def detect_theme(file_path: Path, content: str) -> Theme:
    """Guess which theme a stylesheet defines.

    The file name wins ('dark' or 'light' substring), then a dark-scoped
    selector in the content; anything else is light.
    """
    name = file_path.name.lower()
    if "dark" in name:
        return Theme.DARK
    if "light" in name:
        return Theme.LIGHT
    if has_dark_scope(content):
        return Theme.DARK
    return Theme.LIGHT


class StylesheetTokenSource(BaseTokenSource):
    """Parses CSS variables out of one stylesheet file."""

    async def load(self) -> list[TokenRecord]:
        content = await self._read_file()
        return await asyncio.to_thread(self._parse, content)

    def _parse(self, content: str) -> list[TokenRecord]:
        path = self.file_path
        if path is None:
            raise SourceLoadError(self.source_id, "file path is required")

        variables = resolve_references(extract_variables(content))
        theme = detect_theme(path, content)

        tokens = [
            TokenRecord(
                name=normalize_token_name(name),
                value=value.strip(),
                theme=theme,
                category=infer_category(name),
                origin=Origin.CUSTOM,
                priority=self.priority,
                source_file=str(path),
                source_type=SourceType.STYLESHEET,
                source_id=self.source_id,
            )
            for name, value in variables.items()
        ]

        _log.debug("Loaded %d tokens from %s (%s)", len(tokens), path, theme.value)
        return tokens

    async def validate(self) -> bool:
        path = self.file_path
        if not self.descriptor.enabled or path is None:
            return False
        return await asyncio.to_thread(path.is_file)

    def get_description(self) -> str:
        path = self.file_path
        return f"Stylesheet: {path.name if path else ''}"
