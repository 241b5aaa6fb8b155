"""Bundled two-theme token dataset."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import yaml

from ..config import SourceDescriptor
from ..models import Origin, SourceType, Theme, TokenRecord, infer_category
from ..parser import BUILTIN_SELECTORS, extract_variables
from ..utils import (
    BUILTIN_PRIORITY,
    DARK_THEME_CSS,
    DATA_DIR,
    DESCRIPTIONS_FILE,
    LIGHT_THEME_CSS,
    SourceLoadError,
)
from .base import BaseTokenSource

_log = logging.getLogger(__name__)


def load_descriptions(path: Path) -> dict[str, str]:
    """Load the token name -> description mapping.

    The file groups descriptions by section::

        brand:
          --ant-color-primary: Brand primary color
    """
    if not path.exists():
        return {}

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    descriptions: dict[str, str] = {}
    for section in data.values():
        if isinstance(section, dict):
            descriptions.update({str(k): str(v) for k, v in section.items()})
    return descriptions


class BuiltinTokenSource(BaseTokenSource):
    """Reads the bundled light and dark theme stylesheets."""

    def __init__(
        self,
        descriptor: Optional[SourceDescriptor] = None,
        assets_dir: Optional[Path] = None,
    ) -> None:
        super().__init__(descriptor or SourceDescriptor.builtin())
        self.assets_dir = Path(assets_dir) if assets_dir is not None else DATA_DIR

    @property
    def priority(self) -> int:
        if self.descriptor.priority is None:
            return BUILTIN_PRIORITY
        return self.descriptor.priority

    async def load(self) -> list[TokenRecord]:
        return await asyncio.to_thread(self._load_sync)

    def _load_sync(self) -> list[TokenRecord]:
        try:
            light_css = (self.assets_dir / LIGHT_THEME_CSS).read_text(encoding="utf-8")
            dark_css = (self.assets_dir / DARK_THEME_CSS).read_text(encoding="utf-8")
            descriptions = load_descriptions(self.assets_dir / DESCRIPTIONS_FILE)
        except (OSError, yaml.YAMLError) as e:
            raise SourceLoadError(self.source_id, f"bundled dataset unavailable: {e}") from e

        tokens: list[TokenRecord] = []
        for theme, content in ((Theme.LIGHT, light_css), (Theme.DARK, dark_css)):
            for name, value in extract_variables(content, BUILTIN_SELECTORS).items():
                tokens.append(
                    TokenRecord(
                        name=name,
                        value=value,
                        theme=theme,
                        category=infer_category(name),
                        origin=Origin.BUILTIN,
                        priority=self.priority,
                        description=descriptions.get(name),
                        source_type=SourceType.BUILTIN,
                        source_id=self.source_id,
                    )
                )

        _log.debug("Loaded %d builtin tokens", len(tokens))
        return tokens

    def get_description(self) -> str:
        return "Bundled Ant Design tokens"

    def watch(self, on_change) -> bool:
        return False
