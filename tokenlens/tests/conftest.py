"""
Shared pytest fixtures for tokenlens tests.

Provides record factories, a small bundled dataset and helpers for writing
token files into isolated temp directories.
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from ..models import Origin, SourceType, Theme, TokenRecord, infer_category
from ..registry import TokenRegistry


LIGHT_CSS = """
:root {
  --ant-color-primary: #1677ff;
  --ant-color-text: rgba(0, 0, 0, 0.88);
  --ant-font-size: 14px;
  --ant-border-radius: 6px;
}
"""

DARK_CSS = """
:root {
  --ant-color-primary: #1668dc;
  --ant-color-text: rgba(255, 255, 255, 0.85);
  --ant-font-size: 14px;
}
"""

DESCRIPTIONS_YAML = """
brand:
  --ant-color-primary: Brand color
neutral:
  --ant-color-text: Default text color
"""


@pytest.fixture
def registry() -> TokenRegistry:
    return TokenRegistry()


@pytest.fixture
def make_record() -> Callable[..., TokenRecord]:
    """Factory for token records with sensible defaults.

    Usage:
        make_record("--ant-color-primary", "#000", priority=10, source_id="a")
    """

    def _make(
        name: str,
        value: str = "#000000",
        theme: Theme = Theme.LIGHT,
        priority: int = 100,
        source_id: str = "builtin",
        origin: Origin = Origin.CUSTOM,
        source_type: SourceType = SourceType.STYLESHEET,
    ) -> TokenRecord:
        return TokenRecord(
            name=name,
            value=value,
            theme=theme,
            category=infer_category(name),
            origin=origin,
            priority=priority,
            source_type=source_type,
            source_id=source_id,
        )

    return _make


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write dedented content to a file under tmp_path and return its path."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """A minimal bundled dataset: two themes plus descriptions."""
    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "antd-light-theme.css").write_text(LIGHT_CSS, encoding="utf-8")
    (assets / "antd-dark-theme.css").write_text(DARK_CSS, encoding="utf-8")
    (assets / "token_descriptions.yaml").write_text(DESCRIPTIONS_YAML, encoding="utf-8")
    return assets
