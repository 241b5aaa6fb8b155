"""Token source backed by a JS/TS theme config file.

Extraction is best-effort: string-valued properties inside a `token: {...}`
object literal are read with regular expressions, e.g.::

    export default { token: { colorPrimary: '#1677ff', borderRadius: '6px' } }

Nested objects, computed values and non-string literals are skipped. All
values are assumed to belong to the light theme.
"""

from __future__ import annotations

import asyncio
import logging
import re

from ..models import Origin, SourceType, Theme, TokenRecord, infer_category
from .base import BaseTokenSource

_log = logging.getLogger(__name__)

SCRIPT_EXTENSIONS = (".js", ".ts", ".mjs", ".cjs")

TOKEN_PREFIX = "--ant-"

_TOKEN_BLOCK = re.compile(r"\btoken\s*:\s*\{([^{}]*)\}")
_STRING_PROPERTY = re.compile(r"""([A-Za-z_$][\w$]*)\s*:\s*(['"`])((?:(?!\2).)*)\2""")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def to_token_name(identifier: str) -> str:
    """Convert a camelCase config key to a token name.

    >>> to_token_name("colorPrimary")
    '--ant-color-primary'
    """
    return TOKEN_PREFIX + _CAMEL_BOUNDARY.sub(r"\1-\2", identifier).lower()


def extract_token_properties(content: str) -> dict[str, str]:
    """Extract string properties from every `token: {...}` block.

    Later blocks override earlier ones.
    """
    properties: dict[str, str] = {}
    for block in _TOKEN_BLOCK.finditer(content):
        for prop in _STRING_PROPERTY.finditer(block.group(1)):
            properties[prop.group(1)] = prop.group(3)
    return properties


class ScriptTokenSource(BaseTokenSource):
    """Reads token overrides from a JS/TS theme configuration."""

    async def load(self) -> list[TokenRecord]:
        content = await self._read_file()

        tokens = []
        for identifier, value in extract_token_properties(content).items():
            name = to_token_name(identifier)
            tokens.append(
                TokenRecord(
                    name=name,
                    value=value.strip(),
                    theme=Theme.LIGHT,
                    category=infer_category(name),
                    origin=Origin.CUSTOM,
                    priority=self.priority,
                    source_file=str(self.file_path),
                    source_type=SourceType.SCRIPT,
                    source_id=self.source_id,
                )
            )

        _log.debug("Loaded %d tokens from %s", len(tokens), self.file_path)
        return tokens

    async def validate(self) -> bool:
        path = self.file_path
        if not self.descriptor.enabled or path is None:
            return False
        if path.suffix.lower() not in SCRIPT_EXTENSIONS:
            return False
        return await asyncio.to_thread(path.is_file)

    def get_description(self) -> str:
        path = self.file_path
        return f"Script config: {path.name if path else ''}"
