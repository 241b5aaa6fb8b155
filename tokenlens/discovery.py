"""
Automatic discovery of token files in a project tree.

Finds files matching glob patterns (with {a,b} brace expansion), keeps those
that actually define tokens, and registers them with an aggregator. When
started, it also follows file creation and deletion under the root.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from .aggregator import SourceAggregator
from .config import DEFAULT_AUTO_SCAN_PATTERNS, SourceDescriptor
from .models import SourceType
from .parser import contains_variable_definitions
from .sources import make_source_id
from .sources.script import SCRIPT_EXTENSIONS, extract_token_properties
from .utils import DISCOVERY_PRIORITY
from .watch import TreeWatcher

_log = logging.getLogger(__name__)

STYLESHEET_EXTENSIONS = (".css", ".less", ".scss", ".sass")

_BRACES = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand {a,b} alternatives in a glob pattern.

    >>> expand_braces("**/tokens.{css,less}")
    ['**/tokens.css', '**/tokens.less']
    """
    match = _BRACES.search(pattern)
    if match is None:
        return [pattern]

    expanded: list[str] = []
    for option in match.group(1).split(","):
        candidate = pattern[: match.start()] + option + pattern[match.end() :]
        expanded.extend(expand_braces(candidate))
    return expanded


def source_type_for(path: Path) -> Optional[SourceType]:
    """Map a file extension to the source type that reads it."""
    suffix = path.suffix.lower()
    if suffix in STYLESHEET_EXTENSIONS:
        return SourceType.STYLESHEET
    if suffix in SCRIPT_EXTENSIONS:
        return SourceType.SCRIPT
    return None


def defines_tokens(path: Path, source_type: SourceType) -> bool:
    """Check a candidate file's content before adding it as a source."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return False

    if source_type is SourceType.STYLESHEET:
        return contains_variable_definitions(content)
    if source_type is SourceType.SCRIPT:
        return bool(extract_token_properties(content))
    return False


class TokenFileDiscovery:
    """Discovers token files under a root and feeds them to an aggregator."""

    def __init__(
        self,
        aggregator: SourceAggregator,
        root: Path,
        patterns: Optional[Iterable[str]] = None,
        exclude: Iterable[str] = ("node_modules",),
        max_files: int = 100,
        priority: int = DISCOVERY_PRIORITY,
    ) -> None:
        self.aggregator = aggregator
        self.root = Path(root)
        self.patterns = [
            p
            for pattern in (patterns if patterns is not None else DEFAULT_AUTO_SCAN_PATTERNS)
            for p in expand_braces(pattern)
        ]
        self.exclude = tuple(exclude)
        self.max_files = max_files
        self.priority = priority
        self._discovered: dict[str, Path] = {}
        self._watcher: Optional[TreeWatcher] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def discovered(self) -> dict[str, Path]:
        """Source id -> file for every source added by discovery."""
        return dict(self._discovered)

    async def start(self) -> list[Path]:
        """Run an initial scan, then follow file creation and deletion."""
        self._loop = asyncio.get_running_loop()
        added = await self.scan()

        if self._watcher is None and self.root.is_dir():
            self._watcher = TreeWatcher(self.root, self._on_created, self._on_deleted)
            self._watcher.start()
        return added

    def stop(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    def dispose(self) -> None:
        """Stop watching and forget discovered files (their sources stay)."""
        self.stop()
        self._discovered.clear()
        self._loop = None

    async def scan(self) -> list[Path]:
        """Find matching files and add each token file as a source.

        Returns:
            Files newly added as sources.
        """
        if not self.root.is_dir():
            _log.info("Discovery root does not exist: %s", self.root)
            return []

        candidates = await asyncio.to_thread(self.find_files)
        _log.info("Found %d potential token files under %s", len(candidates), self.root)

        added = []
        for path in candidates:
            if await self.process_file(path):
                added.append(path)
        return added

    def find_files(self) -> list[Path]:
        """Glob the root for candidate files, skipping excluded directories."""
        found: list[Path] = []
        seen: set[Path] = set()

        for pattern in self.patterns:
            for path in sorted(self.root.glob(pattern)):
                if not path.is_file() or path in seen:
                    continue
                if any(part in self.exclude for part in path.relative_to(self.root).parts):
                    continue
                seen.add(path)
                found.append(path)
                if len(found) >= self.max_files:
                    return found

        return found

    def matches(self, path: Path) -> bool:
        """Check a path against the discovery patterns."""
        try:
            relative = path.relative_to(self.root).as_posix()
        except ValueError:
            return False
        if any(part in self.exclude for part in Path(relative).parts):
            return False
        # '**/' also has to match files directly under the root
        return any(
            fnmatch.fnmatch(relative, p) or (p.startswith("**/") and fnmatch.fnmatch(relative, p[3:]))
            for p in self.patterns
        )

    async def process_file(self, path: Path) -> bool:
        """Add one file as a source if it defines tokens."""
        source_type = source_type_for(path)
        if source_type is None:
            return False

        descriptor = SourceDescriptor(
            type=source_type,
            priority=self.priority,
            file_path=str(path),
            watch=True,
        )
        source_id = make_source_id(descriptor)
        if source_id in self._discovered:
            return False

        if not await asyncio.to_thread(defines_tokens, path, source_type):
            return False

        if not await self.aggregator.add_source(descriptor):
            return False

        self._discovered[source_id] = path
        _log.info("Added token file: %s", path)
        return True

    async def forget_file(self, path: Path) -> bool:
        """Remove the source backing a deleted file."""
        for source_id, known in list(self._discovered.items()):
            if known == path:
                del self._discovered[source_id]
                return self.aggregator.remove_source(source_id)
        return False

    # -------------------------------------------------------------------------
    # Watcher callbacks (observer thread)
    # -------------------------------------------------------------------------

    def _on_created(self, path: Path) -> None:
        if self.matches(path):
            self._submit(self.process_file(path))

    def _on_deleted(self, path: Path) -> None:
        if self.matches(path):
            self._submit(self.forget_file(path))

    def _submit(self, coro) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            coro.close()
            return
        asyncio.run_coroutine_threadsafe(coro, loop)
