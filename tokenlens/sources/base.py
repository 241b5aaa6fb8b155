"""
Base types and protocols for token sources.

Defines the contract every source variant follows, plus a base class with
the file-reading and watching plumbing shared by file-backed sources.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Protocol, runtime_checkable

from ..config import SourceDescriptor
from ..models import SourceType, TokenRecord
from ..utils import USER_PRIORITY_BASE, SourceLoadError
from ..watch import FileWatcher

_log = logging.getLogger(__name__)


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


@runtime_checkable
class TokenSource(Protocol):
    """Protocol for token sources.

    A source turns one origin (bundled dataset, stylesheet, script config)
    into normalized token records.
    """

    @property
    def source_id(self) -> str:
        """Unique identity of this source within an aggregator."""
        ...

    @property
    def type(self) -> SourceType:
        ...

    @property
    def descriptor(self) -> SourceDescriptor:
        ...

    async def load(self) -> list[TokenRecord]:
        """Load and normalize the source's tokens.

        Raises:
            SourceLoadError: If the origin can't be read.
        """
        ...

    async def validate(self) -> bool:
        """Cheap check that the source can be activated."""
        ...

    def get_description(self) -> str:
        ...

    def watch(self, on_change: Callable[[], None]) -> bool:
        """Start emitting change signals; returns False if not watchable."""
        ...

    def dispose(self) -> None:
        """Release watches and handles."""
        ...


def make_source_id(descriptor: SourceDescriptor) -> str:
    """Build the identity of the source a descriptor describes."""
    if descriptor.type is SourceType.BUILTIN:
        return "builtin"
    return f"{descriptor.type.value}:{descriptor.file_path}"


# =============================================================================
# Base Classes
# =============================================================================


class BaseTokenSource:
    """Shared implementation for the source variants."""

    def __init__(self, descriptor: SourceDescriptor) -> None:
        self._descriptor = descriptor
        self._source_id = make_source_id(descriptor)
        self._watcher: Optional[FileWatcher] = None

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def type(self) -> SourceType:
        return self._descriptor.type

    @property
    def descriptor(self) -> SourceDescriptor:
        return self._descriptor

    @property
    def priority(self) -> int:
        if self._descriptor.priority is None:
            return USER_PRIORITY_BASE
        return self._descriptor.priority

    @property
    def file_path(self) -> Optional[Path]:
        if self._descriptor.file_path is None:
            return None
        return Path(self._descriptor.file_path)

    async def load(self) -> list[TokenRecord]:
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement load()"
        )

    async def validate(self) -> bool:
        return self._descriptor.enabled

    def get_description(self) -> str:
        return f"{self.type.value} source"

    def watch(self, on_change: Callable[[], None]) -> bool:
        path = self.file_path
        if not self._descriptor.watch or path is None:
            return False
        if self._watcher is None:
            self._watcher = FileWatcher(path, on_change)
            self._watcher.start()
        return True

    def dispose(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    async def _read_file(self) -> str:
        """Read the backing file off the event loop thread."""
        path = self.file_path
        if path is None:
            raise SourceLoadError(self.source_id, "file path is required")
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceLoadError(self.source_id, f"cannot read {path}: {e}") from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.source_id!r}, priority={self.priority})"
