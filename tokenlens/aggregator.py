"""
Multi-source token aggregation.

The aggregator owns the active source set, loads sources into the registry
and decides which record is active for every (name, theme) key. Resolution
keeps every candidate per key and picks the one with the smallest
(priority, source_id); an incoming record therefore displaces the active one
only when it is strictly more authoritative, whatever order sources load in.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Iterable, Optional

from .config import SourceDescriptor
from .events import Signal
from .models import SourceType, Theme, TokenRecord, LoadResult
from .registry import TokenRegistry
from .sources import BaseTokenSource, create_source, make_source_id

_log = logging.getLogger(__name__)

Key = tuple[str, Theme]


class SourceAggregator:
    """Loads token sources and merges them into a registry.

    Notifications:
        on_tokens_changed: fired once after load_all()/reload(), and after a
            single source is added or reloaded because its file changed.
        on_sources_changed: fired after add_source()/remove_source().
    """

    def __init__(
        self,
        registry: TokenRegistry,
        assets_dir: Optional[Path] = None,
        watch: bool = True,
    ) -> None:
        self.registry = registry
        self.assets_dir = assets_dir
        self.watch_enabled = watch
        self.on_tokens_changed = Signal("tokens changed")
        self.on_sources_changed = Signal("source set changed")

        self._sources: dict[str, BaseTokenSource] = {}
        self._candidates: dict[Key, dict[str, TokenRecord]] = {}
        self._contributed: dict[str, set[Key]] = {}
        self._lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(
        self,
        descriptors: Optional[Iterable[SourceDescriptor]] = None,
    ) -> list[LoadResult]:
        """Create, validate and load the configured sources.

        A builtin source is always present: when the descriptors don't name
        one, the default builtin descriptor is prepended. Sources that fail
        validation are dropped with a warning. Calling initialize() again
        discards the previous source set and registry contents.
        """
        self._loop = asyncio.get_running_loop()
        _log.info("Initializing token sources")

        if self._sources:
            self._dispose_sources()
            self._reset_index()

        descriptors = list(descriptors) if descriptors is not None else []
        if not any(d.type is SourceType.BUILTIN for d in descriptors):
            descriptors.insert(0, SourceDescriptor.builtin())

        for descriptor in descriptors:
            await self._attach(descriptor)

        results = await self.load_all()
        _log.info(
            "Initialized with %d sources, %d tokens (%d unique)",
            len(self._sources),
            self.registry.size,
            self.registry.unique_size,
        )
        return results

    async def load_all(self) -> list[LoadResult]:
        """Load every enabled source, one after another.

        A failing source is reported in its LoadResult and does not stop the
        others. on_tokens_changed fires once, after the last source.
        """
        async with self._lock:
            results = await self._load_all()
        self.on_tokens_changed.fire()
        return results

    async def reload(self) -> list[LoadResult]:
        """Clear the registry and load every source again.

        This is the only operation that purges tokens of removed sources.
        """
        _log.info("Reloading all sources")
        async with self._lock:
            self._reset_index()
            results = await self._load_all()
        self.on_tokens_changed.fire()
        return results

    def dispose(self) -> None:
        """Dispose every source and drop listeners."""
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        self._dispose_sources()
        self.on_tokens_changed.clear()
        self.on_sources_changed.clear()

    # -------------------------------------------------------------------------
    # Source Set
    # -------------------------------------------------------------------------

    async def add_source(self, descriptor: SourceDescriptor) -> bool:
        """Add one source and load only that source.

        Returns:
            True if the source was added, False if it was a duplicate,
            unsupported or failed validation.
        """
        source = await self._attach(descriptor)
        if source is None:
            return False

        self.on_sources_changed.fire()

        async with self._lock:
            result = await self.load_source(source.source_id)
        if result.success:
            self.on_tokens_changed.fire()
        return True

    def remove_source(self, source_id: str) -> bool:
        """Dispose a source and drop it from the source set.

        Tokens the source already contributed stay registered (and may stay
        active) until the next reload().
        """
        source = self._sources.pop(source_id, None)
        if source is None:
            return False

        source.dispose()
        _log.info("Source removed: %s", source_id)
        self.on_sources_changed.fire()
        return True

    @property
    def sources(self) -> dict[str, BaseTokenSource]:
        return dict(self._sources)

    def get_sources_info(self) -> list[dict[str, Any]]:
        """Describe every source for display."""
        return [
            {
                "id": source_id,
                "type": source.type.value,
                "description": source.get_description(),
                "enabled": source.descriptor.enabled,
                "priority": source.priority,
                "tokens": len(self._contributed.get(source_id, ())),
            }
            for source_id, source in self._sources.items()
        ]

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load_source(self, source_id: str) -> LoadResult:
        """Load one source and merge its records into the registry.

        Errors raised by the source are logged and returned, never raised.
        """
        source = self._sources.get(source_id)
        if source is None:
            return LoadResult(source_id=source_id, success=False, error="Source not found")

        start = time.perf_counter()
        try:
            tokens = await source.load()
        except Exception as e:
            _log.error("Load failed for %s: %s", source_id, e)
            return LoadResult(
                source_id=source_id,
                success=False,
                source_type=source.type,
                error=str(e),
                load_time=time.perf_counter() - start,
            )

        self._merge(source_id, tokens)
        load_time = time.perf_counter() - start
        _log.info("Loaded %d tokens from %s in %.1fms", len(tokens), source_id, load_time * 1000)

        return LoadResult(
            source_id=source_id,
            success=True,
            source_type=source.type,
            tokens=tokens,
            load_time=load_time,
        )

    async def handle_source_change(self, source_id: str) -> Optional[LoadResult]:
        """Reload a single source after its file changed."""
        async with self._lock:
            if source_id not in self._sources:
                return None
            _log.info("Source changed: %s", source_id)
            result = await self.load_source(source_id)
        self.on_tokens_changed.fire()
        return result

    async def _load_all(self) -> list[LoadResult]:
        results = []
        for source_id, source in list(self._sources.items()):
            if not source.descriptor.enabled:
                continue
            results.append(await self.load_source(source_id))

        failed = [r.source_id for r in results if not r.success]
        if failed:
            _log.warning("%d of %d sources failed to load: %s", len(failed), len(results), ", ".join(failed))
        return results

    # -------------------------------------------------------------------------
    # Conflict Resolution
    # -------------------------------------------------------------------------

    def _merge(self, source_id: str, tokens: list[TokenRecord]) -> None:
        """Merge one source's records into the candidate table and registry.

        Runs without suspending so readers never see a half-merged index.
        """
        new_keys = {token.key for token in tokens}

        # Keys this source defined last time but no longer does
        for key in self._contributed.get(source_id, set()) - new_keys:
            candidates = self._candidates.get(key)
            if candidates is not None:
                candidates.pop(source_id, None)
            self._resolve(key)

        for token in tokens:
            candidates = self._candidates.setdefault(token.key, {})
            candidates[source_id] = token
            self.registry.register(token, active=False)
            # The active record may belong to a replaced candidate
            self._resolve(token.key)

        self._contributed[source_id] = new_keys

    def _resolve(self, key: Key) -> None:
        """Re-pick the active record for a key from its remaining candidates."""
        name, theme = key
        candidates = self._candidates.get(key)
        if not candidates:
            self._candidates.pop(key, None)
            self.registry.deactivate(name, theme)
            return

        best = min(candidates.values(), key=lambda r: r.precedence)
        if self.registry.get(name, theme) is not best:
            self.registry.activate(best)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _attach(self, descriptor: SourceDescriptor) -> Optional[BaseTokenSource]:
        source_id = make_source_id(descriptor)
        if source_id in self._sources:
            _log.warning("Source already exists: %s", source_id)
            return None

        try:
            source = create_source(descriptor, self.assets_dir)
        except ValueError as e:
            _log.error("Failed to create source %s: %s", source_id, e)
            return None

        if not await source.validate():
            _log.warning("Source validation failed, skipping: %s", source_id)
            source.dispose()
            return None

        self._sources[source_id] = source
        if self.watch_enabled:
            self._loop = asyncio.get_running_loop()
            source.watch(lambda: self._schedule_change(source_id))

        _log.info("Source added: %s (%s)", source_id, source.get_description())
        return source

    def _schedule_change(self, source_id: str) -> None:
        """Hand a file-change signal from a watcher thread to the event loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._spawn_change, source_id)

    def _spawn_change(self, source_id: str) -> None:
        task = asyncio.ensure_future(self.handle_source_change(source_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _reset_index(self) -> None:
        self.registry.clear()
        self._candidates.clear()
        self._contributed.clear()

    def _dispose_sources(self) -> None:
        for source in self._sources.values():
            source.dispose()
        self._sources.clear()
