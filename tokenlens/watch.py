"""
File watching for token sources.

Wraps watchdog observers so that a source file (or a project tree) can be
monitored, and batches rapid change events with a debouncer before handing
them on.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

_log = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3


# =============================================================================
# Debouncer
# =============================================================================


class Debouncer:
    """Batches rapid events into a single callback.

    Collects events for `delay` seconds after the last one, then calls
    `callback` once with every distinct path seen, in arrival order.
    """

    def __init__(self, delay: float, callback: Callable[[list[Path]], None]):
        self.delay = delay
        self.callback = callback
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._pending_paths: list[Path] = []

    def trigger(self, path: Path) -> None:
        """Register a change event. Resets the debounce timer."""
        with self._lock:
            if path not in self._pending_paths:
                self._pending_paths.append(path)

            if self._timer is not None:
                self._timer.cancel()

            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            if not self._pending_paths:
                return
            paths = list(self._pending_paths)
            self._pending_paths.clear()
            self._timer = None

        self.callback(paths)

    def cancel(self) -> None:
        """Cancel any pending debounce timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending_paths.clear()


# =============================================================================
# Event Handlers
# =============================================================================


class _SingleFileHandler(FileSystemEventHandler):
    """Forwards events that touch one specific file."""

    def __init__(self, target: Path, on_event: Callable[[Path], None]):
        super().__init__()
        self.target = target
        self.on_event = on_event

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in ("modified", "created", "deleted", "moved"):
            return

        touched = [Path(str(event.src_path))]
        dest = getattr(event, "dest_path", "")
        if dest:
            touched.append(Path(str(dest)))

        if any(_same_file(p, self.target) for p in touched):
            self.on_event(self.target)


class _TreeHandler(FileSystemEventHandler):
    """Forwards file creations and deletions under a directory tree."""

    def __init__(
        self,
        on_created: Callable[[Path], None],
        on_deleted: Callable[[Path], None],
    ):
        super().__init__()
        self.on_created_path = on_created
        self.on_deleted_path = on_deleted

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.on_created_path(Path(str(event.src_path)))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.on_deleted_path(Path(str(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self.on_deleted_path(Path(str(event.src_path)))
        self.on_created_path(Path(str(event.dest_path)))


def _same_file(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return a == b


# =============================================================================
# Watchers
# =============================================================================


class FileWatcher:
    """Watches a single file and calls `on_change` after changes settle.

    The callback runs on a timer thread, not the caller's thread.
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], None],
        delay: float = DEBOUNCE_SECONDS,
    ):
        self.path = Path(path)
        self._debouncer = Debouncer(delay, lambda _paths: on_change())
        self._observer: Optional[Observer] = None

    def start(self) -> None:
        if self._observer is not None:
            return
        handler = _SingleFileHandler(self.path, self._debouncer.trigger)
        observer = Observer()
        observer.schedule(handler, str(self.path.parent), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        _log.debug("Watching %s", self.path)

    def stop(self) -> None:
        self._debouncer.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=2)
            self._observer = None
            _log.debug("Stopped watching %s", self.path)

    @property
    def running(self) -> bool:
        return self._observer is not None


class TreeWatcher:
    """Watches a directory tree for created and deleted files."""

    def __init__(
        self,
        root: Path,
        on_created: Callable[[Path], None],
        on_deleted: Callable[[Path], None],
    ):
        self.root = Path(root)
        self._handler = _TreeHandler(on_created, on_deleted)
        self._observer: Optional[Observer] = None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(self._handler, str(self.root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        _log.debug("Watching tree %s", self.root)

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=2)
            self._observer = None
