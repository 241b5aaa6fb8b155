"""
Tests for debouncing and file watching.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path

from watchdog.events import FileCreatedEvent, FileDeletedEvent, FileModifiedEvent, FileMovedEvent

from ..watch import Debouncer, FileWatcher, _SingleFileHandler, _TreeHandler


class TestDebouncer:
    """Tests for the event debouncer."""

    def test_burst_is_coalesced(self):
        calls: list[list[Path]] = []
        done = threading.Event()

        def callback(paths):
            calls.append(paths)
            done.set()

        debouncer = Debouncer(0.05, callback)
        for _ in range(5):
            debouncer.trigger(Path("a.css"))
        debouncer.trigger(Path("b.css"))

        assert done.wait(2)
        time.sleep(0.1)
        assert calls == [[Path("a.css"), Path("b.css")]]

    def test_cancel_drops_pending_events(self):
        calls = []
        debouncer = Debouncer(0.05, calls.append)
        debouncer.trigger(Path("a.css"))
        debouncer.cancel()

        time.sleep(0.15)
        assert calls == []


class TestHandlers:
    def test_single_file_handler_matches_target(self, tmp_path):
        target = tmp_path / "tokens.css"
        seen = []
        handler = _SingleFileHandler(target, seen.append)

        handler.on_any_event(FileModifiedEvent(str(tmp_path / "other.css")))
        handler.on_any_event(FileModifiedEvent(str(target)))
        handler.on_any_event(FileMovedEvent(str(tmp_path / "tmp.swp"), str(target)))

        assert seen == [target, target]

    def test_tree_handler(self, tmp_path):
        created, deleted = [], []
        handler = _TreeHandler(created.append, deleted.append)

        handler.on_created(FileCreatedEvent(str(tmp_path / "a.css")))
        handler.on_deleted(FileDeletedEvent(str(tmp_path / "b.css")))
        handler.on_moved(FileMovedEvent(str(tmp_path / "c.css"), str(tmp_path / "d.css")))

        assert created == [tmp_path / "a.css", tmp_path / "d.css"]
        assert deleted == [tmp_path / "b.css", tmp_path / "c.css"]


class TestFileWatcher:
    def test_change_triggers_callback(self, write_file):
        path = write_file("tokens.css", ":root { --a: 1px; }")
        changed = threading.Event()

        watcher = FileWatcher(path, changed.set, delay=0.05)
        watcher.start()
        try:
            assert watcher.running
            time.sleep(0.2)
            path.write_text(":root { --a: 2px; }", encoding="utf-8")
            assert changed.wait(5)
        finally:
            watcher.stop()

        assert not watcher.running
