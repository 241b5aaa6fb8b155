"""
Tests for change notifications.
"""

from __future__ import annotations

import logging

from ..events import Signal


class TestSignal:
    def test_fire_calls_listeners_in_order(self):
        calls = []
        signal = Signal("tokens changed")
        signal.connect(lambda: calls.append(1))
        signal.connect(lambda: calls.append(2))

        signal.fire()
        assert calls == [1, 2]

    def test_disconnect(self):
        calls = []
        signal = Signal("tokens changed")
        disconnect = signal.connect(lambda: calls.append(1))

        disconnect()
        disconnect()
        signal.fire()

        assert calls == []
        assert len(signal) == 0

    def test_failing_listener_does_not_stop_others(self, caplog):
        calls = []

        def broken():
            raise RuntimeError("boom")

        signal = Signal("tokens changed")
        signal.connect(broken)
        signal.connect(lambda: calls.append(1))

        with caplog.at_level(logging.ERROR):
            signal.fire()

        assert calls == [1]
        assert "Listener for tokens changed failed" in caplog.text
