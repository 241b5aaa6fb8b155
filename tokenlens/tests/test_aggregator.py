"""
Tests for multi-source aggregation and conflict resolution.

Most tests disable watching and drive change handling by calling
handle_source_change() directly; TestWatching covers the watcher path.
"""

from __future__ import annotations

import asyncio
from itertools import permutations
from pathlib import Path

import pytest

from ..aggregator import SourceAggregator
from ..config import SourceDescriptor
from ..models import Theme
from ..registry import TokenRegistry


def css(path: Path, priority: int) -> SourceDescriptor:
    return SourceDescriptor(type="css", path=str(path), priority=priority, watch=False)


def active_snapshot(registry: TokenRegistry) -> dict:
    """(name, theme) -> (value, source_id) for every active record."""
    return {
        record.key: (record.value, record.source_id)
        for theme in Theme
        for record in registry.get_by_theme(theme)
    }


@pytest.fixture
def aggregator(registry, assets_dir) -> SourceAggregator:
    agg = SourceAggregator(registry, assets_dir=assets_dir, watch=False)
    yield agg
    agg.dispose()


# =============================================================================
# Initialization
# =============================================================================


class TestInitialize:
    def test_builtin_only(self, aggregator, registry):
        results = asyncio.run(aggregator.initialize())

        assert [r.source_id for r in results] == ["builtin"]
        assert results[0].success
        assert registry.get("--ant-color-primary", Theme.LIGHT).value == "#1677ff"
        assert registry.get("--ant-color-primary", Theme.DARK).value == "#1668dc"

    def test_builtin_is_always_added(self, aggregator, write_file):
        path = write_file("tokens.css", ":root { --a: 1px; }")
        asyncio.run(aggregator.initialize([css(path, 10)]))

        assert set(aggregator.sources) == {"builtin", f"stylesheet:{path}"}

    def test_invalid_source_is_dropped(self, aggregator, tmp_path):
        results = asyncio.run(aggregator.initialize([css(tmp_path / "missing.css", 10)]))

        assert set(aggregator.sources) == {"builtin"}
        assert all(r.success for r in results)

    def test_failing_source_does_not_stop_others(self, aggregator, registry, tmp_path, write_file):
        broken = tmp_path / "broken.css"
        broken.write_bytes(b"\xff\xfe:root { --x: 1px; }")
        good = write_file("good.css", ":root { --good-size: 2px; }")

        results = asyncio.run(aggregator.initialize([css(broken, 10), css(good, 20)]))
        by_id = {r.source_id: r for r in results}

        assert not by_id[f"stylesheet:{broken}"].success
        assert str(broken) in by_id[f"stylesheet:{broken}"].error
        assert by_id[f"stylesheet:{good}"].success
        assert registry.get("--good-size", Theme.LIGHT).value == "2px"

    def test_tokens_changed_fires_once(self, aggregator, write_file):
        paths = [write_file(f"t{i}.css", f":root {{ --t{i}: 1px; }}") for i in range(3)]
        fired = []
        aggregator.on_tokens_changed.connect(lambda: fired.append(True))

        asyncio.run(aggregator.initialize([css(p, 10 + i) for i, p in enumerate(paths)]))
        assert len(fired) == 1

    def test_reinitialize_discards_previous_sources(self, aggregator, registry, write_file):
        path = write_file("tokens.css", ":root { --only-here: 1px; }")
        asyncio.run(aggregator.initialize([css(path, 10)]))
        asyncio.run(aggregator.initialize())

        assert set(aggregator.sources) == {"builtin"}
        assert not registry.has("--only-here")


# =============================================================================
# Conflict Resolution
# =============================================================================


class TestConflictResolution:
    """Lower priority wins, whatever order the sources load in."""

    def test_user_source_overrides_builtin(self, aggregator, registry, write_file):
        path = write_file("tokens.css", ":root { --ant-color-primary: #ff0000; }")
        asyncio.run(aggregator.initialize([css(path, 10)]))

        active = registry.get("--ant-color-primary", Theme.LIGHT)
        assert active.value == "#ff0000"
        assert active.source_id == f"stylesheet:{path}"
        # The dark value is untouched
        assert registry.get("--ant-color-primary", Theme.DARK).value == "#1668dc"
        # Both contributions stay in the audit trail
        assert len(registry.get_all("--ant-color-primary")) == 3

    def test_less_authoritative_source_does_not_displace(self, aggregator, registry, write_file):
        strong = write_file("strong.css", ":root { --x-size: 1px; }")
        weak = write_file("weak.css", ":root { --x-size: 2px; }")

        asyncio.run(aggregator.initialize([css(strong, 5), css(weak, 50)]))
        assert registry.get("--x-size", Theme.LIGHT).value == "1px"

    def test_equal_priority_is_broken_by_source_id(self, aggregator, registry, write_file):
        a = write_file("a.css", ":root { --x-size: 1px; }")
        b = write_file("b.css", ":root { --x-size: 2px; }")

        asyncio.run(aggregator.initialize([css(b, 10), css(a, 10)]))
        assert registry.get("--x-size", Theme.LIGHT).source_id == f"stylesheet:{a}"

    def test_load_order_independence(self, assets_dir, write_file):
        """Every permutation of source order yields the same active set."""
        files = [
            (write_file("one.css", ":root { --ant-color-primary: #111111; --x-size: 1px; }"), 10),
            (write_file("two.css", ":root { --ant-color-primary: #222222; --y-size: 2px; }"), 10),
            (write_file("three-dark.css", ":root { --ant-color-primary: #333333; --x-size: 3px; }"), 5),
            (write_file("four.css", ":root { --x-size: 4px; --ant-font-size: 13px; }"), 60),
        ]

        snapshots = []
        for order in permutations(files):
            registry = TokenRegistry()
            aggregator = SourceAggregator(registry, assets_dir=assets_dir, watch=False)
            asyncio.run(aggregator.initialize([css(path, priority) for path, priority in order]))
            snapshots.append(active_snapshot(registry))
            aggregator.dispose()

        assert all(snapshot == snapshots[0] for snapshot in snapshots)
        assert snapshots[0][("--ant-color-primary", Theme.LIGHT)][0] == "#111111"
        assert snapshots[0][("--ant-color-primary", Theme.DARK)][0] == "#333333"
        assert snapshots[0][("--ant-font-size", Theme.LIGHT)][0] == "13px"


# =============================================================================
# Source Set Changes
# =============================================================================


class TestSourceSet:
    def test_add_source(self, aggregator, registry, write_file):
        path = write_file("tokens.css", ":root { --ant-color-primary: #00ff00; }")
        events = []
        aggregator.on_sources_changed.connect(lambda: events.append("sources"))
        aggregator.on_tokens_changed.connect(lambda: events.append("tokens"))

        async def scenario():
            await aggregator.initialize()
            events.clear()
            return await aggregator.add_source(css(path, 10))

        assert asyncio.run(scenario()) is True
        assert events == ["sources", "tokens"]
        assert registry.get("--ant-color-primary", Theme.LIGHT).value == "#00ff00"

    def test_add_duplicate_is_rejected(self, aggregator, write_file):
        path = write_file("tokens.css", ":root { --a: 1px; }")

        async def scenario():
            await aggregator.initialize([css(path, 10)])
            return await aggregator.add_source(css(path, 20))

        assert asyncio.run(scenario()) is False

    def test_remove_source_keeps_tokens_until_reload(self, aggregator, registry, write_file):
        path = write_file("tokens.css", ":root { --ant-color-primary: #00ff00; --mine: 1px; }")
        source_id = f"stylesheet:{path}"
        fired = []

        async def scenario():
            await aggregator.initialize([css(path, 10)])
            aggregator.on_sources_changed.connect(lambda: fired.append(True))

            assert aggregator.remove_source(source_id)
            assert registry.get("--ant-color-primary", Theme.LIGHT).value == "#00ff00"
            assert registry.has("--mine")

            await aggregator.reload()

        asyncio.run(scenario())
        assert fired == [True]
        assert source_id not in aggregator.sources
        assert registry.get("--ant-color-primary", Theme.LIGHT).value == "#1677ff"
        assert not registry.has("--mine")

    def test_readded_source_at_lower_precedence_yields(self, aggregator, registry, write_file):
        """Re-adding a removed source at a worse priority hands the key over."""
        a = write_file("a.css", ":root { --gap: 1px; }")
        b = write_file("b.css", ":root { --gap: 2px; }")

        async def scenario():
            await aggregator.initialize([css(a, 10), css(b, 50)])
            assert registry.get("--gap", Theme.LIGHT).value == "1px"

            aggregator.remove_source(f"stylesheet:{a}")
            a.write_text(":root { --gap: 3px; }", encoding="utf-8")
            assert await aggregator.add_source(css(a, 60))

        asyncio.run(scenario())
        active = registry.get("--gap", Theme.LIGHT)
        assert (active.value, active.priority) == ("2px", 50)
        assert active.source_id == f"stylesheet:{b}"

    def test_remove_unknown_source(self, aggregator):
        assert aggregator.remove_source("stylesheet:/nope.css") is False

    def test_load_unknown_source(self, aggregator):
        result = asyncio.run(aggregator.load_source("stylesheet:/nope.css"))
        assert not result.success
        assert result.error == "Source not found"

    def test_sources_info(self, aggregator, write_file):
        path = write_file("tokens.css", ":root { --a: 1px; --b: 2px; }")
        asyncio.run(aggregator.initialize([css(path, 10)]))

        info = {entry["id"]: entry for entry in aggregator.get_sources_info()}
        assert info[f"stylesheet:{path}"]["tokens"] == 2
        assert info[f"stylesheet:{path}"]["priority"] == 10
        assert info["builtin"]["priority"] == 100
        assert info["builtin"]["type"] == "builtin"


# =============================================================================
# Partial Reload
# =============================================================================


class TestHandleSourceChange:
    def test_changed_value_is_picked_up(self, aggregator, registry, write_file):
        path = write_file("tokens.css", ":root { --x-size: 1px; }")

        async def scenario():
            await aggregator.initialize([css(path, 10)])
            path.write_text(":root { --x-size: 9px; }", encoding="utf-8")
            return await aggregator.handle_source_change(f"stylesheet:{path}")

        result = asyncio.run(scenario())
        assert result.success
        assert registry.get("--x-size", Theme.LIGHT).value == "9px"

    def test_removed_override_falls_back_to_next_candidate(self, aggregator, registry, write_file):
        path = write_file("tokens.css", ":root { --ant-color-primary: #ff0000; --mine: 1px; }")

        async def scenario():
            await aggregator.initialize([css(path, 10)])
            path.write_text(":root { --mine: 2px; }", encoding="utf-8")
            await aggregator.handle_source_change(f"stylesheet:{path}")

        asyncio.run(scenario())
        assert registry.get("--ant-color-primary", Theme.LIGHT).value == "#1677ff"
        assert registry.get("--mine", Theme.LIGHT).value == "2px"

    def test_removed_token_without_other_candidate_is_retracted(self, aggregator, registry, write_file):
        path = write_file("tokens.css", ":root { --gone-size: 1px; --kept-size: 2px; }")

        async def scenario():
            await aggregator.initialize([css(path, 10)])
            path.write_text(":root { --kept-size: 2px; }", encoding="utf-8")
            await aggregator.handle_source_change(f"stylesheet:{path}")

        asyncio.run(scenario())
        assert registry.get("--gone-size", Theme.LIGHT) is None
        assert registry.get("--kept-size", Theme.LIGHT).value == "2px"

    def test_change_fires_tokens_changed(self, aggregator, write_file):
        path = write_file("tokens.css", ":root { --x: 1px; }")
        fired = []

        async def scenario():
            await aggregator.initialize([css(path, 10)])
            aggregator.on_tokens_changed.connect(lambda: fired.append(True))
            await aggregator.handle_source_change(f"stylesheet:{path}")

        asyncio.run(scenario())
        assert fired == [True]

    def test_change_of_removed_source_is_ignored(self, aggregator):
        assert asyncio.run(aggregator.handle_source_change("stylesheet:/nope.css")) is None


class TestWatching:
    def test_file_change_reloads_source(self, registry, assets_dir, write_file):
        """A saved file reaches the registry through the watcher and the event loop."""
        path = write_file("tokens.css", ":root { --x-size: 1px; }")
        descriptor = SourceDescriptor(type="css", path=str(path), priority=10)

        async def scenario():
            aggregator = SourceAggregator(registry, assets_dir=assets_dir, watch=True)
            try:
                await aggregator.initialize([descriptor])
                changed = asyncio.Event()
                aggregator.on_tokens_changed.connect(changed.set)

                await asyncio.sleep(0.2)
                path.write_text(":root { --x-size: 7px; }", encoding="utf-8")
                await asyncio.wait_for(changed.wait(), timeout=5)
            finally:
                aggregator.dispose()

        asyncio.run(scenario())
        assert registry.get("--x-size", Theme.LIGHT).value == "7px"
