"""
Command handlers for the tokenlens CLI.

Each cmd_* function takes the parsed argparse namespace and returns an exit
code. Token sources are loaded fresh for every invocation.
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .aggregator import SourceAggregator
from .config import Settings, load_settings
from .discovery import TokenFileDiscovery
from .models import Theme, TokenCategory, TokenRecord, normalize_token_name
from .registry import TokenRegistry
from .scanner import TextDocument, TokenScanner
from .utils import DEFAULT_CONFIG_NAME, log


# =============================================================================
# Session Setup
# =============================================================================


@dataclass
class Session:
    """Loaded sources for one CLI invocation."""

    root: Path
    settings: Settings
    registry: TokenRegistry
    aggregator: SourceAggregator
    discovery: Optional[TokenFileDiscovery] = None

    def close(self) -> None:
        if self.discovery is not None:
            self.discovery.dispose()
        self.aggregator.dispose()


def resolve_config_path(args: argparse.Namespace) -> Path:
    root = Path(args.root).resolve()
    if args.config:
        return Path(args.config).resolve()
    return root / DEFAULT_CONFIG_NAME


async def open_session(args: argparse.Namespace, watch: bool = False) -> Session:
    """Load settings, initialize the aggregator and run discovery."""
    root = Path(args.root).resolve()
    config_path = resolve_config_path(args)
    if args.config and not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}")

    settings = load_settings(config_path)
    registry = TokenRegistry()
    aggregator = SourceAggregator(registry, watch=watch)
    session = Session(root, settings, registry, aggregator)

    results = await aggregator.initialize(settings.resolved_sources(config_path.parent))
    for result in results:
        if not result.success:
            log.warning(f"{result.source_id}: {result.error}")

    if settings.enable_auto_scan:
        session.discovery = TokenFileDiscovery(
            aggregator, root, patterns=settings.auto_scan_patterns
        )
        if watch:
            await session.discovery.start()
        else:
            await session.discovery.scan()

    return session


def load_session(args: argparse.Namespace) -> Session:
    return asyncio.run(open_session(args))


def _format_record(record: TokenRecord) -> str:
    detail = record.value
    if record.description:
        detail += f"  {log.colorize(record.description, 'dim')}"
    return detail


# =============================================================================
# Commands
# =============================================================================


def cmd_list(args: argparse.Namespace) -> int:
    """List active tokens of one theme."""
    session = load_session(args)
    try:
        theme = Theme(args.theme)
        records = session.registry.get_by_theme(theme)
        if args.category:
            category = TokenCategory(args.category)
            records = [r for r in records if r.category is category]

        log.header(f"{theme.value.capitalize()} tokens ({len(records)})")
        for record in sorted(records, key=lambda r: r.name):
            log.table_row(record.name, _format_record(record))
        return 0
    finally:
        session.close()


def cmd_search(args: argparse.Namespace) -> int:
    """Search tokens by name."""
    session = load_session(args)
    try:
        theme = Theme(args.theme) if args.theme else None
        results = session.registry.search(args.keyword, theme)

        if not results:
            log.warning(f"No tokens match '{args.keyword}'")
            return 1

        log.header(f"Tokens matching '{args.keyword}' ({len(results)})")
        for record in results[: args.limit]:
            log.table_row(record.name, f"[{record.theme.value}] {record.value}")
        if len(results) > args.limit:
            log.dim(f"... {len(results) - args.limit} more")
        return 0
    finally:
        session.close()


def cmd_get(args: argparse.Namespace) -> int:
    """Show the active value per theme plus every contribution."""
    session = load_session(args)
    try:
        name = normalize_token_name(args.name)
        if not session.registry.has(name):
            log.error(f"Unknown token: {name}")
            return 1

        log.header(name)
        for theme in Theme:
            record = session.registry.get(name, theme)
            if record is None:
                log.table_row(theme.value, log.colorize("(not defined)", "dim"), 8)
                continue
            log.table_row(theme.value, record.value, 8)

        contributions = session.registry.get_all(name)
        log.table_row("category", contributions[0].category.value, 8)
        # User sources carry no descriptions; take the bundled one
        description = next((r.description for r in contributions if r.description), None)
        if description:
            log.table_row("meaning", description, 8)

        log.header("Contributions")
        for record in contributions:
            log.table_row(
                f"{record.source_id} (priority {record.priority})",
                f"[{record.theme.value}] {record.value}",
            )
        return 0
    finally:
        session.close()


def cmd_scan(args: argparse.Namespace) -> int:
    """Find token references in files."""
    session = load_session(args)
    scanner = TokenScanner()
    total = 0
    unknown = 0

    try:
        for file_arg in args.files:
            path = Path(file_arg)
            if not path.is_file():
                log.error(f"Not a file: {path}")
                return 1

            document = TextDocument.from_path(path)
            if not scanner.is_supported_document(document):
                log.dim(f"Skipping unsupported file: {path}")
                continue

            matches = scanner.scan_document(document)
            if args.unknown:
                matches = [m for m in matches if not session.registry.has(m.token_name)]
            if not matches:
                continue

            log.header(str(path))
            for match in matches:
                start = match.range.start
                record = session.registry.get(match.token_name)
                if record is None:
                    unknown += 1
                    detail = log.colorize("unknown", "yellow")
                else:
                    detail = record.value
                if match.fallback:
                    detail += f" (fallback {match.fallback})"
                log.table_row(f"{start.line + 1}:{start.character + 1} {match.token_name}", detail, 48)
                total += 1
    finally:
        session.close()

    log.info(f"{total} references, {unknown} unknown")
    return 1 if args.unknown and unknown else 0


def cmd_sources(args: argparse.Namespace) -> int:
    """Show every active source."""
    session = load_session(args)
    try:
        info = session.aggregator.get_sources_info()
        log.header(f"Token sources ({len(info)})")
        for entry in sorted(info, key=lambda e: e["priority"]):
            state = "" if entry["enabled"] else " (disabled)"
            log.table_row(
                f"{entry['priority']:>4}  {entry['description']}{state}",
                f"{entry['tokens']} tokens",
                48,
            )
            log.dim(f"      {entry['id']}")

        log.info(
            f"{session.registry.unique_size} token names, "
            f"{session.registry.size} records"
        )
        return 0
    finally:
        session.close()


def cmd_watch(args: argparse.Namespace) -> int:
    """Keep sources loaded and report token changes until interrupted."""
    asyncio.run(_watch(args))
    return 0


async def _watch(args: argparse.Namespace) -> None:
    session = await open_session(args, watch=True)

    def on_tokens_changed() -> None:
        log.success(
            f"Tokens updated: {session.registry.unique_size} names, "
            f"{session.registry.size} records"
        )

    def on_sources_changed() -> None:
        log.info(f"Source set changed: {len(session.aggregator.sources)} sources")

    session.aggregator.on_tokens_changed.connect(on_tokens_changed)
    session.aggregator.on_sources_changed.connect(on_sources_changed)

    log.header(f"Watching {session.root}")
    log.info(f"{len(session.aggregator.sources)} sources, {session.registry.unique_size} tokens")
    log.dim("Press Ctrl+C to stop")

    try:
        await asyncio.Event().wait()
    finally:
        session.close()
