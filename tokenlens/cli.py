"""
Main CLI for the tokenlens tool.

Loads the token sources of a project and lets you query the merged token set
or find token references in files.
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .utils import log


# =============================================================================
# Argument Parsing
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with all subcommands."""

    # Main parser
    parser = argparse.ArgumentParser(
        prog="tokenlens",
        description="Design token explorer for Ant Design style CSS variables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  list        List active tokens
  search      Search tokens by name
  get         Show one token in every theme and source
  scan        Find var(--token) references in files
  sources     Show configured and discovered token sources
  watch       Keep sources loaded and report token changes

Examples:
  tokenlens list --category color         # Active color tokens (light theme)
  tokenlens search primary --theme dark   # Dark tokens containing 'primary'
  tokenlens get --ant-color-primary       # Values and contributing sources
  tokenlens scan src/app.css              # References with line:column
  tokenlens --root ../web sources         # Sources of another project
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--root",
        default=".",
        help="Project root (default: current directory)",
    )

    parser.add_argument(
        "--config",
        help="Settings file (default: <root>/tokenlens.yaml)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show library diagnostics",
    )

    # Subparsers
    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # --- list ---
    list_parser = subparsers.add_parser(
        "list",
        help="List active tokens",
        description="List the active token for every name in one theme.",
    )
    list_parser.add_argument(
        "--theme",
        choices=["light", "dark"],
        default="light",
        help="Theme to list (default: light)",
    )
    list_parser.add_argument(
        "--category",
        choices=[
            "color", "size", "font", "line", "motion",
            "shadow", "zIndex", "opacity", "other",
        ],
        help="Only list tokens of this category",
    )

    # --- search ---
    search_parser = subparsers.add_parser(
        "search",
        help="Search tokens by name",
        description="Case-insensitive name search; exact and prefix matches first.",
    )
    search_parser.add_argument(
        "keyword",
        help="Text to look for in token names",
    )
    search_parser.add_argument(
        "--theme",
        choices=["light", "dark"],
        help="Only search active tokens of this theme",
    )
    search_parser.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Maximum number of results (default: 50)",
    )

    # --- get ---
    get_parser = subparsers.add_parser(
        "get",
        help="Show one token in every theme and source",
        prefix_chars="+",
    )
    get_parser.add_argument(
        "name",
        help="Token name (the '--' prefix is optional)",
    )

    # --- scan ---
    scan_parser = subparsers.add_parser(
        "scan",
        help="Find var(--token) references in files",
    )
    scan_parser.add_argument(
        "files",
        nargs="+",
        help="Files to scan",
    )
    scan_parser.add_argument(
        "--unknown",
        action="store_true",
        help="Only report references to tokens no source defines",
    )

    # --- sources ---
    subparsers.add_parser(
        "sources",
        help="Show configured and discovered token sources",
    )

    # --- watch ---
    subparsers.add_parser(
        "watch",
        help="Keep sources loaded and report token changes",
        description="Watch source files and report token changes until Ctrl+C.",
    )

    return parser


# =============================================================================
# Main Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Handle --no-color
    if args.no_color:
        log.set_color(False)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # No command specified
    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handler
    try:
        if args.command == "list":
            from .commands import cmd_list
            return cmd_list(args)

        elif args.command == "search":
            from .commands import cmd_search
            return cmd_search(args)

        elif args.command == "get":
            from .commands import cmd_get
            return cmd_get(args)

        elif args.command == "scan":
            from .commands import cmd_scan
            return cmd_scan(args)

        elif args.command == "sources":
            from .commands import cmd_sources
            return cmd_sources(args)

        elif args.command == "watch":
            from .commands import cmd_watch
            return cmd_watch(args)

        else:
            log.error(f"Unknown command: {args.command}")
            return 1

    except KeyboardInterrupt:
        log.warning("\nInterrupted")
        return 130
    except Exception as e:
        log.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
