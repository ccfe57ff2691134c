"""Command line entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from rich.console import Console

from . import __version__
from .compose import fetch_stack_status
from .config import Config
from .data import is_installed
from .exceptions import StackStatusError
from .logs import setup_logging
from .render import ConsoleSink, render_stack, to_json
from .watch import RefreshLoop

logger = logging.getLogger(__name__)

GH_WARNING = (
    "Warning: GitHub CLI (gh) not found. Install from https://cli.github.com/\n"
    "         CI status checks will not be available."
)
GT_WARNING = (
    "Warning: Graphite CLI (gt) not found. Install from https://graphite.dev/\n"
    "         Showing current branch only (no stack hierarchy)."
)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value}") from None
    if number < 1:
        raise argparse.ArgumentTypeError("interval must be at least 1 second")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stack-status",
        description="Display Graphite stack status with live CI check progress",
    )
    parser.add_argument("-w", "--watch", action="store_true", help="Watch mode: continuously refresh status")
    parser.add_argument(
        "-i", "--interval", type=_positive_int, default=None,
        help="Refresh interval in seconds (default: 10, or 'interval' from config)",
    )
    parser.add_argument("-b", "--branch", default=None, help="Show specific branch's stack (default: current branch)")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--mcp", action="store_true", help="Run as MCP server (stdio transport)")
    parser.add_argument("-d", "--details", action="store_true", help="Show detailed check information")
    parser.add_argument("-c", "--config", default=None, help="Path to a JSON or YAML config file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def _probe(config: Config) -> tuple[bool, bool]:
    return await asyncio.gather(
        is_installed(config.get_gt_command()),
        is_installed(config.get_gh_command()),
    )


def run_once(config: Config, args: argparse.Namespace, console: Console) -> int:
    try:
        status = asyncio.run(fetch_stack_status(config, args.branch))
    except StackStatusError as e:
        logger.debug("Snapshot failed: %s", e.details)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if args.json:
        print(to_json(status))
    else:
        console.print(render_stack(status, args.details or config.show_details()))
    return 0


def run_watch(config: Config, args: argparse.Namespace, console: Console) -> int:
    interval = args.interval or config.get_interval()
    details = args.details or config.show_details()

    def fetch():
        return fetch_stack_status(config, args.branch)

    if not args.json and console.is_terminal:
        from .app import StackStatusApp

        app = StackStatusApp(fetch, interval=interval, details=details)
        app.run()
        return app.return_code or 0

    loop = RefreshLoop(fetch, ConsoleSink(console, as_json=args.json), interval=interval, details=details)
    try:
        asyncio.run(loop.run())
    except KeyboardInterrupt:
        return 130
    except StackStatusError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the stack-status command."""
    args = build_parser().parse_args(argv)
    config = Config(args.config)
    setup_logging(config)

    if args.mcp:
        from .mcp_server import run_server

        run_server(config)
        return

    has_gt, has_gh = asyncio.run(_probe(config))
    if not has_gh:
        print(GH_WARNING, file=sys.stderr)
    if not has_gt:
        print(GT_WARNING, file=sys.stderr)

    console = Console()
    if args.watch:
        code = run_watch(config, args, console)
    else:
        code = run_once(config, args, console)
    sys.exit(code)


if __name__ == "__main__":
    main()
