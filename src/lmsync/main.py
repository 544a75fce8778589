# src/lmsync/main.py
"""CLI entry point: clean, cache, cancel commands.

Usage:
    lmsync clean <file> [-o out.html]
    lmsync cache clear [--course ID]
    lmsync cache status <locator>...
    lmsync cancel
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from lmsync.cache.adapter_factory import create_cache_adapter
from lmsync.cache.cache_service import CacheService
from lmsync.config.settings import ConfigurationError, Settings
from lmsync.logging.logger import setup_logging_from_settings
from lmsync.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Run one sub-command and return its exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    setup_logging_from_settings(settings, verbose=args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="lmsync",
        description=f"lmsync v{__version__} - LMS content cache and sync tools",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- clean ---
    p_clean = subparsers.add_parser(
        "clean", help="Clean an HTML file for reading",
    )
    p_clean.add_argument("file", type=Path, help="Path to HTML file")
    p_clean.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write cleaned HTML here (default: stdout)",
    )
    p_clean.set_defaults(func=_cmd_clean)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Inspect or clear the server cache")
    cache_sub = p_cache.add_subparsers(dest="cache_command")

    p_clear = cache_sub.add_parser("clear", help="Clear cached content")
    p_clear.add_argument(
        "--course", type=int, default=None,
        help="Only drop the cached structure of this course",
    )
    p_clear.set_defaults(func=_cmd_cache_clear)

    p_status = cache_sub.add_parser("status", help="Report whether locators are cached")
    p_status.add_argument("locators", nargs="+", help="Content locators (URLs)")
    p_status.set_defaults(func=_cmd_cache_status)

    # --- cancel ---
    p_cancel = subparsers.add_parser(
        "cancel", help="Ask a running sync sharing this cache to stop",
    )
    p_cancel.set_defaults(func=_cmd_cancel)

    return parser


async def _cmd_clean(args: argparse.Namespace, settings: Settings) -> int:
    """Run the content cleaner over one file."""
    from lmsync.content.cleaner import clean

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    cleaned = clean(file_path.read_text(encoding="utf-8", errors="replace"))
    if args.output:
        args.output.write_text(cleaned, encoding="utf-8")
        logger.info("Wrote %s (%d chars)", args.output, len(cleaned))
    else:
        sys.stdout.write(cleaned)
    return 0


async def _cmd_cache_clear(args: argparse.Namespace, settings: Settings) -> int:
    """Clear the whole cache or one course structure."""
    cache = _open_cache(settings)
    if args.course is not None:
        status = await cache.clear_course(args.course)
    else:
        status = await cache.clear_all()
    print(status.message)
    return 0 if status.success else 1


async def _cmd_cache_status(args: argparse.Namespace, settings: Settings) -> int:
    """Print cached / not cached for each locator."""
    cache = _open_cache(settings)
    for locator in args.locators:
        hit = await cache.is_activity_cached(locator)
        print(f"{'cached' if hit else 'missing':8s} {cache.fingerprint(locator)}  {locator}")
    return 0


async def _cmd_cancel(args: argparse.Namespace, settings: Settings) -> int:
    """Set the process-wide cancellation marker."""
    cache = _open_cache(settings)
    await cache.set_cancel_flag()
    print("Cancellation requested")
    return 0


def _open_cache(settings: Settings) -> CacheService:
    return CacheService(create_cache_adapter(settings))
