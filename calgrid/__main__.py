"""Command-line entry for calgrid.

Builds a session from the given calendars and prints one grid view as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import NoReturn, Optional

import yaml

from .config_loader import load_config
from .exceptions import CalGridError
from .logging_config import configure_logging, init_console_logging
from .models import GridView
from .session import CalendarSession

logger = logging.getLogger(__name__)


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the calgrid CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="calgrid",
        description="calgrid - combine weekly calendars into one availability grid",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  calgrid --ical alice=https://example.com/alice.ics --manual bob=A1,A2,B3
  calgrid --manual bob=A1,A2 --view bob
        """,
    )
    parser.add_argument(
        "--ical",
        action="append",
        default=[],
        metavar="NAME=URL",
        help="Add the current week of an iCalendar feed (repeatable)",
    )
    parser.add_argument(
        "--manual",
        action="append",
        default=[],
        metavar="NAME=IDS",
        help="Add a manual calendar from comma separated slot ids (repeatable)",
    )
    parser.add_argument(
        "--view",
        metavar="NAME",
        help="Show one person's calendar instead of the combined grid",
    )
    parser.add_argument("--config", metavar="PATH", help="Path to a calgrid YAML config file")
    parser.add_argument("--log-level", metavar="LEVEL", help="Logging level (default: INFO)")
    return parser


def _split_pair(value: str, option: str) -> tuple[str, str]:
    name, sep, rest = value.partition("=")
    if not sep or not name.strip():
        raise CalGridError(f"{option} expects NAME=VALUE, got {value!r}")
    return name.strip(), rest.strip()


async def _run(args: argparse.Namespace, session: CalendarSession) -> GridView:
    for value in args.ical:
        name, url = _split_pair(value, "--ical")
        await session.setup_ical(name, url)

    for value in args.manual:
        name, ids = _split_pair(value, "--manual")
        session.setup_manual(name, [slot_id.strip() for slot_id in ids.split(",") if slot_id.strip()])

    if args.view:
        return session.view_calendar(args.view)
    if len(session.store) == 0:
        return session.reset_view()
    return session.view_combined()


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the calgrid CLI."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    init_console_logging(args.log_level or os.environ.get("CALGRID_LOG_LEVEL"))
    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: cannot load configuration: {exc}", file=sys.stderr)
        sys.exit(1)
    configure_logging(debug_mode=(args.log_level or config.log_level).upper() == "DEBUG")

    session = CalendarSession(config)
    try:
        view = asyncio.run(_run(args, session))
    except KeyError as exc:
        print(f"No calendar registered for {exc.args[0]!r}", file=sys.stderr)
        sys.exit(1)
    except CalGridError as exc:
        logger.debug("calgrid failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        session.close()

    print(view.model_dump_json(indent=2))
    sys.exit(0)


if __name__ == "__main__":
    main()
