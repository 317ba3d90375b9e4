"""
quoteflow.cli
=============

Command-line entry point (``quoteflow``).

Examples
--------
$ quoteflow sweep                        # run today's sweeps once
$ quoteflow sweep --today 2024-01-01 --json
$ quoteflow schedule                     # block and fire daily
$ quoteflow init-db                      # create the local SQLite tables
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from datetime import date
from functools import partial
from typing import List, Optional

from .errors import FetchFailure
from .jobs import daily_job
from .logs import setup_logging
from .settings import LOG_LEVEL
from .stores import BACKENDS

logger = logging.getLogger(__name__)


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quoteflow",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Quote expiration sweeps
            -----------------------
            sweep     Run the expiration (and tender) sweep once
            schedule  Run the sweeps every day at the configured time
            init-db   Create the local SQLite tables
            """
        ),
    )
    parser.add_argument("--log-level", default=LOG_LEVEL, help="root log level")
    sub = parser.add_subparsers(dest="command", required=True)

    sweep = sub.add_parser("sweep", help="run the sweeps once")
    sweep.add_argument("--today", type=_iso_date, help="evaluate deadlines as of this date")
    sweep.add_argument("--backend", choices=BACKENDS, help="quote store backend")
    sweep.add_argument("--no-tender", action="store_true", help="skip the tender sweep")
    sweep.add_argument("--json", action="store_true", help="print the reports as JSON")

    schedule = sub.add_parser("schedule", help="run the sweeps on the daily schedule")
    schedule.add_argument("--backend", choices=BACKENDS, help="quote store backend")

    sub.add_parser("init-db", help="create the local SQLite tables")
    return parser


def _cmd_sweep(args: argparse.Namespace) -> int:
    try:
        reports = daily_job(args.backend, today=args.today,
                            include_tender=False if args.no_tender else None)
    except FetchFailure as e:
        logger.error(str(e))
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([r.to_dict() for r in reports], indent=2))
    else:
        for r in reports:
            print(f"{r.kind}: {r.total} quotes, {r.expired} selected, counts={r.counts}")
            for failure in r.failures:
                print(f"  ! {failure.quote_id}: {failure.outcome.value} {failure.step or ''} {failure.error}")
    return 0


def _cmd_schedule(args: argparse.Namespace) -> int:
    from .scheduler import SweepTrigger

    trigger = SweepTrigger(partial(daily_job, args.backend), blocking=True)
    try:
        trigger.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
    return 0


def _cmd_init_db(args: argparse.Namespace) -> int:
    from .db import create_all

    create_all()
    print("✅ quoteflow.db schema initialised")
    return 0


COMMANDS = {
    "sweep": _cmd_sweep,
    "schedule": _cmd_schedule,
    "init-db": _cmd_init_db,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level.upper())
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
