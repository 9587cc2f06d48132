from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from millsync.app import ALL_SOURCES, Source, check_ledger_health, sync_sources
from millsync.common.logging import configure_logging
from millsync.config import get_storage_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

_SOURCES_BY_COMMAND: dict[str, tuple[Source, ...]] = {
    "dwx": (Source.DWX,),
    "od": (Source.OD_LOG,),
    "xml": (Source.XML,),
    "all": ALL_SOURCES,
}


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return number


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="millsync",
        description="Reconcile milling machine artifacts with the remote order ledger",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log matcher and HTTP details at DEBUG level",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        help="Directory for the daily log files (defaults to MILLSYNC_LOG_DIR or the data dir)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("dwx", help="Sync DWX-52D JSON job records")
    od = subparsers.add_parser("od", help="Sync CAMeleon CS od-log files")
    od.add_argument(
        "--limit",
        type=_positive_int,
        help="Only process the newest N od-log files",
    )
    subparsers.add_parser("xml", help="Sync XML order folders")
    every = subparsers.add_parser("all", help="Sync DWX-52D, od-log and XML sources in order")
    every.add_argument(
        "--limit",
        type=_positive_int,
        help="Only process the newest N od-log files",
    )
    subparsers.add_parser("health", help="Check that the order ledger is reachable")

    return parser.parse_args(list(argv))


def _setup_logging(args: argparse.Namespace) -> None:
    level = logging.DEBUG if args.verbose else logging.INFO
    try:
        log_dir = args.log_dir or get_storage_config().resolve_log_dir()
        configure_logging(level=level, log_dir=log_dir)
    except OSError as exc:
        configure_logging(level=level, force=True)
        log.warning("Logging to the console only, cannot open log files: %s", exc)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    _setup_logging(parsed_args)

    try:
        if parsed_args.command == "health":
            report = check_ledger_health()
            if not report.ok:
                sys.exit(1)
            return

        summary = sync_sources(
            _SOURCES_BY_COMMAND[parsed_args.command],
            od_limit=getattr(parsed_args, "limit", None),
        )
        if summary.failed:
            log.warning("%s jobs or artifacts failed, see the error log", summary.failed)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
