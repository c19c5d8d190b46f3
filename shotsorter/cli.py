"""Command-line entry point.

    shotsorter ~/Downloads            # file existing screenshots, then exit
    shotsorter ~/Downloads --watch    # ...and keep filing new ones until Ctrl+C
"""
import argparse
import logging
import os
import signal
from pathlib import Path
from typing import List

from .config import OrganizerConfig
from .default_rules import (
    BUCKET_FORMATS,
    DEFAULT_BUCKET,
    DEFAULT_DUPLICATE_POLICY,
    DEFAULT_SETTLE_CHECKS,
    DEFAULT_SETTLE_INTERVAL,
    DUPLICATE_POLICIES,
    LOG_LEVEL_ENV,
)
from .errors import StartupError
from .organizer import Organizer

logger = logging.getLogger("shotsorter")

EXIT_OK = 0
EXIT_STARTUP = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="shotsorter",
        description="Move stream screenshots from a downloads folder into per-channel folders.",
    )
    p.add_argument("path", type=Path, help="Path to process for screenshots (e.g., your Downloads folder).")
    p.add_argument(
        "-w", "--watch",
        action="store_true",
        help="Keep running and move new screenshots as they appear.",
    )
    p.add_argument(
        "--bucket",
        choices=sorted(BUCKET_FORMATS),
        default=DEFAULT_BUCKET,
        help="Date folder under each channel (default: %(default)s).",
    )
    p.add_argument(
        "--duplicates",
        choices=DUPLICATE_POLICIES,
        default=DEFAULT_DUPLICATE_POLICY,
        help="What to do with a file identical to one already filed (default: %(default)s).",
    )
    p.add_argument(
        "--settle-interval",
        type=float,
        default=DEFAULT_SETTLE_INTERVAL,
        metavar="SECONDS",
        help="Seconds between size checks on a new file (default: %(default)s).",
    )
    p.add_argument(
        "--settle-checks",
        type=int,
        default=DEFAULT_SETTLE_CHECKS,
        metavar="N",
        help="Give up on a file whose size is still changing after N checks (default: %(default)s).",
    )
    p.add_argument(
        "--polling",
        action="store_true",
        help="Poll the folder instead of using native filesystem notifications.",
    )
    p.add_argument("--dry-run", action="store_true", help="Print actions but do not move/create anything.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return p


def configure_logging(verbose: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def install_signal_handlers(organizer: Organizer) -> dict:
    """Route SIGINT/SIGTERM to organizer.stop(); returns the handlers replaced."""
    def _handle(signum, frame):
        logger.info("Received %s, finishing current file and stopping", signal.Signals(signum).name)
        organizer.stop()

    previous = {}
    for name in ("SIGINT", "SIGTERM"):
        signum = getattr(signal, name, None)
        if signum is not None:
            previous[signum] = signal.signal(signum, _handle)
    return previous


def restore_signal_handlers(previous: dict) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    logger.debug("Args were: %s", args)

    try:
        config = OrganizerConfig(
            root=args.path,
            watch=args.watch,
            bucket=args.bucket,
            duplicates=args.duplicates,
            settle_interval=args.settle_interval,
            settle_checks=args.settle_checks,
            polling=args.polling,
            dry_run=args.dry_run,
        )
        organizer = Organizer(config)
    except StartupError as exc:
        logger.error("Cannot start: %s", exc)
        return EXIT_STARTUP

    previous = install_signal_handlers(organizer)
    try:
        return organizer.run()
    finally:
        restore_signal_handlers(previous)
