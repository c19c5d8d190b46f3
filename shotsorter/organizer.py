"""Scan, then optionally watch, the downloads root and file screenshots by channel.

Per file: parse the name, plan the destination, move. A bad file never stops
the run; it becomes a skipped or failed PlacementResult and processing goes
on with the next one.
"""
import logging
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable

from .config import OrganizerConfig
from .errors import ShotSorterError, UnrecognizedFormat
from .models import Candidate, Outcome, PlacementResult, RunSummary
from .mover import SafeMover
from .parser import parse
from .planner import plan
from .scanner import FolderScanner
from .utils import ensure_root
from .watcher import Watcher

logger = logging.getLogger(__name__)


@dataclass
class Organizer:
    config: OrganizerConfig
    summary: RunSummary = field(default_factory=RunSummary)

    def __post_init__(self) -> None:
        root = ensure_root(self.config.root)
        self.config = replace(self.config, root=root)
        self.root = root
        self.scanner = FolderScanner(root, ignore_hidden=self.config.ignore_hidden)
        self.mover = SafeMover(duplicates=self.config.duplicates, dry_run=self.config.dry_run)
        self.watcher: Watcher | None = None
        self._stopping = threading.Event()

    # --------------------
    # per file
    # --------------------
    def process(self, path: Path) -> PlacementResult:
        try:
            identity = parse(path.name)
            dst = plan(identity, self.root, self.config.bucket)
            result = self.mover.move(path, dst)
        except UnrecognizedFormat as exc:
            result = PlacementResult.skipped(path, "not a screenshot", error=exc)
        except (ShotSorterError, OSError, ValueError) as exc:
            result = PlacementResult.failed(path, exc)
        self._report(result)
        return result

    def process_all(self, candidates: Iterable[Candidate]) -> RunSummary:
        for candidate in candidates:
            if self._stopping.is_set():
                logger.info("Stop requested, leaving remaining files in place")
                break
            self.process(candidate.path)
        return self.summary

    def _report(self, result: PlacementResult) -> None:
        self.summary.record(result)
        name = result.src.name
        if result.outcome is Outcome.MOVED:
            verb = "Moved" if result.performed else "[dry-run] Would move"
            extra = f" ({result.reason})" if result.reason else ""
            logger.info("%s %s -> %s%s", verb, name, result.dst, extra)
        elif result.outcome is Outcome.SKIPPED:
            # Unrelated downloads are the common case; keep them quiet.
            level = logging.DEBUG if isinstance(result.error, UnrecognizedFormat) else logging.INFO
            logger.log(level, "Skipped %s: %s", name, result.reason)
        else:
            logger.warning("Failed %s: %s: %s", name, type(result.error).__name__, result.reason)

    def _abandoned(self, path: Path, reason: str) -> None:
        self._report(PlacementResult.skipped(path, f"file never settled ({reason})"))

    # --------------------
    # whole run
    # --------------------
    def run(self, watch: bool | None = None) -> int:
        if watch is None:
            watch = self.config.watch
        s = self.summary

        if not watch:
            self.process_all(self.scanner)
            logger.info("Done with %s: %d moved, %d skipped, %d failed", self.root, s.moved, s.skipped, s.failed)
            return 0

        # Subscribe before scanning so nothing created meanwhile is missed.
        self.watcher = Watcher(
            self.root,
            settle_interval=self.config.settle_interval,
            max_settle_checks=self.config.settle_checks,
            polling=self.config.polling,
            poll_interval=self.config.poll_interval,
            on_abandoned=self._abandoned,
        )
        self.watcher.start()
        if self._stopping.is_set():
            self.watcher.stop()

        # A file already here may still be downloading: settle it like a new one.
        queued = 0
        for candidate in self.scanner:
            if self._stopping.is_set():
                break
            self.watcher.offer(candidate.path)
            queued += 1
        logger.info("Found %d existing file(s) in %s, filing them once they settle", queued, self.root)

        try:
            self.process_all(self.watcher)
        finally:
            self.watcher.stop()
        logger.info("Total: %d moved, %d skipped, %d failed", s.moved, s.skipped, s.failed)
        return 0

    def stop(self) -> None:
        """Cancel the run; the file being moved right now is finished first."""
        self._stopping.set()
        if self.watcher is not None:
            self.watcher.stop()
