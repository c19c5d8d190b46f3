"""Debounce for files that may still be being written.

Every pending path goes through a small state machine::

    DETECTED --first check--> STABILIZING --same size & mtime--> READY
        |                          |
        +--------gone-------> ABANDONED <--too many checks / gone

Checks are scheduled on a clock rather than slept through, so the watcher can
keep draining filesystem events while files settle.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)


class Stage(Enum):
    DETECTED = "detected"
    STABILIZING = "stabilizing"
    READY = "ready"
    ABANDONED = "abandoned"


VANISHED = "vanished"
UNSETTLED = "unsettled"


@dataclass
class PendingFile:
    path: Path
    due: float
    stage: Stage = Stage.DETECTED
    signature: Tuple[int, int] | None = None  # (size, mtime_ns)
    checks: int = 0
    reason: str = ""

    @property
    def done(self) -> bool:
        return self.stage in (Stage.READY, Stage.ABANDONED)

    def advance(self, now: float, interval: float, max_checks: int) -> Stage:
        if self.done or now < self.due:
            return self.stage

        try:
            st = self.path.stat()
        except FileNotFoundError:
            return self._abandon(VANISHED)
        if not self.path.is_file():
            return self._abandon(VANISHED)

        signature = (st.st_size, st.st_mtime_ns)
        self.checks += 1

        if self.stage is Stage.DETECTED:
            self.stage = Stage.STABILIZING
        elif signature == self.signature:
            self.stage = Stage.READY
            return self.stage
        elif self.checks >= max_checks:
            return self._abandon(UNSETTLED)

        self.signature = signature
        self.due = now + interval
        return self.stage

    def _abandon(self, reason: str) -> Stage:
        self.stage = Stage.ABANDONED
        self.reason = reason
        return self.stage


class Stabilizer:
    """Tracks pending paths and reports which became ready or were abandoned."""

    def __init__(self, interval: float, max_checks: int, clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self.max_checks = max_checks
        self.clock = clock
        self._pending: Dict[Path, PendingFile] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, path: Path) -> bool:
        return path in self._pending

    def track(self, path: Path) -> None:
        if path in self._pending:
            return
        logger.debug("Detected %s", path)
        self._pending[path] = PendingFile(path=path, due=self.clock())

    def next_due(self) -> float | None:
        """Seconds until the earliest pending check, or None if nothing is pending."""
        if not self._pending:
            return None
        earliest = min(p.due for p in self._pending.values())
        return max(0.0, earliest - self.clock())

    def poll(self) -> Tuple[List[Path], List[PendingFile]]:
        """Run every check that is due.

        Returns (ready paths in arrival order, abandoned entries).
        """
        now = self.clock()
        ready: List[Path] = []
        abandoned: List[PendingFile] = []
        for path, pending in list(self._pending.items()):
            before = pending.stage
            stage = pending.advance(now, self.interval, self.max_checks)
            if stage is not before:
                logger.debug("%s: %s -> %s", path.name, before.value, stage.value)
            if stage is Stage.READY:
                ready.append(path)
            elif stage is Stage.ABANDONED:
                abandoned.append(pending)
            if pending.done:
                del self._pending[path]
        return ready, abandoned

    def clear(self) -> None:
        self._pending.clear()
