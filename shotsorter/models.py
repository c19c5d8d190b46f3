from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

@dataclass(frozen=True)
class ScreenshotIdentity:
    channel: str       # normalized, safe to use as a folder name
    timestamp: datetime
    extension: str     # lower-case, with the leading dot
    filename: str      # original name, never altered

@dataclass(frozen=True)
class Candidate:
    path: Path
    origin: str = "scan"  # "scan" | "watch"


class Outcome(str, Enum):
    MOVED = "moved"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PlacementResult:
    src: Path
    outcome: Outcome
    dst: Path | None = None
    reason: str = ""  # e.g., "renamed (name collision)", "duplicate"
    error: BaseException | None = None
    performed: bool = True  # False if dry-run

    @classmethod
    def moved(cls, src: Path, dst: Path, reason: str = "", performed: bool = True,
              error: BaseException | None = None) -> "PlacementResult":
        return cls(src, Outcome.MOVED, dst=dst, reason=reason, error=error, performed=performed)

    @classmethod
    def skipped(cls, src: Path, reason: str, dst: Path | None = None,
                error: BaseException | None = None) -> "PlacementResult":
        return cls(src, Outcome.SKIPPED, dst=dst, reason=reason, error=error, performed=False)

    @classmethod
    def failed(cls, src: Path, error: BaseException, dst: Path | None = None) -> "PlacementResult":
        return cls(src, Outcome.FAILED, dst=dst, reason=str(error), error=error, performed=False)


@dataclass
class RunSummary:
    moved: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, result: PlacementResult) -> None:
        if result.outcome is Outcome.MOVED:
            self.moved += 1
        elif result.outcome is Outcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    @property
    def total(self) -> int:
        return self.moved + self.skipped + self.failed
