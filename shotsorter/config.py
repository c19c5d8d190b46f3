from dataclasses import dataclass
from pathlib import Path

from .default_rules import (
    BUCKET_FORMATS,
    DEFAULT_BUCKET,
    DEFAULT_DUPLICATE_POLICY,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SETTLE_CHECKS,
    DEFAULT_SETTLE_INTERVAL,
    DUPLICATE_POLICIES,
)
from .errors import ConfigError


@dataclass(frozen=True)
class OrganizerConfig:
    """Everything a run needs, fixed at startup."""
    root: Path
    watch: bool = False
    bucket: str = DEFAULT_BUCKET
    duplicates: str = DEFAULT_DUPLICATE_POLICY
    settle_interval: float = DEFAULT_SETTLE_INTERVAL
    settle_checks: int = DEFAULT_SETTLE_CHECKS
    polling: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL
    dry_run: bool = False
    ignore_hidden: bool = True

    def __post_init__(self):
        if self.bucket not in BUCKET_FORMATS:
            raise ConfigError(f"bucket must be one of {sorted(BUCKET_FORMATS)}, got {self.bucket!r}")
        if self.duplicates not in DUPLICATE_POLICIES:
            raise ConfigError(f"duplicates must be one of {list(DUPLICATE_POLICIES)}, got {self.duplicates!r}")
        if self.settle_interval <= 0:
            raise ConfigError("settle interval must be positive")
        if self.settle_checks < 2:
            raise ConfigError("settle checks must be at least 2")
        if self.poll_interval <= 0:
            raise ConfigError("poll interval must be positive")
