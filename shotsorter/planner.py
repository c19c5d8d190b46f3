from pathlib import Path

from .default_rules import BUCKET_FORMATS, DEFAULT_BUCKET
from .models import ScreenshotIdentity


def bucket_for(identity: ScreenshotIdentity, bucket: str = DEFAULT_BUCKET) -> str | None:
    """Folder name under the channel for this screenshot, or None for a flat layout."""
    if bucket not in BUCKET_FORMATS:
        raise ValueError(f"Unknown bucket scheme {bucket!r}; expected one of {sorted(BUCKET_FORMATS)}")
    fmt = BUCKET_FORMATS[bucket]
    if fmt is None:
        return None
    return identity.timestamp.strftime(fmt)


def plan(identity: ScreenshotIdentity, root: Path, bucket: str = DEFAULT_BUCKET) -> Path:
    """root / channel / [bucket] / original filename."""
    target_dir = root / identity.channel
    sub = bucket_for(identity, bucket)
    if sub is not None:
        target_dir = target_dir / sub
    dest = target_dir / identity.filename

    # A planned file always sits at least one folder below root.
    rel = dest.relative_to(root)
    if len(rel.parts) < 2 or any(part in ("", ".", "..") for part in rel.parts):
        raise ValueError(f"Refusing to plan {dest} outside a channel folder of {root}")
    return dest
