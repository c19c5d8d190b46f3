from pathlib import Path
import errno
import logging
import shutil

from .default_rules import DEFAULT_DUPLICATE_POLICY, DUPLICATE_POLICIES
from .errors import (
    DiskFull,
    DuplicateDetected,
    MoveError,
    NameCollision,
    PermissionDenied,
    SourceUnavailable,
)
from .models import PlacementResult
from .utils import check_free_space, collision_chain, file_digest, find_identical

logger = logging.getLogger(__name__)

_DISK_FULL_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}
# link() errors meaning "this filesystem cannot hard link", not "this move failed"
_NO_HARDLINK_ERRNOS = {
    errno.EPERM,
    errno.EMLINK,
    errno.ENOSYS,
    getattr(errno, "ENOTSUP", errno.EOPNOTSUPP),
    errno.EOPNOTSUPP,
}


class SafeMover:
    """Moves one file at a time and never overwrites anything.

    Byte-identical duplicates are discarded (``duplicates="discard"``) or left
    where they are (``duplicates="keep"``). A different file that happens to
    have the same name gets a ' (n)' suffix.
    """

    def __init__(self, duplicates: str = DEFAULT_DUPLICATE_POLICY, dry_run: bool = False):
        if duplicates not in DUPLICATE_POLICIES:
            raise ValueError(f"Unknown duplicate policy {duplicates!r}")
        self.duplicates = duplicates
        self.dry_run = dry_run

    def move(self, src: Path, dst: Path) -> PlacementResult:
        try:
            return self._move(src, dst)
        except MoveError as exc:
            return PlacementResult.failed(src, exc, dst=dst)
        except FileNotFoundError as exc:
            return PlacementResult.failed(src, SourceUnavailable(f"{src}: {exc}"), dst=dst)
        except PermissionError as exc:
            return PlacementResult.failed(src, PermissionDenied(f"{src} -> {dst}: {exc}"), dst=dst)
        except OSError as exc:
            if exc.errno in _DISK_FULL_ERRNOS:
                return PlacementResult.failed(src, DiskFull(f"{src} -> {dst}: {exc}"), dst=dst)
            return PlacementResult.failed(src, MoveError(f"{src} -> {dst}: {exc}"), dst=dst)

    def _move(self, src: Path, dst: Path) -> PlacementResult:
        if not src.is_file():
            raise SourceUnavailable(f"Source is gone or not a regular file: {src}")

        # Skip if source and destination are same
        if src == dst:
            return PlacementResult.skipped(src, "same location", dst=dst)

        if not self.dry_run:
            try:
                dst.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError as exc:
                raise PermissionDenied(f"Cannot create {dst.parent}: {exc}") from exc

        # Same bytes under any name in the target folder counts as a duplicate.
        existing = find_identical(src, dst.parent)
        if existing is not None:
            return self._duplicate(src, existing)

        while True:
            final_dst = next(c for c in collision_chain(dst) if not c.exists())

            reason = ""
            collision = None
            if final_dst != dst:
                reason = "renamed (name collision)"
                collision = NameCollision(f"{dst} exists with different content, using {final_dst.name}")

            if self.dry_run:
                return PlacementResult.moved(src, final_dst, reason=reason, performed=False, error=collision)

            try:
                self._relocate(src, final_dst)
            except FileExistsError:
                logger.debug("%s appeared before %s could take it, picking another name", final_dst, src.name)
                continue
            return PlacementResult.moved(src, final_dst, reason=reason, error=collision)

    def _duplicate(self, src: Path, existing: Path) -> PlacementResult:
        dup = DuplicateDetected(f"{src.name} is identical to {existing}")
        if self.duplicates == "discard" and not self.dry_run:
            src.unlink()
            return PlacementResult.skipped(src, "duplicate (source discarded)", dst=existing, error=dup)
        if self.duplicates == "discard":
            return PlacementResult.skipped(src, "duplicate (would discard source)", dst=existing, error=dup)
        return PlacementResult.skipped(src, "duplicate (source kept)", dst=existing, error=dup)

    def _relocate(self, src: Path, dst: Path) -> None:
        try:
            self._place(src, dst)
        except FileExistsError:
            raise
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise
            logger.debug("Cross-device move %s -> %s, copying instead", src, dst)
            self._copy_verify_delete(src, dst)

    def _place(self, src: Path, dst: Path) -> None:
        """Give src the name dst on the same volume; raises FileExistsError rather than replace dst.

        A hard link fails if dst exists, where a POSIX rename would silently
        replace it. Filesystems without hard links fall back to rename.
        """
        try:
            dst.hardlink_to(src)
        except FileExistsError:
            raise
        except OSError as exc:
            if exc.errno not in _NO_HARDLINK_ERRNOS:
                raise
            if dst.exists():
                raise FileExistsError(errno.EEXIST, "Destination exists", str(dst)) from exc
            src.rename(dst)
            return
        try:
            src.unlink()
        except OSError:
            dst.unlink(missing_ok=True)
            raise

    def _copy_verify_delete(self, src: Path, dst: Path) -> None:
        check_free_space(dst.parent, src.stat().st_size)
        partial = dst.with_name(f".{dst.name}.partial")
        try:
            shutil.copy2(str(src), str(partial))
            if file_digest(partial) != file_digest(src):
                raise MoveError(f"Copy of {src} to {dst} did not verify")
            self._place(partial, dst)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        src.unlink()
