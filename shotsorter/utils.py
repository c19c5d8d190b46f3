from pathlib import Path
from typing import Iterator
import hashlib
import shutil

from .errors import DiskFull, InvalidRootError

BUF_SIZE = 65536  # 64KB


def ensure_root(path: str | Path) -> Path:
    """Return a resolved Path object and ensure it is an existing directory."""
    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise InvalidRootError(f"Path does not exist: {p}")
    if not p.is_dir():
        raise InvalidRootError(f"Path is not a directory: {p}")
    return p


def collision_chain(dest: Path) -> Iterator[Path]:
    """
    Yield dest, then 'stem (1)suffix', 'stem (2)suffix', ... forever.
    """
    yield dest
    stem = dest.stem
    suffix = dest.suffix
    parent = dest.parent
    i = 1
    while True:
        yield parent / f"{stem} ({i}){suffix}"
        i += 1


def file_digest(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        while True:
            b = f.read(BUF_SIZE)
            if not b:
                break
            h.update(b)
    return h.hexdigest()


def find_identical(src: Path, folder: Path) -> Path | None:
    """Return a file in folder with exactly the same bytes as src, if any.

    Only visible regular files of the same size are hashed.
    """
    if not folder.is_dir():
        return None
    size = src.stat().st_size
    src_digest = None
    for existing in sorted(folder.iterdir()):
        if existing.name.startswith(".") or existing.is_symlink() or not existing.is_file():
            continue
        if existing.stat().st_size != size:
            continue
        if src_digest is None:
            src_digest = file_digest(src)
        if file_digest(existing) == src_digest:
            return existing
    return None


def check_free_space(dest: Path, required_bytes: int) -> None:
    total, used, free = shutil.disk_usage(dest)
    if free < required_bytes:
        raise DiskFull(f"Not enough disk space in {dest} for {required_bytes} bytes.")
