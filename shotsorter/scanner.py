from pathlib import Path
from typing import Iterator
from .models import Candidate

class FolderScanner:
    """Yields the top-level regular files of a folder as Candidates.

    Never recurses: anything below root is already-organized output. Each
    iteration re-reads the directory, so a scanner can be reused across runs.
    """

    def __init__(self, root: Path, ignore_hidden: bool = True):
        self.root = root
        self.ignore_hidden = ignore_hidden

    def __iter__(self) -> Iterator[Candidate]:
        return self.scan()

    def scan(self) -> Iterator[Candidate]:
        for p in self.root.iterdir():
            if p.is_symlink() or not p.is_file():
                continue
            if self.ignore_hidden and p.name.startswith('.'):
                continue
            yield Candidate(path=p, origin="scan")
