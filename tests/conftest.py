from pathlib import Path

import pytest


@pytest.fixture
def downloads(tmp_path: Path) -> Path:
    root = tmp_path / "Downloads"
    root.mkdir()
    return root


@pytest.fixture
def make_file():
    def _make(path: Path, content: bytes = b"\x89PNG fake image data") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path
    return _make
