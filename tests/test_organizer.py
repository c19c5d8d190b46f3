import logging

import pytest

from shotsorter.config import OrganizerConfig
from shotsorter.errors import ConfigError, InvalidRootError
from shotsorter.models import Outcome
from shotsorter.organizer import Organizer
from shotsorter.scanner import FolderScanner

NAME = "ChannelA_2024-05-01_001.png"


def test_files_a_screenshot_into_channel_and_month(downloads, make_file):
    make_file(downloads / NAME, b"pixels")

    status = Organizer(OrganizerConfig(root=downloads)).run()

    assert status == 0
    assert not (downloads / NAME).exists()
    assert (downloads / "channela" / "2024-05" / NAME).read_bytes() == b"pixels"


def test_unrelated_file_is_left_alone_and_skipped(downloads, make_file):
    make_file(downloads / "randomfile.txt", b"notes")
    org = Organizer(OrganizerConfig(root=downloads))

    result = org.process(downloads / "randomfile.txt")

    assert result.outcome is Outcome.SKIPPED
    assert (downloads / "randomfile.txt").read_bytes() == b"notes"
    assert org.summary.skipped == 1


def test_moved_file_is_not_rescanned(downloads, make_file):
    make_file(downloads / NAME)
    org = Organizer(OrganizerConfig(root=downloads))
    org.run()
    assert list(FolderScanner(downloads)) == []


def test_second_run_moves_nothing(downloads, make_file):
    make_file(downloads / NAME)
    make_file(downloads / "xqc_Sat-Jan-18-2025_1_06_05-PM.png", b"other")
    make_file(downloads / "randomfile.txt")

    first = Organizer(OrganizerConfig(root=downloads))
    first.run()
    assert first.summary.moved == 2

    second = Organizer(OrganizerConfig(root=downloads))
    second.run()
    assert second.summary.moved == 0
    assert second.summary.skipped == 1


def test_identical_duplicate_never_overwrites(downloads, make_file):
    make_file(downloads / NAME, b"same")
    make_file(downloads / "ChannelA_2024-05-01_001 (1).png", b"same")

    org = Organizer(OrganizerConfig(root=downloads))
    org.run()

    folder = downloads / "channela" / "2024-05"
    assert [p.read_bytes() for p in folder.iterdir()] == [b"same"]
    assert org.summary.moved == 1
    assert org.summary.skipped == 1
    assert list(downloads.glob("*.png")) == []


def test_failure_does_not_stop_the_run(downloads, make_file, monkeypatch):
    make_file(downloads / NAME)
    make_file(downloads / "xqc_Sat-Jan-18-2025_1_06_05-PM.png")
    org = Organizer(OrganizerConfig(root=downloads))

    real_move = org.mover.move

    def flaky(src, dst):
        if src.name == NAME:
            raise OSError("boom")
        return real_move(src, dst)

    monkeypatch.setattr(org.mover, "move", flaky)

    assert org.run() == 0
    assert org.summary.failed == 1
    assert org.summary.moved == 1
    assert (downloads / NAME).exists()


def test_dry_run_reports_but_moves_nothing(downloads, make_file, caplog):
    make_file(downloads / NAME)
    org = Organizer(OrganizerConfig(root=downloads, dry_run=True))

    with caplog.at_level(logging.INFO, logger="shotsorter"):
        org.run()

    assert (downloads / NAME).exists()
    assert not (downloads / "channela").exists()
    assert org.summary.moved == 1
    assert "Would move" in caplog.text


def test_bucket_none(downloads, make_file):
    make_file(downloads / NAME)
    Organizer(OrganizerConfig(root=downloads, bucket="none")).run()
    assert (downloads / "channela" / NAME).exists()


def test_invalid_root(tmp_path):
    with pytest.raises(InvalidRootError):
        Organizer(OrganizerConfig(root=tmp_path / "missing"))
    (tmp_path / "file").write_text("x")
    with pytest.raises(InvalidRootError):
        Organizer(OrganizerConfig(root=tmp_path / "file"))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"bucket": "year"},
        {"duplicates": "overwrite"},
        {"settle_interval": 0},
        {"settle_checks": 1},
    ],
)
def test_invalid_config(tmp_path, kwargs):
    with pytest.raises(ConfigError):
        OrganizerConfig(root=tmp_path, **kwargs)


def test_stop_during_initial_scan_leaves_the_rest(downloads, make_file):
    names = [
        "ChannelA_2024-05-01_001.png",
        "ChannelA_2024-05-01_002.png",
        "ChannelA_2024-05-01_003.png",
    ]
    for name in names:
        make_file(downloads / name)
    org = Organizer(OrganizerConfig(root=downloads))
    real_move = org.mover.move

    def move_then_stop(src, dst):
        result = real_move(src, dst)
        org.stop()
        return result

    org.mover.move = move_then_stop

    assert org.run() == 0
    assert org.summary.moved == 1
    assert len(list(downloads.glob("*.png"))) == 2
