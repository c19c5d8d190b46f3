import threading
import time

from watchdog.events import FileCreatedEvent, FileMovedEvent, DirCreatedEvent

from shotsorter.config import OrganizerConfig
from shotsorter.organizer import Organizer
from shotsorter.watcher import RootEventHandler, Watcher

NAME = "ChannelA_2024-05-01_001.png"


def wait_for(predicate, timeout=15.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return False


def test_handler_only_forwards_top_level_files(downloads):
    seen = []
    handler = RootEventHandler(downloads, seen.append)

    handler.dispatch(FileCreatedEvent(str(downloads / NAME)))
    handler.dispatch(FileMovedEvent(str(downloads / "x.crdownload"), str(downloads / "renamed.png")))
    handler.dispatch(FileCreatedEvent(str(downloads / "channela" / NAME)))
    handler.dispatch(FileCreatedEvent(str(downloads / ".tmp.png")))
    handler.dispatch(DirCreatedEvent(str(downloads / "channela")))

    assert seen == [downloads / NAME, downloads / "renamed.png"]


def test_stop_before_any_event_ends_iteration(downloads):
    watcher = Watcher(downloads, settle_interval=0.1, polling=True, poll_interval=0.1)
    watcher.start()
    threading.Timer(0.3, watcher.stop).start()
    assert list(watcher) == []
    assert not watcher.running


def test_watcher_yields_new_file_once_stable(downloads, make_file):
    watcher = Watcher(downloads, settle_interval=0.2, polling=True, poll_interval=0.1)
    got = []

    def consume():
        for candidate in watcher:
            got.append(candidate)
            watcher.stop()

    t = threading.Thread(target=consume)
    t.start()
    assert wait_for(lambda: watcher.running)
    make_file(downloads / NAME)
    t.join(timeout=15)

    assert not t.is_alive()
    assert [(c.path, c.origin) for c in got] == [(downloads / NAME, "watch")]


def test_watch_mode_moves_incrementally_written_file_complete(downloads):
    config = OrganizerConfig(
        root=downloads, watch=True, settle_interval=1.0, settle_checks=20,
        polling=True, poll_interval=0.1,
    )
    org = Organizer(config)
    status = []
    runner = threading.Thread(target=lambda: status.append(org.run()))
    runner.start()
    assert wait_for(lambda: org.watcher is not None and org.watcher.running)

    chunk = b"\x89PNG" + b"z" * 4096
    src = downloads / NAME
    dst = downloads / "channela" / "2024-05" / NAME
    moved_early = []
    with src.open("wb") as f:
        for _ in range(10):
            f.write(chunk)
            f.flush()
            if dst.exists():
                moved_early.append(True)
            time.sleep(0.2)

    assert wait_for(dst.exists)
    org.stop()
    runner.join(timeout=15)

    assert status == [0]
    assert not moved_early
    assert dst.read_bytes() == chunk * 10
    assert not src.exists()
    assert org.summary.moved == 1


def test_unsettled_file_reported_as_skipped(downloads):
    abandoned = []
    watcher = Watcher(
        downloads, settle_interval=0.1, max_settle_checks=2, polling=True, poll_interval=0.05,
        on_abandoned=lambda path, reason: abandoned.append((path, reason)),
    )
    src = downloads / NAME

    def consume():
        for _ in watcher:
            pass

    t = threading.Thread(target=consume)
    t.start()
    assert wait_for(lambda: watcher.running)
    with src.open("wb") as f:
        deadline = time.monotonic() + 3
        while not abandoned and time.monotonic() < deadline:
            f.write(b"more")
            f.flush()
            time.sleep(0.02)
    watcher.stop()
    t.join(timeout=15)

    assert abandoned == [(src, "unsettled")]


def test_not_running_until_started(downloads):
    watcher = Watcher(downloads, polling=True, poll_interval=0.1)
    assert not watcher.running
    watcher.start()
    assert watcher.running
    watcher.stop()
    assert list(watcher) == []
    assert not watcher.running


def test_offered_path_is_yielded_once_stable(downloads, make_file):
    src = make_file(downloads / NAME)
    watcher = Watcher(downloads, settle_interval=0.1, polling=True, poll_interval=0.1)
    watcher.offer(src)
    got = []

    def consume():
        for candidate in watcher:
            got.append(candidate.path)
            watcher.stop()

    t = threading.Thread(target=consume)
    t.start()
    t.join(timeout=15)

    assert not t.is_alive()
    assert got == [src]


def test_file_still_downloading_at_startup_is_not_moved_early(downloads):
    config = OrganizerConfig(
        root=downloads, watch=True, settle_interval=1.0, settle_checks=20,
        polling=True, poll_interval=0.1,
    )
    org = Organizer(config)
    chunk = b"\x89PNG" + b"q" * 4096
    src = downloads / NAME
    dst = downloads / "channela" / "2024-05" / NAME
    status = []
    runner = threading.Thread(target=lambda: status.append(org.run()))
    moved_early = []

    with src.open("wb") as f:
        f.write(chunk)
        f.flush()
        runner.start()
        for _ in range(9):
            time.sleep(0.2)
            if dst.exists():
                moved_early.append(True)
            f.write(chunk)
            f.flush()

    assert wait_for(dst.exists)
    org.stop()
    runner.join(timeout=15)

    assert status == [0]
    assert not moved_early
    assert dst.read_bytes() == chunk * 10
    assert not src.exists()
