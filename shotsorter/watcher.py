"""Watch the downloads root for new screenshots.

The watchdog observer thread only enqueues paths; the thread iterating the
Watcher owns debouncing and everything after it.
"""
import logging
import os
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Iterator

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .debounce import UNSETTLED, Stabilizer
from .default_rules import DEFAULT_POLL_INTERVAL, DEFAULT_SETTLE_CHECKS, DEFAULT_SETTLE_INTERVAL
from .models import Candidate

logger = logging.getLogger(__name__)

_WAKE = object()


class RootEventHandler(FileSystemEventHandler):
    """Forwards files created in, or renamed into, the root."""

    def __init__(self, root: Path, sink: Callable[[Path], None]):
        super().__init__()
        self.root = root
        self.sink = sink

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._offer(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._offer(event.dest_path)

    def _offer(self, raw_path) -> None:
        path = Path(os.fsdecode(raw_path))
        if path.parent != self.root or path.name.startswith("."):
            return
        logger.debug("Event for %s", path)
        self.sink(path)


class Watcher:
    """Iterable of Candidates for new files in root, each yielded once stable.

    Iteration blocks until ``stop()`` is called from another thread (or a
    signal handler). Candidates that were already stable when stop arrived are
    still yielded; files mid-debounce are dropped.
    """

    def __init__(
        self,
        root: Path,
        settle_interval: float = DEFAULT_SETTLE_INTERVAL,
        max_settle_checks: int = DEFAULT_SETTLE_CHECKS,
        polling: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_abandoned: Callable[[Path, str], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.root = root
        self.polling = polling
        self.poll_interval = poll_interval
        self.on_abandoned = on_abandoned
        self.stabilizer = Stabilizer(settle_interval, max_settle_checks, clock=clock)
        # SimpleQueue.put is reentrant, so stop() is safe from a signal handler.
        self._events: "queue.SimpleQueue[object]" = queue.SimpleQueue()
        self._stop = threading.Event()
        self._started = threading.Event()
        self._observer = None

    @property
    def running(self) -> bool:
        """True once the observer is subscribed, until stop."""
        return self._started.is_set() and not self._stop.is_set()

    def _make_observer(self):
        if self.polling:
            return PollingObserver(timeout=self.poll_interval)
        return Observer()

    def start(self) -> None:
        if self._observer is not None:
            return
        self._observer = self._make_observer()
        self._observer.schedule(RootEventHandler(self.root, self._events.put), str(self.root), recursive=False)
        self._observer.start()
        self._started.set()
        logger.info("Watching %s for new screenshots...", self.root)

    def offer(self, path: Path) -> None:
        """Debounce a path found some other way (e.g. the startup scan) like an event."""
        self._events.put(path)

    def stop(self) -> None:
        """Safe to call from any thread, and more than once."""
        self._stop.set()
        self._events.put(_WAKE)

    def __iter__(self) -> Iterator[Candidate]:
        return self.candidates()

    def candidates(self) -> Iterator[Candidate]:
        self.start()
        try:
            while not self._stop.is_set():
                self._wait_for_events()
                ready, abandoned = self.stabilizer.poll()
                for pending in abandoned:
                    self._report_abandoned(pending.path, pending.reason)
                # Already stable: hand these out even if stop arrived meanwhile.
                for path in ready:
                    yield Candidate(path=path, origin="watch")
        finally:
            self._shutdown()

    def _wait_for_events(self) -> None:
        timeout = self.stabilizer.next_due()
        if timeout is None:
            timeout = self.poll_interval
        try:
            item = self._events.get(timeout=timeout)
        except queue.Empty:
            return
        while True:
            if item is not _WAKE:
                self.stabilizer.track(item)
            try:
                item = self._events.get_nowait()
            except queue.Empty:
                return

    def _report_abandoned(self, path: Path, reason: str) -> None:
        if reason == UNSETTLED:
            logger.warning("Giving up on %s: size kept changing", path.name)
            if self.on_abandoned is not None:
                self.on_abandoned(path, reason)
        else:
            logger.info("%s disappeared before it settled, ignoring", path.name)

    def _shutdown(self) -> None:
        self._stop.set()
        dropped = len(self.stabilizer)
        if dropped:
            logger.info("Dropping %d file(s) still settling", dropped)
        self.stabilizer.clear()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        self._started.clear()
        logger.info("Stopped watching %s", self.root)
