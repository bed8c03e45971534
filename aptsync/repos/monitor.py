"""Change monitor for the package pool.

A watchdog observer feeds filesystem events into a queue; a single monitor
thread consumes them, waits out a fixed debounce window and then triggers
one synchronization for the whole burst.
"""

import os
import queue
import threading
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..common.logger import get_logger
from .base import ChangeEvent, EventKind, MonitorState

logger = get_logger("monitor")

WATCHED_EVENT_TYPES = {kind.value: kind for kind in EventKind}


def to_change_event(event: FileSystemEvent) -> Optional[ChangeEvent]:
    """Convert a watchdog event into a ChangeEvent.

    Returns None for event types that do not mutate the pool (opened,
    closed) and for directory modifications, which accompany every file
    change inside them.
    """
    kind = WATCHED_EVENT_TYPES.get(event.event_type)
    if kind is None:
        return None
    if event.is_directory and kind is EventKind.MODIFIED:
        return None

    path = event.src_path
    if kind is EventKind.MOVED and getattr(event, "dest_path", None):
        path = event.dest_path
    path = os.fsdecode(path)
    return ChangeEvent(
        directory=os.path.dirname(path),
        kind=kind,
        filename=os.path.basename(path),
    )


class PoolEventHandler(FileSystemEventHandler):
    """Queues pool mutations for the monitor thread."""

    def __init__(self, events: "queue.Queue[ChangeEvent]"):
        super().__init__()
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        change = to_change_event(event)
        if change is None:
            return
        logger.debug(f"{change.kind.value}: {change.path}")
        self.events.put(change)


class PoolEventStream:
    """Cancellable subscription to recursive pool change events.

    Usable as a context manager; iterating yields events lazily until the
    stream is closed.
    """

    def __init__(self, pool: Path, observer_factory: Callable[[], Any] = Observer):
        """Initialize event stream.

        Args:
            pool: Directory to watch recursively
            observer_factory: watchdog observer class or factory
        """
        self.pool = Path(pool)
        self._events: "queue.Queue[ChangeEvent]" = queue.Queue()
        self._handler = PoolEventHandler(self._events)
        self._observer_factory = observer_factory
        self._observer = None
        self._closed = threading.Event()

    def start(self) -> "PoolEventStream":
        self._observer = self._observer_factory()
        self._observer.schedule(self._handler, str(self.pool), recursive=True)
        self._observer.start()
        logger.info(f"Watching {self.pool}")
        return self

    def close(self) -> None:
        self._closed.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, event: ChangeEvent) -> None:
        """Inject an event, as the observer thread does."""
        self._events.put(event)

    def next_event(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """Block until an event arrives or the timeout expires."""
        try:
            return self._events.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[ChangeEvent]:
        """Take every event queued so far without blocking."""
        drained = []
        while True:
            try:
                drained.append(self._events.get_nowait())
            except queue.Empty:
                return drained

    def __iter__(self) -> Iterator[ChangeEvent]:
        while not self.closed:
            event = self.next_event(timeout=0.5)
            if event is not None:
                yield event

    def __enter__(self) -> "PoolEventStream":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ChangeMonitor:
    """Debounces pool changes into synchronization runs.

    The debounce window starts at the first event of a burst and is not
    extended by later events; everything queued when it ends is handed to
    a single ``on_change`` call.
    """

    def __init__(
        self,
        stream: PoolEventStream,
        on_change: Callable[[List[ChangeEvent]], Any],
        debounce_seconds: float = 5.0,
        poll_interval: float = 1.0,
    ):
        """Initialize change monitor.

        Args:
            stream: Source of change events
            on_change: Called with each debounced burst
            debounce_seconds: Quiescence window after the first event
            poll_interval: How often the idle loop checks for stop requests
        """
        self.stream = stream
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self.poll_interval = poll_interval
        self.state = MonitorState.IDLE
        self._stop = threading.Event()

    def stop(self) -> None:
        """Request shutdown; interrupts a pending debounce wait."""
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def run(self, max_runs: Optional[int] = None) -> int:
        """Watch and synchronize until stopped.

        Args:
            max_runs: Return after this many synchronizations

        Returns:
            Number of synchronization runs triggered

        Raises:
            Exception: Whatever ``on_change`` raised; the monitor does not
                resume after a failed synchronization
        """
        runs = 0
        self.state = MonitorState.WATCHING
        try:
            while not self._stop.is_set():
                event = self.stream.next_event(timeout=self.poll_interval)
                if event is None:
                    if self.stream.closed:
                        break
                    continue

                self.state = MonitorState.DEBOUNCING
                logger.info(
                    f"Change detected ({event.kind.value} {event.path}); "
                    f"waiting {self.debounce_seconds}s"
                )
                if self._stop.wait(self.debounce_seconds):
                    break

                burst = [event] + self.stream.drain()
                self.state = MonitorState.SYNCHRONIZING
                logger.info(f"Synchronizing after {len(burst)} change(s)")
                try:
                    self.on_change(burst)
                except Exception:
                    logger.error("Synchronization failed; monitor stopping")
                    raise

                runs += 1
                self.state = MonitorState.WATCHING
                if max_runs is not None and runs >= max_runs:
                    break
        finally:
            self.state = MonitorState.IDLE
        return runs
