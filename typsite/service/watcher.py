"""Background file watching and debounced rebuilds."""

from __future__ import annotations

import enum
import queue
import threading
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..logging import get_logger
from ..models import BuildReport, ChangeEvent

DEFAULT_DEBOUNCE_SECONDS = 0.1

# Access notifications fire whenever a build reads a source file.
_IGNORED_EVENT_TYPES = {"opened", "closed_no_write"}


class WatchState(enum.Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    REBUILDING = "rebuilding"


class ChangeQueueHandler(FileSystemEventHandler):
    """Forwards watchdog events into a queue consumed by the rebuild worker."""

    def __init__(self, events: "queue.Queue[ChangeEvent]") -> None:
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in _IGNORED_EVENT_TYPES:
            return
        self._events.put(ChangeEvent(path=str(event.src_path), kind=event.event_type))


class Debouncer:
    """Coalesces a burst of change events into one trigger.

    Every event received inside the window restarts it; ``wait`` returns once
    the window passes with no new event.
    """

    def __init__(
        self,
        events: "queue.Queue[ChangeEvent]",
        window: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self.events = events
        self.window = window
        self.state = WatchState.IDLE

    def wait(self) -> int:
        """Block until a burst has settled. Return the number of events coalesced."""
        self.state = WatchState.IDLE
        self.events.get()
        self.state = WatchState.DEBOUNCING
        count = 1
        while True:
            try:
                self.events.get(timeout=self.window)
            except queue.Empty:
                return count
            count += 1


class RebuildWorker(threading.Thread):
    """Owns the filesystem observer and runs blocking rebuilds off the event loop.

    The thread is a daemon and lives until the process exits.
    """

    def __init__(
        self,
        watch_paths: Iterable[Path],
        rebuild: Callable[[], BuildReport],
        notify: Callable[[], None],
        *,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        observer_factory: Callable[[], Observer] = Observer,
    ) -> None:
        super().__init__(name="typsite-watcher", daemon=True)
        self.watch_paths: List[Path] = list(watch_paths)
        self.watched: List[Path] = []
        self.events: "queue.Queue[ChangeEvent]" = queue.Queue()
        self.debouncer = Debouncer(self.events, debounce)
        self._rebuild = rebuild
        self._notify = notify
        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self.logger = get_logger("watcher")

    @property
    def state(self) -> WatchState:
        return self.debouncer.state

    def run(self) -> None:
        self._observer = self._start_observer()
        while True:
            self.run_once()

    def run_once(self) -> Optional[BuildReport]:
        """Wait for one settled burst of changes, rebuild, then notify clients."""
        count = self.debouncer.wait()
        self.debouncer.state = WatchState.REBUILDING
        self.logger.info("changes detected, rebuilding...")
        self.logger.debug("coalesced %d change event(s)", count)

        report: Optional[BuildReport] = None
        try:
            report = self._rebuild()
        except Exception as exc:  # pragma: no cover - build passes report failures instead
            self.logger.error("rebuild failed: %s", exc)
        else:
            for failure in report.failures:
                self.logger.error("%s", failure)

        try:
            self._notify()
        except RuntimeError as exc:
            self.logger.error("could not notify clients: %s", exc)
        self.debouncer.state = WatchState.IDLE
        return report

    def _start_observer(self) -> Observer:
        observer = self._observer_factory()
        handler = ChangeQueueHandler(self.events)
        for path in self.watch_paths:
            if not path.is_dir():
                continue
            observer.schedule(handler, str(path), recursive=True)
            self.watched.append(path)
            self.logger.debug("watching %s", path)
        observer.start()
        return observer


__all__ = [
    "ChangeQueueHandler",
    "DEFAULT_DEBOUNCE_SECONDS",
    "Debouncer",
    "RebuildWorker",
    "WatchState",
]
