"""Live-reload development server."""

from .app import create_app, reload_events, run_dev_server, spawn_watcher
from .broadcaster import ReloadBroadcaster, Subscription
from .watcher import Debouncer, RebuildWorker, WatchState

__all__ = [
    "Debouncer",
    "RebuildWorker",
    "ReloadBroadcaster",
    "Subscription",
    "WatchState",
    "create_app",
    "reload_events",
    "run_dev_server",
    "spawn_watcher",
]
