"""FastAPI dev server: static output plus a live-reload event stream."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.responses import StreamingResponse
from fastapi.staticfiles import StaticFiles

from ..config import load_config
from ..logging import get_logger
from ..orchestrator import Orchestrator
from ..postproc.inject import RELOAD_STREAM_PATH
from .broadcaster import ReloadBroadcaster, Subscription
from .watcher import RebuildWorker

RELOAD_FRAME = "data: reload\n\n"
KEEPALIVE_FRAME = ": keep-alive\n\n"
DEFAULT_KEEPALIVE_SECONDS = 15.0

logger = get_logger("server")


async def reload_events(
    subscription: Subscription,
    keepalive: float = DEFAULT_KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Yield one reload frame per signal, and a comment frame after ``keepalive`` idle seconds."""
    try:
        while True:
            try:
                await asyncio.wait_for(subscription.receive(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield KEEPALIVE_FRAME
            else:
                yield RELOAD_FRAME
    finally:
        subscription.close()


def create_app(
    out_dir: Path,
    broadcaster: ReloadBroadcaster,
    *,
    keepalive: float = DEFAULT_KEEPALIVE_SECONDS,
) -> FastAPI:
    """Create the dev server application serving ``out_dir``."""
    app = FastAPI(title="typsite dev server", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.broadcaster = broadcaster

    @app.get(RELOAD_STREAM_PATH)
    async def reload_stream() -> StreamingResponse:
        subscription = broadcaster.subscribe()
        return StreamingResponse(
            reload_events(subscription, keepalive),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    # The output directory is removed and recreated on every rebuild.
    app.mount(
        "/",
        StaticFiles(directory=str(out_dir), html=True, check_dir=False),
        name="site",
    )
    return app


def spawn_watcher(
    root: Path,
    orchestrator: Orchestrator,
    broadcaster: ReloadBroadcaster,
) -> RebuildWorker:
    """Start the background rebuild worker for the project at ``root``."""
    config = load_config(root)
    worker = RebuildWorker(
        config.watch_paths,
        rebuild=lambda: orchestrator.build(config.root, dev_mode=True),
        notify=broadcaster.publish_threadsafe,
        debounce=config.dev.debounce_seconds,
    )
    worker.start()
    return worker


async def run_dev_server(
    root: Path,
    port: Optional[int] = None,
    *,
    host: Optional[str] = None,
    orchestrator: Optional[Orchestrator] = None,
) -> None:
    """Build once, then serve ``out/`` with live reload until the process stops."""
    import uvicorn

    config = load_config(root)
    orchestrator = orchestrator or Orchestrator()
    port = port if port is not None else config.dev.port
    host = host if host is not None else config.dev.host

    # Connections are accepted only once the first pass has finished.
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, orchestrator.build, config.root, True)

    broadcaster = ReloadBroadcaster(config.dev.broadcast_capacity, loop=loop)
    spawn_watcher(config.root, orchestrator, broadcaster)

    app = create_app(
        config.output_path,
        broadcaster,
        keepalive=config.dev.keepalive_seconds,
    )
    server = uvicorn.Server(
        uvicorn.Config(app, host=host, port=port, log_level="warning", log_config=None)
    )
    logger.info("serving at http://%s:%d", host, port)
    logger.info("watching for changes... (ctrl+c to stop)")
    await server.serve()


__all__ = [
    "KEEPALIVE_FRAME",
    "RELOAD_FRAME",
    "create_app",
    "reload_events",
    "run_dev_server",
    "spawn_watcher",
]
