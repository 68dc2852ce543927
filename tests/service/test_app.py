"""Tests for the FastAPI dev server."""

from __future__ import annotations

import asyncio
import contextlib
import socket
from pathlib import Path

import httpx
import pytest
import uvicorn
from fastapi.testclient import TestClient

import typsite.service.app as app_module
from tests._fixtures.site_builder import FakeCompiler, SiteBuilder
from typsite.orchestrator import Orchestrator
from typsite.postproc.inject import RELOAD_STREAM_PATH
from typsite.service.app import KEEPALIVE_FRAME, RELOAD_FRAME, create_app, reload_events
from typsite.service.broadcaster import ReloadBroadcaster


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    out = tmp_path / "out"
    (out / "blog").mkdir(parents=True)
    (out / "index.html").write_text("<p>home</p>", encoding="utf-8")
    (out / "about.html").write_text("<p>about</p>", encoding="utf-8")
    (out / "blog" / "index.html").write_text("<p>blog</p>", encoding="utf-8")
    (out / "style.css").write_text("body {}", encoding="utf-8")
    return out


@pytest.fixture
def client(out_dir: Path) -> TestClient:
    return TestClient(create_app(out_dir, ReloadBroadcaster()))


def test_root_serves_index(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "<p>home</p>"


def test_directory_path_resolves_to_index(client: TestClient) -> None:
    response = client.get("/blog/")
    assert response.status_code == 200
    assert response.text == "<p>blog</p>"


def test_static_files_are_served(client: TestClient) -> None:
    assert client.get("/about.html").text == "<p>about</p>"
    response = client.get("/style.css")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/css")


def test_missing_file_is_404(client: TestClient) -> None:
    assert client.get("/nope.html").status_code == 404


def test_files_written_after_startup_are_served(client: TestClient, out_dir: Path) -> None:
    (out_dir / "new.html").write_text("<p>new</p>", encoding="utf-8")
    assert client.get("/new.html").text == "<p>new</p>"


def test_reload_events_emits_frame_per_signal() -> None:
    async def scenario() -> list[str]:
        broadcaster = ReloadBroadcaster()
        stream = reload_events(broadcaster.subscribe(), keepalive=5.0)
        broadcaster.publish()
        broadcaster.publish()
        frames = [await anext(stream), await anext(stream)]
        await stream.aclose()
        return frames

    assert asyncio.run(scenario()) == [RELOAD_FRAME, RELOAD_FRAME]


def test_reload_events_sends_keepalive_when_idle() -> None:
    async def scenario() -> str:
        broadcaster = ReloadBroadcaster()
        stream = reload_events(broadcaster.subscribe(), keepalive=0.01)
        frame = await anext(stream)
        await stream.aclose()
        return frame

    assert asyncio.run(scenario()) == KEEPALIVE_FRAME


def test_closing_stream_releases_subscription() -> None:
    async def scenario() -> tuple[int, int]:
        broadcaster = ReloadBroadcaster()
        streams = [reload_events(broadcaster.subscribe(), keepalive=5.0) for _ in range(3)]
        broadcaster.publish()
        for stream in streams:
            assert await anext(stream) == RELOAD_FRAME
        before = broadcaster.subscriber_count
        for stream in streams:
            await stream.aclose()
        return before, broadcaster.subscriber_count

    assert asyncio.run(scenario()) == (3, 0)


def test_run_dev_server_builds_before_serving(
    site: SiteBuilder, fake_compiler: FakeCompiler, monkeypatch: pytest.MonkeyPatch
) -> None:
    site.write({"content/index.typ": "= Home\n"})
    events: list[tuple] = []

    class FakeServer:
        def __init__(self, config: uvicorn.Config) -> None:
            self.config = config

        async def serve(self) -> None:
            index = site.out("index.html")
            events.append(
                ("serve", RELOAD_STREAM_PATH in index.read_text(encoding="utf-8"), self.config.port)
            )

    monkeypatch.setattr(uvicorn, "Server", FakeServer)
    monkeypatch.setattr(
        app_module,
        "spawn_watcher",
        lambda root, orchestrator, broadcaster: events.append(("watch", root)),
    )

    asyncio.run(
        app_module.run_dev_server(site.root, 4321, orchestrator=Orchestrator(compiler=fake_compiler))
    )

    assert events == [("watch", site.root), ("serve", True, 4321)]


def test_run_dev_server_keeps_explicit_port_zero(
    site: SiteBuilder, fake_compiler: FakeCompiler, monkeypatch: pytest.MonkeyPatch
) -> None:
    site.write({"content/index.typ": "= Home\n", ".typsite.yml": "dev:\n  port: 8080\n"})
    configs: list[uvicorn.Config] = []

    class FakeServer:
        def __init__(self, config: uvicorn.Config) -> None:
            configs.append(config)

        async def serve(self) -> None:
            return None

    monkeypatch.setattr(uvicorn, "Server", FakeServer)
    monkeypatch.setattr(app_module, "spawn_watcher", lambda root, orchestrator, broadcaster: None)

    asyncio.run(
        app_module.run_dev_server(
            site.root, 0, host="127.0.0.1", orchestrator=Orchestrator(compiler=fake_compiler)
        )
    )

    assert [(config.port, config.host) for config in configs] == [(0, "127.0.0.1")]
    assert configs[0].log_config is None


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def _wait_for(predicate, timeout: float = 5.0) -> None:
    async def poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


async def _read_reload_frames(response: httpx.Response, expected: int) -> list[str]:
    frames: list[str] = []
    async for line in response.aiter_lines():
        if line.startswith("data:"):
            frames.append(line)
            if len(frames) == expected:
                break
    return frames


def test_reload_stream_over_http_fans_out_to_every_client(out_dir: Path) -> None:
    clients = 3

    async def scenario() -> dict:
        broadcaster = ReloadBroadcaster(loop=asyncio.get_running_loop())
        # Short keep-alive so a dropped client is noticed on the next write.
        app = create_app(out_dir, broadcaster, keepalive=0.1)
        port = _free_port()
        server = uvicorn.Server(
            uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning", log_config=None)
        )
        serving = asyncio.create_task(server.serve())
        result: dict = {}
        try:
            await _wait_for(lambda: server.started)
            async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}", timeout=5.0) as http:
                async with contextlib.AsyncExitStack() as streams:
                    responses = [
                        await streams.enter_async_context(http.stream("GET", RELOAD_STREAM_PATH))
                        for _ in range(clients)
                    ]
                    await _wait_for(lambda: broadcaster.subscriber_count == clients)
                    result["delivered"] = [broadcaster.publish(), broadcaster.publish()]
                    result["frames"] = [
                        await asyncio.wait_for(_read_reload_frames(response, 2), 5.0)
                        for response in responses
                    ]
                    result["headers"] = [
                        (response.headers["content-type"], response.headers["cache-control"])
                        for response in responses
                    ]
                    result["status"] = [response.status_code for response in responses]
            await _wait_for(lambda: broadcaster.subscriber_count == 0)
            result["remaining"] = broadcaster.subscriber_count
        finally:
            server.should_exit = True
            await asyncio.wait_for(serving, 10.0)
        return result

    result = asyncio.run(scenario())

    assert result["status"] == [200] * clients
    assert result["delivered"] == [clients, clients]
    assert result["frames"] == [["data: reload", "data: reload"]] * clients
    for content_type, cache_control in result["headers"]:
        assert content_type.startswith("text/event-stream")
        assert cache_control == "no-cache"
    assert result["remaining"] == 0
