"""Tests for the dashboard-facing HTTP/WebSocket surface."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import WSMsgType
from aiohttp.test_utils import TestClient, TestServer

from tswbridge._constants import DRIVER_AID_GROUP, SPEED_FUNCTION, SUBSCRIPTION_GROUP, TRACK_DATA_GROUP
from tswbridge.client import TswBridge
from tswbridge.config import BridgeConfig
from tswbridge.exceptions import TswAssemblyError
from tswbridge.models.status import StatusSnapshot
from tswbridge.server import create_app


@dataclass
class FakeGameApi:
    """In-process stand-in for the game's HTTP API."""

    speed: float = 12.5
    registered: set[str] = field(default_factory=set)
    calls: dict[str, int] = field(default_factory=dict)

    async def fetch(self, path: str, method: str = "GET") -> Any:
        self.calls[path] = self.calls.get(path, 0) + 1
        if method == "POST" and path.startswith("/subscription/"):
            self.registered.add(path.removeprefix("/subscription/").split("?", 1)[0])
            return {}
        if path.startswith("/subscription/?"):
            entries = []
            for registered in sorted(self.registered):
                values: dict[str, Any] = {}
                if "speed" in registered.lower():
                    values = {"Speed (ms)": self.speed}
                entries.append({"Path": registered, "Values": values})
            return {"RequestedSubscriptionID": 1, "Entries": entries}
        if path == f"/get/{DRIVER_AID_GROUP}":
            return {"signalAspectClass": "Clear", "distanceToSignal": 50000, "gradient": 0.4}
        if path == f"/get/{TRACK_DATA_GROUP}":
            return {"markers": [{"stationName": "Dresden", "distanceToStationCM": 300000}]}
        return {}


def _config(**overrides: Any) -> BridgeConfig:
    params: dict[str, Any] = {
        "comm_key": "test-key",
        "fast_period": 0.01,
        "heavy_period": 0.02,
        "broadcast_interval": 0.01,
        "subscription_retry_interval": 0.01,
    }
    params.update(overrides)
    return BridgeConfig(**params)


@pytest_asyncio.fixture
async def bridge_client() -> AsyncIterator[tuple[TswBridge, TestClient]]:
    bridge = TswBridge(_config(), transport=FakeGameApi())
    async with TestClient(TestServer(create_app(bridge, manage_bridge=False))) as client:
        yield bridge, client


@pytest.mark.asyncio
async def test_status_defaults_before_any_fetch(bridge_client: tuple[TswBridge, TestClient]) -> None:
    _bridge, client = bridge_client

    resp = await client.get("/status")

    assert resp.status == 200
    body = await resp.json()
    assert body["speed_mps"] == 0.0
    assert body["accel_mps2"] == 0.0
    assert body["next_signal_aspect"] is None
    assert body["next_station_name"] is None
    assert body["next_stations"] == []


@pytest.mark.asyncio
async def test_status_reads_cached_groups(bridge_client: tuple[TswBridge, TestClient]) -> None:
    bridge, client = bridge_client
    bridge.cache.store(
        SUBSCRIPTION_GROUP,
        {"Entries": [{"Path": SPEED_FUNCTION, "Values": {"Speed (ms)": 10.0}}]},
    )
    bridge.cache.store(DRIVER_AID_GROUP, {"distanceToSignal": 12345})

    body = await (await client.get("/status")).json()

    assert body["speed_kph"] == pytest.approx(36.0)
    assert body["distance_to_signal_m"] == pytest.approx(123.45)


@pytest.mark.asyncio
async def test_status_failure_returns_500(
    bridge_client: tuple[TswBridge, TestClient],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    bridge, client = bridge_client

    def explode() -> StatusSnapshot:
        raise TswAssemblyError("Snapshot assembly failed: boom")

    monkeypatch.setattr(bridge, "build_status", explode)

    resp = await client.get("/status")

    assert resp.status == 500
    assert await resp.json() == {"error": "Snapshot assembly failed: boom"}


@pytest.mark.asyncio
async def test_websocket_receives_status_messages(bridge_client: tuple[TswBridge, TestClient]) -> None:
    bridge, client = bridge_client

    async with client.ws_connect("/ws") as ws:
        for _ in range(100):
            if bridge.broadcaster.consumers:
                break
            await asyncio.sleep(0.01)
        assert len(bridge.broadcaster.consumers) == 1

        assert await bridge.broadcaster.tick() == 1
        msg = await ws.receive(timeout=1.0)

    assert msg.type == WSMsgType.TEXT
    payload = json.loads(msg.data)
    assert payload["type"] == "status"
    assert payload["data"]["speed_mps"] == 0.0

    for _ in range(100):
        if not bridge.broadcaster.consumers:
            break
        await asyncio.sleep(0.01)
    assert bridge.broadcaster.consumers == frozenset()


@pytest.mark.asyncio
async def test_websocket_upgrade_on_root(bridge_client: tuple[TswBridge, TestClient]) -> None:
    bridge, client = bridge_client

    async with client.ws_connect("/") as ws:
        for _ in range(100):
            if bridge.broadcaster.consumers:
                break
            await asyncio.sleep(0.01)
        await bridge.broadcaster.tick()
        msg = await ws.receive(timeout=1.0)

    assert json.loads(msg.data)["type"] == "status"


@pytest.mark.asyncio
async def test_index_without_dashboard_is_404(bridge_client: tuple[TswBridge, TestClient]) -> None:
    _bridge, client = bridge_client

    resp = await client.get("/")

    assert resp.status == 404


@pytest.mark.asyncio
async def test_index_serves_dashboard(tmp_path: Path) -> None:
    (tmp_path / "index.html").write_text("<html>HUD</html>", encoding="utf-8")
    (tmp_path / "hud.js").write_text("console.log('hud')", encoding="utf-8")
    bridge = TswBridge(_config(static_dir=str(tmp_path)), transport=FakeGameApi())

    async with TestClient(TestServer(create_app(bridge, manage_bridge=False))) as client:
        index = await client.get("/")
        script = await client.get("/static/hud.js")

        assert index.status == 200
        assert "HUD" in await index.text()
        assert script.status == 200


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_bridge_lifecycle_with_app() -> None:
    game = FakeGameApi(speed=20.0)
    bridge = TswBridge(_config(), transport=game)

    async with TestClient(TestServer(create_app(bridge))) as client:
        body: dict[str, Any] = {}
        for _ in range(200):
            body = await (await client.get("/status")).json()
            if body["speed_mps"] and body["next_station_name"]:
                break
            await asyncio.sleep(0.01)

        assert body["speed_mps"] == 20.0
        assert body["speed_kph"] == pytest.approx(72.0)
        assert body["next_signal_aspect"] == "Clear"
        assert body["distance_to_signal_m"] == 500.0
        assert body["next_station_name"] == "Dresden"
        assert body["next_station_distance_m"] == 3000.0
        assert bridge.subscriptions is not None
        assert SPEED_FUNCTION in bridge.subscriptions.confirmed

        async with client.ws_connect("/ws") as ws:
            msg = await ws.receive(timeout=1.0)
            assert json.loads(msg.data)["data"]["speed_mps"] == 20.0

    assert bridge.broadcaster.is_running is False
    assert bridge.refresher is None
