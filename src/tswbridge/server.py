"""Dashboard-facing HTTP and WebSocket surface."""

from __future__ import annotations

import logging
from pathlib import Path

from aiohttp import WSMsgType, web

from tswbridge.client import TswBridge
from tswbridge.exceptions import TswError

_logger = logging.getLogger(__name__)

BRIDGE_KEY = web.AppKey("bridge", TswBridge)

INDEX_FILE = "index.html"


async def handle_status(request: web.Request) -> web.Response:
    """Return the current snapshot, or 500 with the failure message."""
    bridge = request.app[BRIDGE_KEY]
    try:
        snapshot = bridge.build_status()
    except TswError as exc:
        _logger.warning("Status query failed: %s", exc)
        return web.json_response({"error": str(exc)}, status=500)
    return web.json_response(snapshot.model_dump(mode="json"))


async def _stream(request: web.Request, ws: web.WebSocketResponse) -> web.WebSocketResponse:
    broadcaster = request.app[BRIDGE_KEY].broadcaster
    await ws.prepare(request)
    broadcaster.attach(ws)
    try:
        # Inbound messages carry nothing; reading keeps close frames flowing.
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                _logger.debug("WebSocket closed with error: %s", ws.exception())
    finally:
        broadcaster.detach(ws)
    return ws


async def handle_stream(request: web.Request) -> web.StreamResponse:
    return await _stream(request, web.WebSocketResponse(heartbeat=30.0))


async def handle_index(request: web.Request) -> web.StreamResponse:
    """Serve the dashboard page, or accept a WebSocket upgrade on ``/``."""
    ws = web.WebSocketResponse(heartbeat=30.0)
    if ws.can_prepare(request).ok:
        return await _stream(request, ws)

    static_dir = request.app[BRIDGE_KEY].config.static_dir
    if static_dir is None:
        raise web.HTTPNotFound(text="No dashboard configured")
    index = Path(static_dir) / INDEX_FILE
    if not index.is_file():
        raise web.HTTPNotFound(text="No dashboard configured")
    return web.FileResponse(index)


async def _start_bridge(app: web.Application) -> None:
    await app[BRIDGE_KEY].start()


async def _stop_bridge(app: web.Application) -> None:
    await app[BRIDGE_KEY].stop()


def create_app(bridge: TswBridge, *, manage_bridge: bool = True) -> web.Application:
    """Create the web application serving *bridge*.

    With ``manage_bridge`` the bridge is started and stopped with the
    application; pass ``False`` when the caller owns its lifecycle.
    """
    app = web.Application()
    app[BRIDGE_KEY] = bridge

    app.router.add_get("/", handle_index)
    app.router.add_get("/status", handle_status)
    app.router.add_get("/ws", handle_stream)

    static_dir = bridge.config.static_dir
    if static_dir is not None and Path(static_dir).is_dir():
        app.router.add_static("/static", static_dir)

    if manage_bridge:
        app.on_startup.append(_start_bridge)
        app.on_cleanup.append(_stop_bridge)

    return app
