"""
Relay Web Server.

FastAPI application around the broadcast hub:
- Viewer page (Leaflet map)
- WebSocket channel for viewer reports and broadcasts
- JSON endpoint with the latest device fix
- Health and status
"""

from __future__ import annotations

import asyncio
import html
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse

from ... import __version__
from ...config import RelayAppConfig
from ...core.errors import DecodeError
from ...core.hub import BroadcastHub
from ...core.publisher import TelemetryPublisher
from ...infrastructure.gps import AsyncGPSClient, GPSDConfig, MockGPSClient, PositionSource
from .connection import WebSocketConnection

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


class RelayServer:
    """
    Location relay server.

    Owns one hub, one position source and one publisher. The GPS client is
    started with the app unless ``gps.enabled`` is false.
    """

    def __init__(
        self,
        cfg: RelayAppConfig | None = None,
        hub: BroadcastHub | None = None,
        source: PositionSource | None = None,
        gps_client: AsyncGPSClient | None = None,
    ) -> None:
        self.cfg = cfg or RelayAppConfig()
        self.hub = hub or BroadcastHub(send_timeout=self.cfg.relay.send_timeout_secs)
        self.source = source or PositionSource(stale_after=self.cfg.gps.stale_after_secs)
        self.gps_client = gps_client
        self.publisher = TelemetryPublisher(
            self.hub,
            self.source,
            interval=self.cfg.relay.publish_interval_secs,
            participant_id=self.cfg.relay.module_id,
        )
        self._gps_task: asyncio.Task | None = None

        self.app = self._create_app()

    def _build_gps_client(self) -> AsyncGPSClient | None:
        gps = self.cfg.gps
        if not gps.enabled:
            return None
        if gps.mock_mode:
            return MockGPSClient(start_lat=gps.mock_lat, start_lon=gps.mock_lon)
        return AsyncGPSClient(
            GPSDConfig(
                host=gps.host,
                port=gps.port,
                reconnect_delay=gps.reconnect_delay,
                timeout=gps.timeout,
            )
        )

    async def startup(self) -> None:
        if self.gps_client is None:
            self.gps_client = self._build_gps_client()
        if self.gps_client is not None:
            self._gps_task = asyncio.create_task(self.source.follow(self.gps_client))
        else:
            logger.warning("GPS disabled - device feed will report no fix")
        await self.publisher.start()

    async def shutdown(self) -> None:
        await self.publisher.stop()
        if self.gps_client is not None:
            await self.gps_client.stop()
        if self._gps_task:
            self._gps_task.cancel()
            try:
                await self._gps_task
            except asyncio.CancelledError:
                pass
            self._gps_task = None

    def _create_app(self) -> FastAPI:
        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncIterator[None]:
            await self.startup()
            try:
                yield
            finally:
                await self.shutdown()

        app = FastAPI(
            title="gpsrelay",
            version=__version__,
            docs_url="/api/docs",
            redoc_url=None,
            lifespan=lifespan,
        )
        app.state.relay = self
        self._register_routes(app)
        return app

    def _register_routes(self, app: FastAPI) -> None:

        @app.get("/", response_class=HTMLResponse)
        async def index():
            """Serve the viewer page."""
            page = (STATIC_DIR / "index.html").read_text(encoding="utf-8")
            page = page.replace("{{title}}", html.escape(self.cfg.web.title))
            page = page.replace("{{ws_path}}", self.cfg.web.ws_path)
            return HTMLResponse(page)

        @app.get("/api/health")
        async def health():
            return {"ok": True, "version": __version__}

        @app.get("/api/location")
        async def location():
            """Latest device fix, for HTTP polling clients."""
            sample = self.source.current()
            return {
                "latitude": sample.latitude,
                "longitude": sample.longitude,
                "valid": sample.valid,
                "satellites": sample.satellites,
                "speed_kmh": sample.speed_kmh,
                "sampled_at": sample.sampled_at.isoformat(),
                "age_secs": round(sample.age_secs(), 3),
            }

        @app.get("/api/status")
        async def status():
            client = self.gps_client
            return {
                "hub": self.hub.get_stats(),
                "publisher": {
                    "running": self.publisher.is_running,
                    "interval_secs": self.publisher.interval,
                    "ticks": self.publisher.ticks,
                    "module_id": self.publisher.participant_id,
                },
                "gps": {
                    "enabled": client is not None,
                    "connected": client.is_connected if client else False,
                    "fix": self.source.current().valid,
                },
            }

        @app.websocket(self.cfg.web.ws_path)
        async def viewer_socket(websocket: WebSocket):
            await websocket.accept()
            conn = WebSocketConnection(websocket)
            await self.hub.attach(conn)
            try:
                while True:
                    message = await websocket.receive()
                    if message["type"] == "websocket.disconnect":
                        break
                    raw = message.get("text")
                    if raw is None:
                        raw = message.get("bytes")
                    if raw is None:
                        continue
                    try:
                        await self.hub.handle_inbound(conn, raw)
                    except DecodeError as e:
                        logger.warning("Dropped malformed message from %s: %s", conn.id, e.reason)
            except WebSocketDisconnect:
                pass
            except RuntimeError as e:
                # Socket closed underneath us after a failed send
                logger.debug("Viewer %s receive loop ended: %s", conn.id, e)
            finally:
                await self.hub.detach(conn)


def create_app(cfg: RelayAppConfig | None = None, **kwargs) -> FastAPI:
    """Build the FastAPI app for ``cfg``."""
    return RelayServer(cfg, **kwargs).app
