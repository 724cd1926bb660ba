"""Starlette WebSocket wrapped as a hub connection."""

from __future__ import annotations

import uuid

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from ...core.errors import SendError


class WebSocketConnection:
    """Hub connection backed by an accepted FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.id = f"ws-{uuid.uuid4().hex[:8]}"
        client = websocket.client
        self.peer = f"{client.host}:{client.port}" if client else "unknown"

    async def send_text(self, data: str) -> None:
        try:
            await self.websocket.send_text(data)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            raise SendError(f"{self.peer}: {e}") from e

    async def close(self) -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        await self.websocket.close(code=1011)

    def __repr__(self) -> str:
        return f"WebSocketConnection({self.id}, {self.peer})"
