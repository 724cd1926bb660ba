"""Relay web surface - viewer page, WebSocket channel, JSON API."""

from .connection import WebSocketConnection
from .server import RelayServer, create_app

__all__ = [
    "RelayServer",
    "WebSocketConnection",
    "create_app",
]
