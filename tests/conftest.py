from __future__ import annotations

import asyncio
import json
import uuid

import pytest

from gpsrelay.core.errors import SendError
from gpsrelay.core.hub import BroadcastHub


class FakeConnection:
    """In-memory hub connection recording everything sent to it."""

    def __init__(self, name: str | None = None, fail: bool = False, delay: float = 0.0) -> None:
        self.id = name or f"fake-{uuid.uuid4().hex[:6]}"
        self.fail = fail
        self.delay = delay
        self.sent: list[str] = []
        self.closed = False

    async def send_text(self, data: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail or self.closed:
            raise SendError("broken pipe")
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True

    @property
    def messages(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]


@pytest.fixture
def make_conn():
    return FakeConnection


@pytest.fixture
def hub() -> BroadcastHub:
    return BroadcastHub(send_timeout=0.5)
