"""Periodic device-position publisher."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from ..domain.models import LocationMessage, PositionSample

if TYPE_CHECKING:
    from .hub import BroadcastHub

logger = logging.getLogger(__name__)

MODULE_ID = "module"


class SampleProvider(Protocol):
    def current(self) -> PositionSample: ...


class TelemetryPublisher:
    """
    Samples the position source on a fixed interval and pushes a ``module``
    message through the hub.

    The first tick fires one interval after ``start()``. Ticks without a fix
    still publish, with coordinates zeroed.
    """

    def __init__(
        self,
        hub: BroadcastHub,
        source: SampleProvider,
        interval: float = 5.0,
        participant_id: str = MODULE_ID,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.hub = hub
        self.source = source
        self.interval = interval
        self.participant_id = participant_id
        self._running = False
        self._task: asyncio.Task | None = None
        self.ticks = 0
        self.last_delivered = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def tick(self) -> LocationMessage:
        """Publish the current sample once."""
        sample = self.source.current()
        message = LocationMessage.module(self.participant_id, sample)
        self.last_delivered = await self.hub.publish(message)
        self.ticks += 1
        logger.debug(
            "Published module position %.6f,%.6f (fix=%s) to %d viewers",
            message.latitude,
            message.longitude,
            sample.valid,
            self.last_delivered,
        )
        return message

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info("Telemetry publisher started (every %.1fs)", self.interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Telemetry publisher stopped")

    async def _run(self) -> None:
        while self._running:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception as e:
                logger.error("Telemetry tick failed: %s", e)
