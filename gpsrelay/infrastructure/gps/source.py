"""Latest-fix holder between the GPS client and the relay."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.models import PositionSample

if TYPE_CHECKING:
    from .gpsd_client import AsyncGPSClient

logger = logging.getLogger(__name__)


class PositionSource:
    """
    Holds the most recent PositionSample.

    ``current()`` never waits on the GPS hardware; it returns whatever was
    stored last. Samples older than ``stale_after`` seconds are reported as
    invalid, the way the single-device pages treat an aged fix as lost.
    """

    def __init__(self, stale_after: float | None = None) -> None:
        self.stale_after = stale_after
        self._sample = PositionSample.no_fix()
        self._had_fix = False

    def current(self) -> PositionSample:
        sample = self._sample
        if sample.valid and self.stale_after is not None and sample.age_secs() > self.stale_after:
            return sample.model_copy(update={"valid": False})
        return sample

    def update(self, sample: PositionSample) -> None:
        """Replace the held sample."""
        if sample.valid != self._had_fix:
            if sample.valid:
                logger.info("GPS fix acquired (%d satellites)", sample.satellites)
            else:
                logger.warning("GPS fix lost")
            self._had_fix = sample.valid
        self._sample = sample

    async def follow(self, client: AsyncGPSClient) -> None:
        """Feed this source from a GPS client until the stream ends."""
        async for sample in client.stream_positions():
            self.update(sample)
