"""Async gpsd client with auto-reconnect, yielding PositionSample values."""

from __future__ import annotations

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import AsyncIterator

from ...domain.models import PositionSample

logger = logging.getLogger(__name__)

MPS_TO_KMH = 3.6


@dataclass
class GPSDConfig:
    """gpsd connection settings."""

    host: str = "localhost"
    port: int = 2947
    reconnect_delay: float = 5.0
    timeout: float = 10.0
    max_reconnect_attempts: int = 0  # 0 = infinite


@dataclass
class GPSState:
    """Client diagnostics."""

    connected: bool = False
    fix_count: int = 0
    error_count: int = 0
    last_fix: datetime | None = None
    satellites: int = 0


class AsyncGPSClient:
    """
    gpsd client streaming TPV reports as PositionSample values.

    Usage:
        client = AsyncGPSClient(GPSDConfig(host="localhost"))

        async for sample in client.stream_positions():
            print(sample.latitude, sample.longitude, sample.valid)
    """

    def __init__(self, config: GPSDConfig | None = None) -> None:
        self.config = config or GPSDConfig()
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._running = False
        self._state = GPSState()
        self._reconnect_attempts = 0

    @property
    def is_connected(self) -> bool:
        return self._state.connected

    @property
    def state(self) -> GPSState:
        return self._state

    async def connect(self) -> bool:
        """
        Connect to gpsd and enable JSON watch mode.

        Returns:
            True if connected, False otherwise.
        """
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.config.host, self.config.port),
                timeout=self.config.timeout,
            )
            self._writer.write(b'?WATCH={"enable":true,"json":true}\n')
            await self._writer.drain()

            self._state.connected = True
            self._reconnect_attempts = 0
            logger.info("Connected to gpsd at %s:%d", self.config.host, self.config.port)
            return True

        except asyncio.TimeoutError:
            logger.warning("gpsd connection timeout to %s:%d", self.config.host, self.config.port)
        except ConnectionRefusedError:
            logger.warning("gpsd connection refused - is gpsd running?")
        except OSError as e:
            logger.warning("gpsd connection failed: %s", e)
        self._state.error_count += 1
        return False

    async def disconnect(self) -> None:
        if self._writer:
            try:
                self._writer.write(b'?WATCH={"enable":false}\n')
                await self._writer.drain()
                self._writer.close()
                await self._writer.wait_closed()
            except OSError as e:
                logger.debug("gpsd disconnect error: %s", e)

        self._reader = None
        self._writer = None
        self._state.connected = False

    async def stream_positions(self) -> AsyncIterator[PositionSample]:
        """
        Yield a sample for every TPV report.

        Reconnects on failure and never raises; stops only after ``stop()``
        or when ``max_reconnect_attempts`` is exhausted.
        """
        self._running = True

        while self._running:
            if not self._reader:
                if not await self.connect():
                    self._reconnect_attempts += 1
                    if (
                        self.config.max_reconnect_attempts > 0
                        and self._reconnect_attempts >= self.config.max_reconnect_attempts
                    ):
                        logger.error("gpsd max reconnect attempts reached, stopping")
                        break
                    await asyncio.sleep(self.config.reconnect_delay)
                    continue

            try:
                line = await asyncio.wait_for(
                    self._reader.readline(),  # type: ignore[union-attr]
                    timeout=self.config.timeout,
                )
                if not line:
                    raise ConnectionError("gpsd closed the connection")

                data = json.loads(line.decode("utf-8"))
                cls = data.get("class")
                if cls == "SKY":
                    self._state.satellites = self._count_used(data)
                elif cls == "TPV":
                    sample = self.parse_tpv(data)
                    if sample.valid:
                        self._state.fix_count += 1
                        self._state.last_fix = sample.sampled_at
                    yield sample

            except asyncio.TimeoutError:
                logger.debug("gpsd read timeout, connection still alive")

            except (ValueError, TypeError, AttributeError) as e:
                # JSONDecodeError and UnicodeDecodeError are ValueErrors
                logger.warning("gpsd report parse error: %s", e)

            except (ConnectionError, OSError) as e:
                logger.warning("gpsd stream error: %s, reconnecting...", e)
                self._state.error_count += 1
                await self.disconnect()
                await asyncio.sleep(self.config.reconnect_delay)

    def parse_tpv(self, data: dict) -> PositionSample:
        """
        Convert a gpsd TPV report to a sample.

        TPV ``mode``: 0=unknown, 1=no fix, 2=2D, 3=3D. Reports without a
        2D/3D fix or without coordinates become invalid samples.
        """
        mode = data.get("mode", 0)
        try:
            lat = float(data["lat"])
            lon = float(data["lon"])
        except (KeyError, TypeError, ValueError):
            return PositionSample(satellites=self._state.satellites)

        speed = data.get("speed")
        return PositionSample(
            latitude=lat,
            longitude=lon,
            valid=mode >= 2,
            satellites=self._state.satellites,
            speed_kmh=float(speed) * MPS_TO_KMH if speed is not None else 0.0,
        )

    @staticmethod
    def _count_used(data: dict) -> int:
        if "uSat" in data:
            return int(data["uSat"])
        return sum(1 for sat in data.get("satellites", []) if sat.get("used"))

    async def stop(self) -> None:
        """Stop streaming and disconnect."""
        self._running = False
        await self.disconnect()


class MockGPSClient(AsyncGPSClient):
    """
    Simulated client for bench use without a receiver.

    Walks a ~111 m circle around the start point, one sample per ``period``.
    """

    def __init__(
        self,
        start_lat: float = 41.0082,
        start_lon: float = 28.9784,
        speed_kmh: float = 3.6,
        period: float = 1.0,
    ) -> None:
        super().__init__()
        self._start_lat = start_lat
        self._start_lon = start_lon
        self._speed = speed_kmh
        self._period = period
        self._step = 0

    async def connect(self) -> bool:
        self._state.connected = True
        logger.info("Mock GPS connected (simulated)")
        return True

    def next_sample(self) -> PositionSample:
        angle = math.radians(self._step * 5)
        radius = 0.001
        self._step += 1
        return PositionSample(
            latitude=self._start_lat + radius * math.sin(angle),
            longitude=self._start_lon + radius * math.cos(angle),
            valid=True,
            satellites=8,
            speed_kmh=self._speed,
            sampled_at=datetime.now(UTC),
        )

    async def stream_positions(self) -> AsyncIterator[PositionSample]:
        self._running = True
        await self.connect()

        while self._running:
            sample = self.next_sample()
            self._state.fix_count += 1
            self._state.last_fix = sample.sampled_at
            yield sample
            await asyncio.sleep(self._period)
