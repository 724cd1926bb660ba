"""GPS infrastructure - gpsd client and latest-fix source."""

from .gpsd_client import AsyncGPSClient, GPSDConfig, MockGPSClient
from .source import PositionSource

__all__ = [
    "AsyncGPSClient",
    "GPSDConfig",
    "MockGPSClient",
    "PositionSource",
]
