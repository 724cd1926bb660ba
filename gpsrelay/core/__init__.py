"""gpsrelay Core - broadcast hub, identity registry, codec and telemetry publisher."""

from .codec import decode, encode
from .errors import DecodeError, RelayError, SendError
from .hub import BroadcastHub, Connection
from .publisher import MODULE_ID, TelemetryPublisher
from .registry import IdentityRegistry

__all__ = [
    "MODULE_ID",
    "BroadcastHub",
    "Connection",
    "DecodeError",
    "IdentityRegistry",
    "RelayError",
    "SendError",
    "TelemetryPublisher",
    "decode",
    "encode",
]
