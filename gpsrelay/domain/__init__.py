"""gpsrelay domain models."""

from .models import LocationMessage, MessageKind, PositionSample

__all__ = [
    "LocationMessage",
    "MessageKind",
    "PositionSample",
]
