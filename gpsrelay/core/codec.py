"""JSON wire codec for relay messages."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from ..domain.models import LocationMessage
from .errors import DecodeError

logger = logging.getLogger(__name__)


def encode(message: LocationMessage) -> str:
    """Serialize a message with camelCase field names, omitting absent fields."""
    return message.model_dump_json(by_alias=True, exclude_none=True)


def decode(raw: str | bytes) -> LocationMessage:
    """
    Parse and validate an inbound payload.

    Raises:
        DecodeError: payload is not a JSON object, ``kind`` is missing or
            unknown, or a ``client`` message has no ``participantId``.
    """
    try:
        return LocationMessage.model_validate_json(raw)
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_input=False)
        reason = "; ".join(_format_error(err) for err in errors) or "invalid message"
        logger.debug("Decode failed: %s", reason)
        raise DecodeError(reason, raw) from exc


def _format_error(err: dict) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()))
    msg = err.get("msg", "invalid")
    return f"{loc}: {msg}" if loc else msg
