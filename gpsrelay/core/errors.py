"""Relay error taxonomy."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relay errors. None of them are fatal to the process."""


class DecodeError(RelayError):
    """Inbound payload is malformed or incomplete. The message is dropped."""

    def __init__(self, reason: str, raw: str | bytes | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.raw = raw


class SendError(RelayError):
    """Transport failure while delivering to a single connection."""
