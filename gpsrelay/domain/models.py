"""gpsrelay Domain Models - Pydantic models for positions and wire messages."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MessageKind(str, Enum):
    """Wire message categories."""

    MODULE = "module"  # device feed
    CLIENT = "client"  # viewer report
    REMOVE = "remove"  # viewer left


class PositionSample(BaseModel):
    """Immutable snapshot of the device's last GPS fix."""

    model_config = ConfigDict(frozen=True)

    latitude: float = 0.0
    longitude: float = 0.0
    valid: bool = False
    satellites: int = Field(0, ge=0)
    speed_kmh: float = 0.0
    sampled_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def no_fix(cls) -> PositionSample:
        """Placeholder sample used before the first fix arrives."""
        return cls()

    def age_secs(self, now: datetime | None = None) -> float:
        """Seconds elapsed since this sample was taken."""
        now = now or datetime.now(UTC)
        return max(0.0, (now - self.sampled_at).total_seconds())


class LocationMessage(BaseModel):
    """
    Wire-level relay message.

    Field names on the wire are camelCase (``participantId``, ``displayName``),
    both when decoding viewer reports and when encoding hub-built messages.
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: MessageKind
    participant_id: str | None = Field(None, alias="participantId")
    display_name: str | None = Field(None, alias="displayName")
    latitude: float | None = None
    longitude: float | None = None

    @model_validator(mode="after")
    def _client_needs_participant(self) -> LocationMessage:
        if self.kind is MessageKind.CLIENT and not self.participant_id:
            raise ValueError("client message requires participantId")
        return self

    @classmethod
    def module(cls, participant_id: str, sample: PositionSample) -> LocationMessage:
        """Device-feed message; coordinates are zeroed when there is no fix."""
        if sample.valid:
            lat, lng = sample.latitude, sample.longitude
        else:
            lat, lng = 0.0, 0.0
        return cls(
            kind=MessageKind.MODULE,
            participant_id=participant_id,
            latitude=lat,
            longitude=lng,
        )

    @classmethod
    def remove(cls, participant_id: str) -> LocationMessage:
        return cls(kind=MessageKind.REMOVE, participant_id=participant_id)
