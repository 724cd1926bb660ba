"""Connection to participant identity mapping."""

from __future__ import annotations

import logging
from typing import Hashable

logger = logging.getLogger(__name__)


class IdentityRegistry:
    """
    Maps a live connection handle to the participant id it reported.

    Keyed per connection, not per identity: two connections may claim the
    same participant id. Not synchronized on its own; the owning hub
    serializes access.
    """

    def __init__(self) -> None:
        self._ids: dict[Hashable, str] = {}

    def associate(self, connection: Hashable, participant_id: str) -> None:
        """Record or overwrite the identity for ``connection``."""
        previous = self._ids.get(connection)
        self._ids[connection] = participant_id
        if previous is not None and previous != participant_id:
            logger.debug("Connection %s re-identified: %s -> %s", connection, previous, participant_id)

    def resolve(self, connection: Hashable) -> str | None:
        return self._ids.get(connection)

    def remove(self, connection: Hashable) -> None:
        """Forget ``connection``. Unknown connections are ignored."""
        self._ids.pop(connection, None)

    def __contains__(self, connection: object) -> bool:
        return connection in self._ids

    def __len__(self) -> int:
        return len(self._ids)
