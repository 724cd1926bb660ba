"""
gpsrelay Broadcast Hub - Fan-out relay for live viewer connections
==================================================================

Keeps the set of attached viewer connections and relays every accepted
message to all of them.

Features:
- Verbatim relay of viewer reports (sender included)
- Identity tracking for synthetic ``remove`` messages on disconnect
- Concurrent sends, serialized per connection, with a bounded timeout
- Failing connections are detached, never retried

Usage:
    hub = BroadcastHub(send_timeout=2.0)

    await hub.attach(conn)
    await hub.handle_inbound(conn, raw_text)
    await hub.detach(conn)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, runtime_checkable

from ..domain.models import LocationMessage, MessageKind
from . import codec
from .errors import DecodeError, SendError
from .registry import IdentityRegistry

logger = logging.getLogger(__name__)


@runtime_checkable
class Connection(Protocol):
    """One live duplex channel to a viewer."""

    id: str

    async def send_text(self, data: str) -> None: ...

    async def close(self) -> None: ...


class BroadcastHub:
    """
    Shared relay between viewer connections and the device feed.

    The live set and the identity registry are guarded by one lock.
    Sends happen outside it. Each connection has its own send lock, so
    frames to one socket never interleave while broadcasts to other
    viewers proceed independently. Waiting for that lock counts against
    the send timeout. A detach can only ever surface to an in-flight
    fan-out as a failed send.
    """

    def __init__(
        self,
        send_timeout: float = 2.0,
        registry: IdentityRegistry | None = None,
    ) -> None:
        self.send_timeout = send_timeout
        self._registry = registry or IdentityRegistry()
        self._connections: dict[str, Connection] = {}
        self._lock = asyncio.Lock()
        self._send_locks: dict[str, asyncio.Lock] = {}
        self._stats = {
            "attached": 0,
            "detached": 0,
            "messages_relayed": 0,
            "decode_errors": 0,
            "send_failures": 0,
            "removes_sent": 0,
        }

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def identified_count(self) -> int:
        return len(self._registry)

    def is_attached(self, connection: Connection) -> bool:
        return self._connections.get(connection.id) is connection

    async def attach(self, connection: Connection) -> None:
        """Add a connection to the live set. Nothing is sent to it yet."""
        async with self._lock:
            self._connections[connection.id] = connection
            self._send_locks[connection.id] = asyncio.Lock()
            self._stats["attached"] += 1
        logger.info("Viewer %s connected (%d live)", connection.id, self.connection_count)

    async def handle_inbound(self, connection: Connection, raw: str | bytes) -> LocationMessage | None:
        """
        Decode a viewer payload and relay it verbatim.

        Returns the decoded message, or None when the connection is no longer
        attached (the payload is then dropped).

        Raises:
            DecodeError: payload rejected by the codec. Nothing is relayed
                and the registry is untouched.
        """
        try:
            message = codec.decode(raw)
        except DecodeError:
            self._stats["decode_errors"] += 1
            raise

        async with self._lock:
            if not self.is_attached(connection):
                logger.debug("Dropping message from detached viewer %s", connection.id)
                return None
            if message.kind is MessageKind.CLIENT:
                self._registry.associate(connection, message.participant_id)  # type: ignore[arg-type]

        payload = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        await self.broadcast(payload)
        self._stats["messages_relayed"] += 1
        logger.debug("Relayed %s message from %s", message.kind.value, connection.id)
        return message

    async def publish(self, message: LocationMessage) -> int:
        """Encode and broadcast a message that does not come from a viewer."""
        return await self.broadcast(codec.encode(message))

    async def broadcast(self, payload: str) -> int:
        """
        Send ``payload`` to every attached connection.

        Returns the number of successful deliveries. Connections whose send
        fails or times out are detached afterwards.
        """
        async with self._lock:
            targets = list(self._connections.values())
        if not targets:
            return 0

        results = await asyncio.gather(*(self._send(conn, payload) for conn in targets))

        failed = [conn for conn, ok in zip(targets, results) if not ok]
        for conn in failed:
            if await self.detach(conn):
                await self._close_quietly(conn)
        return len(targets) - len(failed)

    async def detach(self, connection: Connection) -> bool:
        """
        Remove a connection and announce its departure.

        Returns False when the connection was not attached, so repeated
        calls for the same connection have no further effect.
        """
        async with self._lock:
            if not self.is_attached(connection):
                return False
            del self._connections[connection.id]
            self._send_locks.pop(connection.id, None)
            participant_id = self._registry.resolve(connection)
            self._registry.remove(connection)
            self._stats["detached"] += 1

        logger.info(
            "Viewer %s disconnected (%s, %d live)",
            connection.id,
            participant_id or "unidentified",
            self.connection_count,
        )
        if participant_id is not None:
            await self.publish(LocationMessage.remove(participant_id))
            self._stats["removes_sent"] += 1
        return True

    async def _send(self, connection: Connection, payload: str) -> bool:
        lock = self._send_locks.get(connection.id)
        if lock is None:
            logger.debug("Skipping send to detached viewer %s", connection.id)
            return False
        try:
            await asyncio.wait_for(self._send_locked(lock, connection, payload), timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("Send to %s timed out after %.1fs", connection.id, self.send_timeout)
        except SendError as e:
            logger.warning("Send to %s failed: %s", connection.id, e)
        except Exception as e:
            logger.warning("Send to %s failed unexpectedly: %s", connection.id, e)
        self._stats["send_failures"] += 1
        return False

    @staticmethod
    async def _send_locked(lock: asyncio.Lock, connection: Connection, payload: str) -> None:
        async with lock:
            await connection.send_text(payload)

    async def _close_quietly(self, connection: Connection) -> None:
        try:
            await connection.close()
        except Exception as e:
            logger.debug("Close of %s failed: %s", connection.id, e)

    def get_stats(self) -> dict:
        """Get hub statistics."""
        return {
            **self._stats,
            "connections": self.connection_count,
            "identified": self.identified_count,
        }
