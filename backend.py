import asyncio
import json
from typing import Dict, List, Optional, Set, Union

from pydantic import ValidationError

from constants import SEND_TIMEOUT_SECONDS
from logging_config import get_logger
from message_types import JOIN_ROOM
from registry import ConnectionRegistry
from schemas.messages import JoinRoomMessage, NewPeerMessage, PeerLeftMessage

logger = get_logger(__name__)


def decode_frame(raw: Union[str, bytes, None]) -> Optional[str]:
    """Text of an inbound frame. Binary frames must be strict UTF-8."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    return raw


def parse_envelope(raw: Union[str, bytes, None]) -> Optional[dict]:
    """Decode an inbound frame. Returns None for anything that is not a JSON object."""
    text = decode_frame(raw)
    if text is None:
        return None
    try:
        envelope = json.loads(text)
    except (ValueError, TypeError, RecursionError):
        return None
    if not isinstance(envelope, dict):
        return None
    return envelope


class RoomBroadcaster:
    """Room membership and fan-out for the signaling relay.

    ``rooms`` maps a room id to the connections currently joined to it and is
    kept consistent with ``registry``: a connection is in a room's set exactly
    when the registry reports that room for it. A room whose set becomes empty
    is removed on the spot.

    Connections are duck-typed: ``is_open()`` and ``async send(text)``.
    """

    def __init__(self, registry: Optional[ConnectionRegistry] = None, send_timeout: float = SEND_TIMEOUT_SECONDS):
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.rooms: Dict[str, Set[object]] = {}
        self.send_timeout = send_timeout
        self._lock = asyncio.Lock()

    async def handle_message(self, connection, raw: Union[str, bytes, None]) -> None:
        text = decode_frame(raw)
        envelope = parse_envelope(text)
        if envelope is None:
            logger.debug(f"Discarding non-object payload from connection {connection!r}")
            return

        if envelope.get("type") == JOIN_ROOM:
            await self._join(connection, envelope)
            return

        await self._relay(connection, envelope, text)

    async def handle_close(self, connection) -> None:
        async with self._lock:
            assignment = self.registry.lookup(connection)
            if assignment is None:
                return
            room_id, peer_id = assignment

            members = self.rooms.get(room_id)
            if members is not None:
                members.discard(connection)
                recipients = list(members)
                if not members:
                    del self.rooms[room_id]
                    logger.info(f"Room {room_id} is empty, removing it")
            else:
                recipients = []
            self.registry.clear(connection)

        logger.info(f"Peer {peer_id} left room {room_id} ({len(recipients)} remaining)")
        notice = PeerLeftMessage(roomId=room_id, sender=peer_id)
        await self._fan_out(recipients, notice.model_dump_json())

    async def _join(self, connection, envelope: dict) -> None:
        try:
            join = JoinRoomMessage.model_validate(envelope)
        except ValidationError:
            logger.debug(f"Discarding join-room without usable roomId/sender from connection {connection!r}")
            return

        async with self._lock:
            if not connection.is_open():
                return
            current = self.registry.lookup(connection)
            if current is not None:
                logger.warning(
                    f"Ignoring join-room {join.roomId} from peer {join.sender}: "
                    f"connection already joined room {current.room_id} as {current.peer_id}"
                )
                return

            members = self.rooms.setdefault(join.roomId, set())
            members.add(connection)
            self.registry.assign(connection, join.roomId, join.sender)
            recipients = [member for member in members if member is not connection]

        logger.info(f"Peer {join.sender} joined room {join.roomId} ({len(recipients) + 1} members)")
        notice = NewPeerMessage(roomId=join.roomId, sender=join.sender)
        await self._fan_out(recipients, notice.model_dump_json())

    async def _relay(self, connection, envelope: dict, text: str) -> None:
        async with self._lock:
            assignment = self.registry.lookup(connection)
            if assignment is None:
                logger.debug(
                    f"Discarding {envelope.get('type')!r} from connection {connection!r}: not in a room"
                )
                return
            recipients = [member for member in self.rooms.get(assignment.room_id, ()) if member is not connection]

        logger.debug(
            f"Relaying {envelope.get('type')!r} from peer {assignment.peer_id} "
            f"to {len(recipients)} peers in room {assignment.room_id}"
        )
        await self._fan_out(recipients, text)

    async def _fan_out(self, recipients: List[object], text: str) -> int:
        """Send ``text`` to every open recipient concurrently. Returns the delivered count."""
        targets = [recipient for recipient in recipients if recipient.is_open()]
        if not targets:
            return 0
        results = await asyncio.gather(*(self._deliver(target, text) for target in targets))
        return sum(1 for delivered in results if delivered)

    async def _deliver(self, connection, text: str) -> bool:
        try:
            await asyncio.wait_for(connection.send(text), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Send to connection {connection!r} timed out after {self.send_timeout}s")
            return False
        except Exception as e:
            logger.warning(f"Error sending to connection {connection!r}: {e}")
            return False
        return True

    def room_ids(self) -> List[str]:
        return list(self.rooms)

    def members(self, room_id: str) -> List[str]:
        """Peer ids currently joined to ``room_id``; empty for an unknown room."""
        peers = []
        for connection in list(self.rooms.get(room_id, ())):
            assignment = self.registry.lookup(connection)
            if assignment is not None:
                peers.append(assignment.peer_id)
        return peers

    def stats(self) -> dict:
        return {
            "room_count": len(self.rooms),
            "connection_count": len(self.registry),
        }


room_broadcaster = RoomBroadcaster()
