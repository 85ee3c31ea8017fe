from typing import Dict, NamedTuple, Optional

from logging_config import get_logger

logger = get_logger(__name__)


class Assignment(NamedTuple):
    room_id: str
    peer_id: str


class ConnectionRegistry:
    """Room and peer id of every connection that has joined a room.

    Entries are keyed by connection identity and live exactly as long as the
    connection is joined. Callers serialize access; the registry itself does
    no locking.
    """

    def __init__(self):
        self._assignments: Dict[object, Assignment] = {}

    def assign(self, connection, room_id: str, peer_id: str) -> None:
        if not connection.is_open():
            logger.debug(f"Ignoring assignment of closed connection {connection!r} to room {room_id}")
            return
        self._assignments[connection] = Assignment(room_id, peer_id)

    def lookup(self, connection) -> Optional[Assignment]:
        return self._assignments.get(connection)

    def clear(self, connection) -> None:
        self._assignments.pop(connection, None)

    def __contains__(self, connection) -> bool:
        return connection in self._assignments

    def __len__(self) -> int:
        return len(self._assignments)
