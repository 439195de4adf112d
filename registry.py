import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, NamedTuple, Optional

from constants import MAX_ROOM_MEMBERS
from logging_config import get_logger

logger = get_logger(__name__)


class CallState(str, Enum):
    WAITING = "waiting"
    NEGOTIATING = "negotiating"
    CONNECTED = "connected"
    ENDED = "ended"


@dataclass
class ConnectionRecord:
    connection_id: str
    room_id: Optional[str] = None
    display_name: Optional[str] = None


@dataclass
class Room:
    room_id: str
    # connection_id -> display_name, insertion ordered
    members: Dict[str, str] = field(default_factory=dict)
    state: CallState = CallState.WAITING
    # set when the second member arrives; cleared only by eviction
    ready_fired: bool = False


class LeaveResult(NamedTuple):
    room_id: str
    remaining: FrozenSet[str]


class JoinResult(NamedTuple):
    room_id: str
    member_count: int
    accepted: bool = True
    added: bool = True
    previous: Optional[LeaveResult] = None
    # members present before this join, read under the same lock
    peers: FrozenSet[str] = frozenset()
    ready: bool = False


class RoomSnapshot(NamedTuple):
    room_id: str
    state: CallState
    members: Dict[str, str]


class RoomRegistry:
    """In-memory bookkeeping of connections and the rooms they share.

    Every public method takes the registry lock, so two joins racing for the
    same room can never both observe a single member. Missing keys are never
    an error: lookups return None and leaves of unknown connections return
    None.
    """

    def __init__(self, max_members: int = MAX_ROOM_MEMBERS):
        self.max_members = max_members
        self._lock = threading.RLock()
        self._connections: Dict[str, ConnectionRecord] = {}
        self._rooms: Dict[str, Room] = {}

    def connect(self, connection_id: str) -> ConnectionRecord:
        with self._lock:
            record = self._connections.get(connection_id)
            if record is None:
                record = ConnectionRecord(connection_id=connection_id)
                self._connections[connection_id] = record
                logger.debug(f"Registered connection {connection_id} ({len(self._connections)} open)")
            return record

    def disconnect(self, connection_id: str) -> Optional[LeaveResult]:
        """Forget a connection entirely, leaving its room first."""
        with self._lock:
            result = self._leave(connection_id)
            self._connections.pop(connection_id, None)
            logger.debug(f"Forgot connection {connection_id} ({len(self._connections)} open)")
            return result

    def join(self, connection_id: str, room_id: str, display_name: str) -> JoinResult:
        with self._lock:
            record = self._connections.get(connection_id)
            if record is None:
                record = ConnectionRecord(connection_id=connection_id)
                self._connections[connection_id] = record

            room = self._rooms.get(room_id)

            # Re-join of the same room only refreshes the display name
            if room is not None and connection_id in room.members:
                room.members[connection_id] = display_name
                record.display_name = display_name
                logger.debug(f"Connection {connection_id} re-joined room {room_id} as '{display_name}'")
                return JoinResult(room_id=room_id, member_count=len(room.members), added=False)

            if room is not None and len(room.members) >= self.max_members:
                logger.info(f"Room {room_id} is full ({len(room.members)}/{self.max_members}), refusing {connection_id}")
                return JoinResult(room_id=room_id, member_count=len(room.members), accepted=False, added=False)

            previous = None
            if record.room_id is not None and record.room_id != room_id:
                previous = self._leave(connection_id)

            if room is None:
                room = Room(room_id=room_id)
                self._rooms[room_id] = room
                logger.info(f"Room {room_id} created")

            peers = frozenset(room.members)
            room.members[connection_id] = display_name
            record.room_id = room_id
            record.display_name = display_name
            logger.info(f"Connection {connection_id} ('{display_name}') joined room {room_id}. "
                        f"Room has {len(room.members)} members")

            ready = len(room.members) == 2 and not room.ready_fired
            if ready:
                room.ready_fired = True
                room.state = CallState.NEGOTIATING
            return JoinResult(room_id=room_id, member_count=len(room.members), previous=previous,
                              peers=peers, ready=ready)

    def leave(self, connection_id: str) -> Optional[LeaveResult]:
        """Remove a connection from its room. Returns None if it was in no room."""
        with self._lock:
            return self._leave(connection_id)

    def _leave(self, connection_id: str) -> Optional[LeaveResult]:
        record = self._connections.get(connection_id)
        if record is None or record.room_id is None:
            return None

        room_id = record.room_id
        record.room_id = None
        room = self._rooms.get(room_id)
        if room is None or connection_id not in room.members:
            return None

        del room.members[connection_id]
        remaining = frozenset(room.members)
        if not room.members:
            del self._rooms[room_id]
            logger.info(f"Room {room_id} deleted (empty)")
        else:
            logger.info(f"Connection {connection_id} left room {room_id}. Room has {len(remaining)} members")
        return LeaveResult(room_id=room_id, remaining=remaining)

    def lookup(self, connection_id: str) -> Optional[ConnectionRecord]:
        with self._lock:
            record = self._connections.get(connection_id)
            if record is None:
                return None
            return ConnectionRecord(record.connection_id, record.room_id, record.display_name)

    def members_of(self, room_id: str) -> FrozenSet[str]:
        with self._lock:
            room = self._rooms.get(room_id)
            return frozenset(room.members) if room else frozenset()

    def set_room_state(self, room_id: str, state: CallState) -> bool:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                return False
            if room.state != state:
                logger.debug(f"Room {room_id}: {room.state.value} -> {state.value}")
                room.state = state
            return True

    def get_room(self, room_id: str) -> Optional[RoomSnapshot]:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                return None
            return RoomSnapshot(room.room_id, room.state, dict(room.members))

    def rooms(self) -> List[RoomSnapshot]:
        with self._lock:
            return [RoomSnapshot(r.room_id, r.state, dict(r.members)) for r in self._rooms.values()]
