"""Call signaling between the two members of a room.

Inbound events arrive tagged with the originating connection id. The
coordinator resolves where they should go through the room registry and
pushes addressed outbound events onto the destination connections'
outboxes. Every handler runs synchronously to completion, so the registry
state it reads is the state it acts on.

Negotiation payloads (offers, answers, candidates) are relayed untouched to
the connection named in ``to``. A destination that is not another member of
the sender's room is dropped without notice: under disconnect races that is
routine, not an error.
"""
import json
from typing import Optional

from pydantic import ValidationError

import events
from events import envelope
from logging_config import get_logger
from registry import CallState, LeaveResult, RoomRegistry
from schemas.signaling import (
    AnswerMessage,
    EndCallMessage,
    IceCandidateMessage,
    JoinRoomMessage,
    OfferMessage,
    RejectCallMessage,
)

logger = get_logger(__name__)


class SignalingCoordinator:
    def __init__(self, registry: RoomRegistry, hub):
        self.registry = registry
        self.hub = hub
        self._handlers = {
            events.JOIN_ROOM: (JoinRoomMessage, self.join_room),
            events.OFFER: (OfferMessage, self.offer),
            events.ANSWER: (AnswerMessage, self.answer),
            events.ICE_CANDIDATE: (IceCandidateMessage, self.ice_candidate),
            events.REJECT_CALL: (RejectCallMessage, self.reject_call),
            events.END_CALL: (EndCallMessage, self.end_call),
        }

    # ------------------------------------------------------------------
    # Transport lifecycle
    # ------------------------------------------------------------------

    def connect(self, connection_id: str):
        self.registry.connect(connection_id)
        self._emit(connection_id, events.CONNECTED, {"connectionId": connection_id})
        logger.info(f"Connection {connection_id} opened")

    def disconnect(self, connection_id: str):
        result = self.registry.disconnect(connection_id)
        if result is None:
            logger.info(f"Connection {connection_id} closed (no room)")
            return
        logger.info(f"Connection {connection_id} closed, leaving room {result.room_id}")
        self._notify_departure(connection_id, result)

    # ------------------------------------------------------------------
    # Inbound dispatch
    # ------------------------------------------------------------------

    def handle_text(self, connection_id: str, raw: str):
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            self._reject_frame(connection_id, None, "frame is not valid JSON")
            return
        self.handle(connection_id, frame)

    def handle(self, connection_id: str, frame):
        """Validate one decoded frame and run its handler.

        Malformed frames never touch the registry; the sender gets an
        ``error`` event describing what was wrong.
        """
        if not isinstance(frame, dict):
            self._reject_frame(connection_id, None, "frame must be a JSON object")
            return

        raw_type = frame.get("type")
        event_type = raw_type if isinstance(raw_type, str) else None
        entry = self._handlers.get(event_type)
        if entry is None:
            self._reject_frame(connection_id, event_type, f"unknown event type {raw_type!r}")
            return

        schema, handler = entry
        try:
            message = schema.model_validate(frame.get("data"))
        except ValidationError as e:
            self._reject_frame(connection_id, event_type, _describe(e))
            return

        logger.debug(f"Connection {connection_id} -> {event_type}")
        handler(connection_id, message)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def join_room(self, connection_id: str, message: JoinRoomMessage):
        result = self.registry.join(connection_id, message.room_id, message.user_name)
        if not result.accepted:
            logger.warning(f"Connection {connection_id} refused: room {result.room_id} is full")
            self._emit(connection_id, events.ROOM_FULL, {"roomId": result.room_id})
            return

        if result.previous is not None:
            self._notify_departure(connection_id, result.previous)

        # Fires once per occupancy: the registry clears the flag only on eviction
        if not result.ready:
            return

        for member_id in sorted(result.peers):
            self._emit(member_id, events.USER_JOINED, {
                "userId": connection_id,
                "userName": message.user_name,
            })
        self._emit(connection_id, events.ROOM_READY, {"roomId": result.room_id})
        logger.info(f"Room {result.room_id} ready")

    def offer(self, connection_id: str, message: OfferMessage):
        room_id = self._resolve_peer(connection_id, message.to)
        if room_id is None:
            return
        self.registry.set_room_state(room_id, CallState.NEGOTIATING)
        self._emit(message.to, events.INCOMING_OFFER, {"from": message.from_, "offer": message.offer})

    def answer(self, connection_id: str, message: AnswerMessage):
        room_id = self._resolve_peer(connection_id, message.to)
        if room_id is None:
            return
        self._emit(message.to, events.INCOMING_ANSWER, {"from": message.from_, "answer": message.answer})
        self.registry.set_room_state(room_id, CallState.CONNECTED)

    def ice_candidate(self, connection_id: str, message: IceCandidateMessage):
        if self._resolve_peer(connection_id, message.to) is None:
            return
        self._emit(message.to, events.ICE_CANDIDATE, {"from": message.from_, "candidate": message.candidate})

    def reject_call(self, connection_id: str, message: RejectCallMessage):
        room_id = self._resolve_peer(connection_id, message.to)
        if room_id is None:
            return
        self._emit(message.to, events.CALL_REJECTED, {"from": connection_id})
        self.registry.set_room_state(room_id, CallState.ENDED)
        logger.info(f"Connection {connection_id} rejected the call in room {room_id}")

    def end_call(self, connection_id: str, message: EndCallMessage):
        notified = set()
        if self._resolve_peer(connection_id, message.to) is not None:
            self._emit(message.to, events.CALL_ENDED, {"from": connection_id})
            notified.add(message.to)

        result = self.registry.leave(connection_id)
        if result is None:
            return
        logger.info(f"Connection {connection_id} ended the call in room {result.room_id}")
        self._notify_departure(connection_id, result, skip=notified)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_peer(self, sender_id: str, to: str) -> Optional[str]:
        """Room id shared by sender and destination, or None to drop."""
        sender = self.registry.lookup(sender_id)
        if sender is None or sender.room_id is None:
            logger.debug(f"Dropping message from {sender_id}: sender is in no room")
            return None
        if to == sender_id or to not in self.registry.members_of(sender.room_id):
            logger.debug(f"Dropping message from {sender_id}: {to} is not a peer in room {sender.room_id}")
            return None
        return sender.room_id

    def _notify_departure(self, connection_id: str, result: LeaveResult, skip=frozenset()):
        if not result.remaining:
            return
        self.registry.set_room_state(result.room_id, CallState.ENDED)
        for member_id in sorted(result.remaining - set(skip)):
            self._emit(member_id, events.USER_DISCONNECTED, {"userId": connection_id})

    def _reject_frame(self, connection_id: str, event_type, reason: str):
        logger.warning(f"Rejected frame from {connection_id} ({event_type}): {reason}")
        self._emit(connection_id, events.ERROR, {"event": event_type, "reason": reason})

    def _emit(self, connection_id: str, event_type: str, data: dict):
        self.hub.deliver(connection_id, envelope(event_type, data))


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'data'}: {err['msg']}"
        for err in error.errors()
    )
