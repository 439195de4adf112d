# Client -> server
JOIN_ROOM = "join-room"
OFFER = "offer"
ANSWER = "answer"
ICE_CANDIDATE = "ice-candidate"
REJECT_CALL = "reject-call"
END_CALL = "end-call"

# Server -> client
CONNECTED = "connected"
USER_JOINED = "user-joined"
ROOM_READY = "room-ready"
ROOM_FULL = "room-full"
INCOMING_OFFER = "incoming-offer"
INCOMING_ANSWER = "incoming-answer"
# ICE_CANDIDATE is reused for the relayed candidate
CALL_REJECTED = "call-rejected"
CALL_ENDED = "call-ended"
USER_DISCONNECTED = "user-disconnected"
ERROR = "error"


def envelope(event_type: str, data: dict) -> dict:
    """Wire frame shape shared by every inbound and outbound message."""
    return {"type": event_type, "data": data}
