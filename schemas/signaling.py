from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Negotiation payloads (offer, answer, candidate) are typed Any: they are
# forwarded as received and never inspected.


class SignalingMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class JoinRoomMessage(SignalingMessage):
    room_id: str = Field(alias="roomId")
    user_name: str = Field(alias="userName")


class OfferMessage(SignalingMessage):
    to: str
    from_: str = Field(alias="from")
    offer: Any


class AnswerMessage(SignalingMessage):
    to: str
    from_: str = Field(alias="from")
    answer: Any


class IceCandidateMessage(SignalingMessage):
    to: str
    from_: str = Field(alias="from")
    candidate: Any


class RejectCallMessage(SignalingMessage):
    to: str


class EndCallMessage(SignalingMessage):
    to: str
