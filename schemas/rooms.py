from pydantic import BaseModel
from typing import List, Optional


class RoomMember(BaseModel):
    connection_id: str
    display_name: str

class RoomSummary(BaseModel):
    room_id: str
    state: str
    member_count: int

class RoomDetailsResponse(BaseModel):
    room_id: str
    state: str
    member_count: int
    is_full: bool
    members: List[RoomMember]

class IceServer(BaseModel):
    urls: str
    username: Optional[str] = None
    credential: Optional[str] = None

class ClientConfigResponse(BaseModel):
    ice_servers: List[IceServer]
