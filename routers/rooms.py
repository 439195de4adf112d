from fastapi import APIRouter, Depends, HTTPException, Request
from typing import List

from schemas.rooms import RoomDetailsResponse, RoomMember, RoomSummary
from registry import RoomRegistry
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.registry


@rooms_router.get("", response_model=List[RoomSummary])
async def list_rooms(registry: RoomRegistry = Depends(get_registry)):
    rooms = registry.rooms()
    logger.debug(f"Listing {len(rooms)} rooms")
    return [
        RoomSummary(room_id=room.room_id, state=room.state.value, member_count=len(room.members))
        for room in rooms
    ]


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, registry: RoomRegistry = Depends(get_registry)):
    """
    Get the members and call state of a room.

    Rooms exist only while someone is in them, so an empty room is a 404.
    """
    room = registry.get_room(room_id)
    if room is None:
        logger.debug(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    member_count = len(room.members)
    return RoomDetailsResponse(
        room_id=room.room_id,
        state=room.state.value,
        member_count=member_count,
        is_full=member_count >= registry.max_members,
        members=[
            RoomMember(connection_id=conn_id, display_name=name)
            for conn_id, name in room.members.items()
        ],
    )
