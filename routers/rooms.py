from fastapi import APIRouter, Request

from backend import room_broadcaster
from logging_config import get_logger
from schemas.messages import RoomDetailsResponse, RoomsOverviewResponse

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("", response_model=RoomsOverviewResponse)
@rooms_router.get("/", response_model=RoomsOverviewResponse, include_in_schema=False)
async def list_rooms(request: Request):
    """Live room ids plus room and connection totals for this process."""
    client_host = request.client.host if request.client else 'unknown'
    logger.debug(f"Rooms overview request from {client_host}")
    stats = room_broadcaster.stats()
    return RoomsOverviewResponse(
        room_count=stats["room_count"],
        connection_count=stats["connection_count"],
        rooms=room_broadcaster.room_ids(),
    )


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Peers currently joined to a room.

    Rooms only exist while someone is in them, so an unknown room is reported
    as empty rather than as an error.
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room details request for {room_id} from {client_host}")
    peers = room_broadcaster.members(room_id)
    return RoomDetailsResponse(
        room_id=room_id,
        online_count=len(peers),
        peers=peers,
    )
