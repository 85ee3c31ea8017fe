from pydantic import BaseModel, ConfigDict, Field, StrictStr
from typing import List, Literal

from message_types import JOIN_ROOM, NEW_PEER, PEER_LEFT


class JoinRoomMessage(BaseModel):
    # Clients may attach their own fields to the join; they are ignored.
    model_config = ConfigDict(extra="allow")

    type: Literal["join-room"] = JOIN_ROOM
    roomId: StrictStr = Field(min_length=1)
    sender: StrictStr = Field(min_length=1)

class NewPeerMessage(BaseModel):
    type: Literal["new-peer"] = NEW_PEER
    roomId: str
    sender: str

class PeerLeftMessage(BaseModel):
    type: Literal["peer-left"] = PEER_LEFT
    roomId: str
    sender: str

class RoomsOverviewResponse(BaseModel):
    room_count: int
    connection_count: int
    rooms: List[str]

class RoomDetailsResponse(BaseModel):
    room_id: str
    online_count: int
    peers: List[str]
