"""Requests and Response models"""

from typing import Optional, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.core.exceptions import InvalidRequestError
from src.core.models import Coordinate, MoveRecord, RoomSnapshot
from src.core.shared_types import Color, Status


class CamelModel(BaseModel):
    """Field names are snake_case in Python, camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _validate_room_id(value: str) -> str:
    room_id = value.strip().upper()
    if not room_id or not room_id.isalnum():
        raise InvalidRequestError(f"Cannot interpret {value!r} as a room code.")
    return room_id


# --- REQUEST MODELS ---
class CreateRoomRequest(CamelModel):
    pass


class JoinRoomRequest(CamelModel):
    room_id: str

    @field_validator("room_id")
    @classmethod
    def validate_room_id(cls, value: str) -> str:
        return _validate_room_id(value)


class ReconnectRequest(CamelModel):
    token: str = Field(min_length=1)


class AllowedMovesRequest(CamelModel):
    room_id: str
    from_square: Coordinate = Field(alias="from")

    @field_validator("room_id")
    @classmethod
    def validate_room_id(cls, value: str) -> str:
        return _validate_room_id(value)


class MoveRequest(CamelModel):
    """The room is the one the connection is bound to: clients do not get to pick it per move"""

    from_square: Coordinate = Field(alias="from")
    to_square: Coordinate = Field(alias="to")


class RematchRequest(CamelModel):
    pass


class LeaveRoomRequest(CamelModel):
    # Optional: without it, the room the connection is bound to is left
    room_id: Optional[str] = None

    @field_validator("room_id")
    @classmethod
    def validate_room_id(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _validate_room_id(value)


class RoomStateRequest(CamelModel):
    room_id: str

    @field_validator("room_id")
    @classmethod
    def validate_room_id(cls, value: str) -> str:
        return _validate_room_id(value)


# --- RESPONSE MODELS ---
class MoveRecordResponse(CamelModel):
    player: Color
    from_square: Coordinate = Field(alias="from")
    to_square: Coordinate = Field(alias="to")
    captured: Optional[Coordinate]
    promoted: bool
    # epoch milliseconds (UTC)
    timestamp: int

    @classmethod
    def from_record(cls, record: MoveRecord) -> Self:
        return cls(
            player=record.player,
            from_square=record.from_square,
            to_square=record.to_square,
            captured=record.captured_square,
            promoted=record.promoted,
            timestamp=int(record.timestamp.timestamp() * 1000),
        )


class RoomStateResponse(CamelModel):
    """Payload of the `room-state` broadcast (and embedded in create/join/reconnect acknowledgements)"""

    id: str
    board: list[list[Optional[str]]]
    turn: Color
    players_count: int
    players: list[Color]
    moves: list[MoveRecordResponse]
    must_capture: list[Coordinate]
    rematch_requesters: list[Color]
    status: Status
    winner: Optional[Color] = None

    @classmethod
    def from_snapshot(cls, snapshot: RoomSnapshot) -> Self:
        return cls(
            id=snapshot.id,
            board=snapshot.board,
            turn=snapshot.turn,
            players_count=snapshot.players_count,
            players=snapshot.players,
            moves=[MoveRecordResponse.from_record(record) for record in snapshot.moves],
            must_capture=snapshot.must_capture,
            rematch_requesters=snapshot.rematch_requesters,
            status=snapshot.status,
            winner=snapshot.winner,
        )


class SeatResponse(CamelModel):
    """Answer to create-room / join-room / reconnect-with-token"""

    room: RoomStateResponse
    color: Color
    token: str


class AllowedMovesResponse(CamelModel):
    room_id: str
    from_square: Coordinate = Field(alias="from")
    moves: list[Coordinate]
