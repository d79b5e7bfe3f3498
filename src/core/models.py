"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
The Room produces them, the Service turns them into API responses / broadcasts.
(Decouples the data model of the domain layer from the information that gets sent across boundaries)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.core.shared_types import Color, Status

# Type aliases to make RoomSnapshot easier to read
Coordinate = tuple[int, int]
Cell = Optional[str]


@dataclass(frozen=True)
class MoveRecord:
    player: Color
    from_square: Coordinate
    to_square: Coordinate
    captured_square: Optional[Coordinate]
    promoted: bool
    timestamp: datetime


@dataclass(frozen=True)
class RoomSnapshot:
    """Transport-safe picture of a room at one moment. Nothing in here is redacted: checkers has no hidden information."""

    id: str
    board: list[list[Cell]]
    turn: Color
    players: list[Color]
    moves: list[MoveRecord]
    must_capture: list[Coordinate]
    rematch_requesters: list[Color]
    status: Status
    winner: Optional[Color]

    @property
    def players_count(self) -> int:
        return len(self.players)
