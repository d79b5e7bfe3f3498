"""
A Room: one isolated two-player match.

Aggregates the Game with the two seats (which connection plays which color), the rematch votes, and the timestamps
the Room Directory needs to garbage-collect it.

Every public method takes the room's lock. The lock is re-entrant, so the Service can hold it across
"mutate + snapshot + broadcast" and make that one atomic unit.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Self

from src.checkers.game import Game, HistoryEntry, utc_now
from src.checkers.square import Square
from src.core.exceptions import AuthorizationError, RoomFullError
from src.core.models import MoveRecord, RoomSnapshot
from src.core.shared_types import Color, Reason, Status

logger = logging.getLogger(__name__)

# Opaque handle for one client connection (the transport decides what it looks like)
ConnectionRef = str


@dataclass
class Seats:
    """The two color slots. At most one connection per color."""

    red: Optional[ConnectionRef] = None
    black: Optional[ConnectionRef] = None

    def get(self, color: Color) -> Optional[ConnectionRef]:
        match color:
            case Color.RED:
                return self.red
            case Color.BLACK:
                return self.black

    def assign(self, color: Color, connection: Optional[ConnectionRef]) -> None:
        match color:
            case Color.RED:
                self.red = connection
            case Color.BLACK:
                self.black = connection

    def color_of(self, connection: ConnectionRef) -> Optional[Color]:
        return next((color for color in Color if self.get(color) == connection), None)

    def occupied(self) -> list[Color]:
        return [color for color in Color if self.get(color) is not None]

    def free(self) -> list[Color]:
        return [color for color in Color if self.get(color) is None]


def _to_record(entry: HistoryEntry) -> MoveRecord:
    return MoveRecord(
        player=entry.player,
        from_square=entry.from_square.to_pair(),
        to_square=entry.to_square.to_pair(),
        captured_square=entry.captured_square.to_pair()
        if entry.captured_square
        else None,
        promoted=entry.promoted,
        timestamp=entry.timestamp,
    )


@dataclass
class Room:
    id: str
    game: Game
    seats: Seats
    rematch_votes: set[Color]
    created_at: datetime
    # when the last occupant left (None while anybody is seated)
    emptied_at: Optional[datetime] = None
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )

    @classmethod
    def create(cls, room_id: str, creator: ConnectionRef) -> Self:
        """The creator always plays red"""
        return cls(
            id=room_id,
            game=Game.new_game(),
            seats=Seats(red=creator),
            rematch_votes=set(),
            created_at=utc_now(),
        )

    # --- QUERIES ---
    @property
    def status(self) -> Status:
        return self.game.status

    def is_empty(self) -> bool:
        with self.lock:
            return not self.seats.occupied()

    def is_stale(self, now: datetime, retention: timedelta) -> bool:
        """Empty for longer than the retention window: nobody is coming back"""
        with self.lock:
            return (
                self.is_empty()
                and self.emptied_at is not None
                and now - self.emptied_at >= retention
            )

    def color_of(self, connection: ConnectionRef) -> Optional[Color]:
        with self.lock:
            return self.seats.color_of(connection)

    def require_color(self, connection: ConnectionRef) -> Color:
        color = self.color_of(connection)
        if color is None:
            raise AuthorizationError(
                f"Connection is not a player in room {self.id}.", Reason.NOT_A_PLAYER
            )
        return color

    def snapshot(self) -> RoomSnapshot:
        with self.lock:
            return RoomSnapshot(
                id=self.id,
                board=self.game.board.to_grid(),
                turn=self.game.turn,
                players=self.seats.occupied(),
                moves=[_to_record(entry) for entry in self.game.history],
                must_capture=[square.to_pair() for square in self.game.must_capture()],
                rematch_requesters=[
                    color for color in Color if color in self.rematch_votes
                ],
                status=self.game.status,
                winner=self.game.winner,
            )

    # --- LIFECYCLE ---
    def join(self, connection: ConnectionRef) -> Color:
        """Take the unused seat. The match starts as soon as both seats are taken."""
        with self.lock:
            already_seated = self.seats.color_of(connection)
            if already_seated is not None:
                return already_seated

            free = self.seats.free()
            if not free:
                raise RoomFullError(f"Room {self.id} already has two players.")

            # red first, in case the creator left before anybody joined
            color = free[0]
            self.seats.assign(color, connection)
            self.emptied_at = None
            if not self.seats.free():
                self.game.start()
            logger.info("room %s: %s joined as %s", self.id, connection, color)
            return color

    def reconnect(self, connection: ConnectionRef, color: Color) -> Optional[ConnectionRef]:
        """
        Re-attach a connection to the color its session token was issued for.

        Board, turn, history and votes are left alone.
        Returns the connection that was displaced from the seat (if any, and if it is not the same one).
        """
        with self.lock:
            displaced = self.seats.get(color)
            other_seat = self.seats.color_of(connection)
            if other_seat is not None and other_seat != color:
                self.seats.assign(other_seat, None)
            self.seats.assign(color, connection)
            self.emptied_at = None
            logger.info("room %s: %s reconnected as %s", self.id, connection, color)
            return displaced if displaced != connection else None

    def leave(self, connection: ConnectionRef) -> Optional[Color]:
        """
        Free the seat of this connection (if it still holds one).

        Pending rematch votes are dropped whenever somebody leaves. An emptied room remembers when it became empty,
        so it can be garbage-collected after the retention window.
        """
        with self.lock:
            color = self.seats.color_of(connection)
            if color is None:
                return None

            self.seats.assign(color, None)
            self.rematch_votes.clear()
            if not self.seats.occupied():
                self.emptied_at = utc_now()
            logger.info("room %s: %s (%s) left", self.id, connection, color)
            return color

    # --- PLAYING ---
    def make_move(
        self, connection: ConnectionRef, from_square: Square, to_square: Square
    ) -> HistoryEntry:
        with self.lock:
            color = self.require_color(connection)
            entry = self.game.make_move(color, from_square, to_square)
            logger.debug(
                "room %s: %s moved %s -> %s",
                self.id,
                color,
                from_square.to_pair(),
                to_square.to_pair(),
            )
            return entry

    def allowed_moves(self, connection: ConnectionRef, from_square: Square) -> list[Square]:
        with self.lock:
            color = self.require_color(connection)
            return self.game.allowed_moves(color, from_square)

    # --- REMATCH ---
    def request_rematch(self, connection: ConnectionRef) -> bool:
        """Record the vote. Returns True if this vote completed the set and the room was reset."""
        with self.lock:
            color = self.require_color(connection)
            self.rematch_votes.add(color)

            occupants = set(self.seats.occupied())
            if not occupants.issubset(self.rematch_votes):
                return False

            self._reset()
            return True

    def cancel_rematch(self, connection: ConnectionRef) -> None:
        with self.lock:
            color = self.require_color(connection)
            self.rematch_votes.discard(color)

    def _reset(self) -> None:
        """Same room id, same seats. Fresh board, empty history, red to move."""
        self.game.reset(players_ready=not self.seats.free())
        self.rematch_votes.clear()
        logger.info("room %s: rematch, board reset", self.id)
