"""Orchestration of communication from the command boundary to the rooms / storage layers (and the reverse direction)."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.api.models import (
    AllowedMovesRequest,
    AllowedMovesResponse,
    CreateRoomRequest,
    JoinRoomRequest,
    LeaveRoomRequest,
    MoveRequest,
    ReconnectRequest,
    RematchRequest,
    RoomStateRequest,
    RoomStateResponse,
    SeatResponse,
)
from src.checkers.square import Square
from src.core.exceptions import AuthorizationError, RoomNotFoundError
from src.core.shared_types import Color, Reason
from src.db.repository import RoomRepository
from src.db.sessions import SessionRegistry
from src.rooms.room import ConnectionRef, Room
from src.services.broadcast import ROOM_STATE_EVENT, Broadcaster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Binding:
    """The one (room, color) a connection is currently attached to"""

    room_id: str
    color: Color
    token: str


class CheckersService:
    """Orchestration of layers for checkers rooms.

    ---
    Every mutating command runs "mutate + snapshot + broadcast" while holding the room's lock,
    so two commands on the same room are fully serialized. Commands on different rooms do not wait on each other.
    """

    def __init__(
        self,
        repository: RoomRepository,
        sessions: SessionRegistry,
        broadcaster: Broadcaster,
    ) -> None:
        self.repo = repository
        self.sessions = sessions
        self.broadcaster = broadcaster
        self._bindings: dict[ConnectionRef, Binding] = {}
        self._bindings_lock = threading.Lock()

    # -- Command logic ---
    def create_room(
        self, connection_id: ConnectionRef, request: CreateRoomRequest
    ) -> SeatResponse:
        """First player creates a room and gets the red pieces."""
        previous = self.binding(connection_id)

        room = self.repo.create_room(connection_id)
        with room.lock:
            session = self.sessions.issue(room.id, Color.RED)
            self._bind(connection_id, Binding(room.id, Color.RED, session.token))
            self.broadcaster.join(connection_id, room.id)
            state = self._broadcast_state(room)

        self._release_previous(connection_id, previous, keep_room_id=room.id)
        return SeatResponse(room=state, color=Color.RED, token=session.token)

    def join_room(
        self, connection_id: ConnectionRef, request: JoinRoomRequest
    ) -> SeatResponse:
        """Second player takes the free seat."""
        previous = self.binding(connection_id)
        room = self._fetch_room(request.room_id)

        with room.lock:
            color = room.join(connection_id)
            if (
                previous is not None
                and previous.room_id == room.id
                and previous.color == color
            ):
                # joining the seat you already hold: nothing new to hand out
                token = previous.token
            else:
                token = self.sessions.issue(room.id, color).token
            self._bind(connection_id, Binding(room.id, color, token))
            self.broadcaster.join(connection_id, room.id)
            state = self._broadcast_state(room)

        self._release_previous(connection_id, previous, keep_room_id=room.id)
        return SeatResponse(room=state, color=color, token=token)

    def reconnect(
        self, connection_id: ConnectionRef, request: ReconnectRequest
    ) -> SeatResponse:
        """
        A (new) connection presents a session token and takes back its seat.
        ----
        The connection that held the seat before loses it (and its binding). Board, turn, history and votes are untouched.
        """
        previous = self.binding(connection_id)
        session = self.sessions.resolve(request.token)
        room = self._fetch_room(session.room_id)

        with room.lock:
            displaced = room.reconnect(connection_id, session.color)
            if displaced is not None:
                self._unbind(displaced, room_id=room.id)
                self.broadcaster.leave(displaced, room.id)
            self._bind(connection_id, Binding(room.id, session.color, session.token))
            self.broadcaster.join(connection_id, room.id)
            state = self._broadcast_state(room)

        self._release_previous(connection_id, previous, keep_room_id=room.id)
        return SeatResponse(room=state, color=session.color, token=session.token)

    def allowed_moves(
        self, connection_id: ConnectionRef, request: AllowedMovesRequest
    ) -> AllowedMovesResponse:
        """Query only: where can this piece go (forced capture already applied)."""
        room = self._fetch_room(request.room_id)
        destinations = room.allowed_moves(
            connection_id, Square.from_pair(request.from_square)
        )
        return AllowedMovesResponse(
            room_id=room.id,
            from_square=request.from_square,
            moves=[square.to_pair() for square in destinations],
        )

    def make_move(self, connection_id: ConnectionRef, request: MoveRequest) -> None:
        """Make a move attempt. Only acknowledged here: the new state reaches everyone through the broadcast."""
        room = self._bound_room(connection_id)
        with room.lock:
            room.make_move(
                connection_id,
                Square.from_pair(request.from_square),
                Square.from_pair(request.to_square),
            )
            self._broadcast_state(room)

    def request_rematch(
        self, connection_id: ConnectionRef, request: RematchRequest
    ) -> None:
        room = self._bound_room(connection_id)
        with room.lock:
            self._require_seat(room, connection_id)
            reset = room.request_rematch(connection_id)
            self._broadcast_state(room)
        if reset:
            logger.info("room %s: rematch started", room.id)

    def cancel_rematch(
        self, connection_id: ConnectionRef, request: RematchRequest
    ) -> None:
        room = self._bound_room(connection_id)
        with room.lock:
            self._require_seat(room, connection_id)
            room.cancel_rematch(connection_id)
            self._broadcast_state(room)

    def leave_room(self, connection_id: ConnectionRef, request: LeaveRoomRequest) -> None:
        """Explicit leave. The session token stays valid, so the player can still come back."""
        binding = self.binding(connection_id)
        room_id = request.room_id or (binding.room_id if binding else None)
        if room_id is None:
            return
        self._leave(connection_id, room_id)

    def disconnect(self, connection_id: ConnectionRef) -> None:
        """Transport lost the connection: same as leaving the bound room."""
        binding = self.binding(connection_id)
        if binding is not None:
            self._leave(connection_id, binding.room_id)

    def get_room_state(self, request: RoomStateRequest) -> RoomStateResponse:
        room = self._fetch_room(request.room_id)
        return RoomStateResponse.from_snapshot(room.snapshot())

    def sweep_stale_rooms(self, now: Optional[datetime] = None) -> list[str]:
        """Garbage-collect rooms that stayed empty for the whole retention window (and their tokens)."""
        evicted = self.repo.sweep(now)
        for room_id in evicted:
            self.sessions.revoke_room(room_id, now)
            with self._bindings_lock:
                for connection_id in [
                    c for c, b in self._bindings.items() if b.room_id == room_id
                ]:
                    del self._bindings[connection_id]
        return evicted

    def binding(self, connection_id: ConnectionRef) -> Optional[Binding]:
        with self._bindings_lock:
            return self._bindings.get(connection_id)

    # -- Internal helpers --
    def _leave(self, connection_id: ConnectionRef, room_id: str) -> None:
        self._unbind(connection_id, room_id=room_id)
        room = self.repo.get_room(room_id)
        if room is None:
            return
        with room.lock:
            left_as = room.leave(connection_id)
            self.broadcaster.leave(connection_id, room.id)
            if left_as is not None and not room.is_empty():
                self._broadcast_state(room)

    def _release_previous(
        self,
        connection_id: ConnectionRef,
        previous: Optional[Binding],
        keep_room_id: str,
    ) -> None:
        """A connection sits in at most one room: leave the old one after taking a seat in a new one"""
        if previous is None or previous.room_id == keep_room_id:
            return
        room = self.repo.get_room(previous.room_id)
        if room is None:
            return
        with room.lock:
            left_as = room.leave(connection_id)
            self.broadcaster.leave(connection_id, room.id)
            if left_as is not None and not room.is_empty():
                self._broadcast_state(room)

    def _bind(self, connection_id: ConnectionRef, binding: Binding) -> None:
        with self._bindings_lock:
            self._bindings[connection_id] = binding

    def _unbind(self, connection_id: ConnectionRef, room_id: str) -> None:
        """Only drops the binding if it still points at this room"""
        with self._bindings_lock:
            binding = self._bindings.get(connection_id)
            if binding is not None and binding.room_id == room_id:
                del self._bindings[connection_id]

    def _bound_room(self, connection_id: ConnectionRef) -> Room:
        binding = self.binding(connection_id)
        if binding is None:
            raise AuthorizationError("You are not in a room.", Reason.NOT_IN_ROOM)
        return self._fetch_room(binding.room_id)

    def _require_seat(self, room: Room, connection_id: ConnectionRef) -> None:
        """Bound, but displaced by a reconnect from elsewhere: no longer in the room"""
        if room.color_of(connection_id) is None:
            raise AuthorizationError(
                f"You no longer hold a seat in room {room.id}.", Reason.NOT_IN_ROOM
            )

    def _fetch_room(self, room_id: str) -> Room:
        """Attempt to find the room in the repository and raise error if it fails."""
        room = self.repo.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(f"Room with {room_id=} not found.")
        return room

    def _broadcast_state(self, room: Room) -> RoomStateResponse:
        """Convert the room's snapshot to a RoomStateResponse and send it to everybody in the room."""
        state = RoomStateResponse.from_snapshot(room.snapshot())
        self.broadcaster.broadcast(
            room.id, ROOM_STATE_EVENT, state.model_dump(by_alias=True, mode="json")
        )
        return state
