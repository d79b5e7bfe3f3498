"""
Pytest will auto-discover / import this file called 'conftest.py'. ]
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Any, Callable, Iterator

import pytest

from src.checkers.board import Board
from src.checkers.pieces import Piece
from src.checkers.square import Square
from src.core.config import Config
from src.db.memory_repository import InMemoryRoomRepository
from src.db.sessions import SessionRegistry
from src.services.checkers_service import CheckersService

BoardFactory = Callable[[dict[tuple[int, int], str]], Board]


class RecordingBroadcaster:
    """Mock the transport's Broadcaster: remembers group membership and every event sent."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []
        self.members: dict[str, set[str]] = {}

    def broadcast(self, room_id: str, event: str, payload: dict[str, Any]) -> None:
        self.events.append((room_id, event, payload))

    def join(self, connection_id: str, room_id: str) -> None:
        self.members.setdefault(room_id, set()).add(connection_id)

    def leave(self, connection_id: str, room_id: str) -> None:
        self.members.get(room_id, set()).discard(connection_id)

    def last_state(self, room_id: str) -> dict[str, Any]:
        """Most recent room-state payload sent to a room"""
        return next(
            payload
            for rid, event, payload in reversed(self.events)
            if rid == room_id and event == "room-state"
        )

    def clear(self) -> None:
        self.events.clear()
        self.members.clear()


@pytest.fixture
def make_board() -> BoardFactory:
    """Call the inner function with {(row, col): symbol}, everything else is empty"""

    def _create_board(pieces: dict[tuple[int, int], str]) -> Board:
        return Board.empty().with_changes(
            {Square(*pair): Piece.from_symbol(symbol) for pair, symbol in pieces.items()}
        )

    return _create_board


@pytest.fixture
def config() -> Config:
    return Config(room_retention_sec=300, room_sweep_interval_sec=60)


@pytest.fixture
def broadcaster() -> Iterator[RecordingBroadcaster]:
    recorder = RecordingBroadcaster()
    try:
        yield recorder
    finally:
        recorder.clear()


@pytest.fixture
def repository(config: Config) -> InMemoryRoomRepository:
    return InMemoryRoomRepository(config)


@pytest.fixture
def sessions() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def service(
    repository: InMemoryRoomRepository,
    sessions: SessionRegistry,
    broadcaster: RecordingBroadcaster,
) -> CheckersService:
    return CheckersService(repository, sessions, broadcaster)
