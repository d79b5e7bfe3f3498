"""Unit tests for src/api/commands.py"""

import logging
import threading
from datetime import timedelta
from typing import Any
from unittest.mock import Mock

import pytest

from src.api.commands import NO_ACK_COMMANDS, CommandDispatcher, ok, rejected
from src.core.shared_types import Reason
from src.services.checkers_service import CheckersService
from tests.conftest import RecordingBroadcaster


@pytest.fixture
def dispatcher(service: CheckersService) -> CommandDispatcher:
    return CommandDispatcher(service)


@pytest.fixture
def room_id(dispatcher: CommandDispatcher) -> str:
    """alice (red) and bob (black) seated"""
    created = dispatcher.dispatch("alice", "create-room")
    assert created is not None
    dispatcher.dispatch("bob", "join-room", {"roomId": created["room"]["id"]})
    return created["room"]["id"]


def _rejection(reason: Reason) -> dict[str, Any]:
    return {"ok": False, "reason": str(reason)}


# --- ACK SHAPES ---
def test_ack_helpers() -> None:
    assert ok() == {"ok": True}
    assert rejected(Reason.ROOM_FULL) == {"ok": False, "reason": "RoomFull"}


def test_every_command_is_registered(dispatcher: CommandDispatcher) -> None:
    assert set(dispatcher.commands) == {
        "create-room",
        "join-room",
        "reconnect-with-token",
        "get-allowed-moves",
        "make-move",
        "request-rematch",
        "cancel-rematch",
        "leave-room",
        "disconnect",
        "get-room-state",
    }
    assert NO_ACK_COMMANDS <= set(dispatcher.commands)


def test_create_room(dispatcher: CommandDispatcher) -> None:
    ack = dispatcher.dispatch("alice", "create-room")

    assert ack is not None
    assert ack["ok"] is True
    assert ack["color"] == "red"
    assert len(ack["token"]) == 32
    assert ack["room"]["status"] == "waiting for players"
    assert ack["room"]["playersCount"] == 1


def test_join_room(dispatcher: CommandDispatcher, room_id: str) -> None:
    ack = dispatcher.dispatch("carol", "join-room", {"roomId": room_id})
    assert ack == _rejection(Reason.ROOM_FULL)


def test_join_unknown_room(dispatcher: CommandDispatcher) -> None:
    assert dispatcher.dispatch("bob", "join-room", {"roomId": "NOPE00"}) == _rejection(
        Reason.ROOM_NOT_FOUND
    )


# --- MALFORMED INPUT ---
@pytest.mark.parametrize(
    "command, payload",
    [
        ("join-room", None),
        ("join-room", {"roomId": "no way!"}),
        ("make-move", {"from": [2, 1]}),
        ("make-move", {"from": "c3", "to": "d4"}),
        ("reconnect-with-token", {"token": ""}),
        ("get-allowed-moves", {"roomId": "ABC123"}),
    ],
)
def test_malformed_payload(dispatcher: CommandDispatcher, command: str, payload: Any) -> None:
    assert dispatcher.dispatch("alice", command, payload) == _rejection(Reason.BAD_REQUEST)


def test_unknown_command(dispatcher: CommandDispatcher) -> None:
    assert dispatcher.dispatch("alice", "flip-the-board") == _rejection(Reason.BAD_REQUEST)


# --- PLAYING ---
def test_make_move(
    dispatcher: CommandDispatcher, room_id: str, broadcaster: RecordingBroadcaster
) -> None:
    assert dispatcher.dispatch("alice", "make-move", {"from": [2, 1], "to": [3, 2]}) == {"ok": True}
    assert broadcaster.last_state(room_id)["turn"] == "black"


@pytest.mark.parametrize(
    "connection_id, move, reason",
    [
        ("bob", {"from": [5, 0], "to": [4, 1]}, Reason.NOT_YOUR_TURN),
        ("carol", {"from": [2, 1], "to": [3, 2]}, Reason.NOT_IN_ROOM),
        ("alice", {"from": [2, 1], "to": [3, 1]}, Reason.NOT_DIAGONAL),
        ("alice", {"from": [2, 1], "to": [9, 8]}, Reason.OUT_OF_BOUNDS),
        ("alice", {"from": [1, 0], "to": [2, 1]}, Reason.OCCUPIED_DESTINATION),
    ],
)
def test_rejected_move(
    dispatcher: CommandDispatcher,
    room_id: str,
    connection_id: str,
    move: dict[str, list[int]],
    reason: Reason,
) -> None:
    assert dispatcher.dispatch(connection_id, "make-move", move) == _rejection(reason)


def test_get_allowed_moves(dispatcher: CommandDispatcher, room_id: str) -> None:
    ack = dispatcher.dispatch("alice", "get-allowed-moves", {"roomId": room_id, "from": [2, 1]})

    assert ack is not None
    assert ack["ok"] is True
    assert ack["roomId"] == room_id
    assert ack["from"] == [2, 1]
    assert sorted(ack["moves"]) == [[3, 0], [3, 2]]


def test_get_room_state(dispatcher: CommandDispatcher, room_id: str) -> None:
    ack = dispatcher.dispatch("carol", "get-room-state", {"roomId": room_id})

    assert ack is not None
    assert ack["ok"] is True
    assert ack["id"] == room_id
    assert ack["players"] == ["red", "black"]


# --- SESSIONS ---
def test_reconnect_with_token(dispatcher: CommandDispatcher) -> None:
    created = dispatcher.dispatch("alice", "create-room")
    assert created is not None

    ack = dispatcher.dispatch("alice-2", "reconnect-with-token", {"token": created["token"]})

    assert ack is not None
    assert ack["ok"] is True
    assert ack["color"] == "red"
    assert ack["room"]["id"] == created["room"]["id"]


def test_reconnect_with_unknown_token(dispatcher: CommandDispatcher) -> None:
    assert dispatcher.dispatch("alice", "reconnect-with-token", {"token": "deadbeef"}) == _rejection(
        Reason.INVALID_TOKEN
    )


def test_rematch(dispatcher: CommandDispatcher, room_id: str, broadcaster: RecordingBroadcaster) -> None:
    assert dispatcher.dispatch("alice", "request-rematch") == {"ok": True}
    assert broadcaster.last_state(room_id)["rematchRequesters"] == ["red"]
    assert dispatcher.dispatch("alice", "cancel-rematch", {}) == {"ok": True}
    assert dispatcher.dispatch("carol", "request-rematch") == _rejection(Reason.NOT_IN_ROOM)


# --- FIRE AND FORGET ---
def test_leave_room_has_no_ack(
    dispatcher: CommandDispatcher, room_id: str, broadcaster: RecordingBroadcaster
) -> None:
    assert dispatcher.dispatch("bob", "leave-room", {"roomId": room_id}) is None
    assert broadcaster.last_state(room_id)["players"] == ["red"]


def test_malformed_leave_room_has_no_ack(dispatcher: CommandDispatcher) -> None:
    assert dispatcher.dispatch("bob", "leave-room", {"roomId": "no way!"}) is None


def test_disconnect_has_no_ack(
    dispatcher: CommandDispatcher, room_id: str, broadcaster: RecordingBroadcaster
) -> None:
    assert dispatcher.dispatch("alice", "disconnect") is None
    assert broadcaster.last_state(room_id)["players"] == ["black"]


# --- FAULT CONTAINMENT ---
def test_unexpected_error_becomes_server_error(caplog: pytest.LogCaptureFixture) -> None:
    service = Mock(spec=CheckersService)
    service.make_move.side_effect = RuntimeError("something broke")
    dispatcher = CommandDispatcher(service)

    with caplog.at_level(logging.ERROR):
        ack = dispatcher.dispatch("alice", "make-move", {"from": [2, 1], "to": [3, 2]})

    assert ack == _rejection(Reason.SERVER_ERROR)
    assert "make-move error for connection alice" in caplog.text


def test_dispatcher_keeps_working_after_a_fault() -> None:
    service = Mock(spec=CheckersService)
    service.make_move.side_effect = [RuntimeError("once"), None]
    dispatcher = CommandDispatcher(service)

    move = {"from": [2, 1], "to": [3, 2]}
    assert dispatcher.dispatch("alice", "make-move", move) == _rejection(Reason.SERVER_ERROR)
    assert dispatcher.dispatch("alice", "make-move", move) == {"ok": True}


# --- CONCURRENCY ---
def test_concurrent_moves_are_serialized(dispatcher: CommandDispatcher, room_id: str) -> None:
    """Eight threads race the same opening move: exactly one lands, the others see the state it left behind"""
    racers = 8
    barrier = threading.Barrier(racers)
    acks: list[dict[str, Any] | None] = []
    acks_lock = threading.Lock()

    def _race() -> None:
        barrier.wait()
        ack = dispatcher.dispatch("alice", "make-move", {"from": [2, 1], "to": [3, 2]})
        with acks_lock:
            acks.append(ack)

    threads = [threading.Thread(target=_race) for _ in range(racers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(acks) == racers
    assert acks.count({"ok": True}) == 1
    rejections = [ack for ack in acks if ack != {"ok": True}]
    assert all(ack is not None and ack["ok"] is False for ack in rejections)
    assert {ack["reason"] for ack in rejections if ack is not None} <= {
        str(Reason.NOT_YOUR_TURN),
        str(Reason.OCCUPIED_DESTINATION),
        str(Reason.EMPTY_SOURCE),
    }

    state = dispatcher.dispatch("alice", "get-room-state", {"roomId": room_id})
    assert state is not None
    assert len(state["moves"]) == 1
    assert state["turn"] == "black"


# --- GARBAGE COLLECTION ---
def test_reconnect_to_collected_room(dispatcher: CommandDispatcher, service: CheckersService) -> None:
    created = dispatcher.dispatch("alice", "create-room")
    assert created is not None
    dispatcher.dispatch("alice", "disconnect")
    room = service.repo.get_room(created["room"]["id"])
    assert room is not None and room.emptied_at is not None

    assert service.sweep_stale_rooms(room.emptied_at + timedelta(seconds=301)) == [room.id]

    ack = dispatcher.dispatch("alice-2", "reconnect-with-token", {"token": created["token"]})
    assert ack == _rejection(Reason.ROOM_NOT_FOUND)
