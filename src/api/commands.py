"""
Inbound command boundary.

The transport adapter hands over (connection, command name, raw payload) and gets back the acknowledgement to send
to that connection only. Broadcasts to the room go out through the service's Broadcaster.

Every command is contained here: a rejected command becomes {"ok": False, "reason": ...}, and an unexpected fault is
logged and reported as ServerError. Nothing raised while handling one command can take down the room or the process.
"""

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel, ValidationError

from src.api.models import (
    AllowedMovesRequest,
    CreateRoomRequest,
    JoinRoomRequest,
    LeaveRoomRequest,
    MoveRequest,
    ReconnectRequest,
    RematchRequest,
    RoomStateRequest,
)
from src.core.exceptions import CheckersError
from src.core.shared_types import Reason
from src.services.checkers_service import CheckersService

logger = logging.getLogger(__name__)

Ack = dict[str, Any]
Payload = Optional[dict[str, Any]]
Handler = Callable[[str, Payload], Optional[BaseModel]]

# commands that are fire-and-forget: the client does not wait for an acknowledgement
NO_ACK_COMMANDS = frozenset({"leave-room", "disconnect"})


def ok(result: Optional[BaseModel] = None) -> Ack:
    body: Ack = {"ok": True}
    if result is not None:
        body.update(result.model_dump(by_alias=True, mode="json"))
    return body


def rejected(reason: Reason) -> Ack:
    return {"ok": False, "reason": str(reason)}


class CommandDispatcher:
    """Maps the named commands of the wire protocol onto CheckersService calls."""

    def __init__(self, service: CheckersService) -> None:
        self.service = service
        self._handlers: dict[str, Handler] = {
            "create-room": self._create_room,
            "join-room": self._join_room,
            "reconnect-with-token": self._reconnect,
            "get-allowed-moves": self._allowed_moves,
            "make-move": self._make_move,
            "request-rematch": self._request_rematch,
            "cancel-rematch": self._cancel_rematch,
            "leave-room": self._leave_room,
            "disconnect": self._disconnect,
            "get-room-state": self._room_state,
        }

    @property
    def commands(self) -> list[str]:
        return list(self._handlers)

    def dispatch(self, connection_id: str, command: str, payload: Payload = None) -> Optional[Ack]:
        """Returns the acknowledgement for the requesting connection (None for fire-and-forget commands)."""
        handler = self._handlers.get(command)
        if handler is None:
            logger.debug("%s sent unknown command %r", connection_id, command)
            return rejected(Reason.BAD_REQUEST)

        try:
            result = handler(connection_id, payload)
        except ValidationError as e:
            logger.debug("%s sent a malformed %s: %s", connection_id, command, e)
            ack = rejected(Reason.BAD_REQUEST)
        except CheckersError as e:
            logger.debug("%s: %s rejected (%s): %s", connection_id, command, e.reason, e.message)
            ack = rejected(e.reason)
        except Exception:
            logger.exception("%s error for connection %s", command, connection_id)
            ack = rejected(Reason.SERVER_ERROR)
        else:
            ack = ok(result)

        if command in NO_ACK_COMMANDS:
            return None
        return ack

    # -- handlers: validate the payload, call the service ---
    def _create_room(self, connection_id: str, payload: Payload) -> BaseModel:
        return self.service.create_room(
            connection_id, CreateRoomRequest.model_validate(payload or {})
        )

    def _join_room(self, connection_id: str, payload: Payload) -> BaseModel:
        return self.service.join_room(
            connection_id, JoinRoomRequest.model_validate(payload or {})
        )

    def _reconnect(self, connection_id: str, payload: Payload) -> BaseModel:
        return self.service.reconnect(
            connection_id, ReconnectRequest.model_validate(payload or {})
        )

    def _allowed_moves(self, connection_id: str, payload: Payload) -> BaseModel:
        return self.service.allowed_moves(
            connection_id, AllowedMovesRequest.model_validate(payload or {})
        )

    def _make_move(self, connection_id: str, payload: Payload) -> None:
        self.service.make_move(connection_id, MoveRequest.model_validate(payload or {}))

    def _request_rematch(self, connection_id: str, payload: Payload) -> None:
        self.service.request_rematch(
            connection_id, RematchRequest.model_validate(payload or {})
        )

    def _cancel_rematch(self, connection_id: str, payload: Payload) -> None:
        self.service.cancel_rematch(
            connection_id, RematchRequest.model_validate(payload or {})
        )

    def _leave_room(self, connection_id: str, payload: Payload) -> None:
        self.service.leave_room(
            connection_id, LeaveRoomRequest.model_validate(payload or {})
        )

    def _disconnect(self, connection_id: str, payload: Payload) -> None:
        self.service.disconnect(connection_id)

    def _room_state(self, connection_id: str, payload: Payload) -> BaseModel:
        return self.service.get_room_state(
            RoomStateRequest.model_validate(payload or {})
        )
