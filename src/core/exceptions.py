"""
Exceptions raised by the domain / storage / service layers.

Every exception carries a `Reason`, which is the only thing that crosses the boundary back to the requesting connection.
A raised CheckersError means: nothing was changed, tell the requester why.
"""

from typing import Optional

from src.core.shared_types import Reason


class CheckersError(Exception):
    """Base class. Catch this one at the command boundary."""

    default_reason: Reason = Reason.SERVER_ERROR

    def __init__(self, message: str = "", reason: Optional[Reason] = None) -> None:
        self.reason = reason or self.default_reason
        self.message = message or str(self.reason)
        super().__init__(self.message)


# --- (a) protocol errors ---
class InvalidRequestError(CheckersError, ValueError):
    """Malformed or missing fields.

    NOTE also a ValueError, so pydantic validators can raise it and it gets wrapped into a ValidationError.
    """

    default_reason = Reason.BAD_REQUEST


# --- (b) authorization errors ---
class AuthorizationError(CheckersError):
    default_reason = Reason.NOT_A_PLAYER


class NotYourTurnError(AuthorizationError):
    default_reason = Reason.NOT_YOUR_TURN


# --- (c) rule violations ---
class IllegalMoveError(CheckersError):
    """Reason is always one of the rules engine reasons (or MustCapture)."""

    default_reason = Reason.TOO_FAR


# --- (d) lifecycle errors ---
class GameStateError(CheckersError):
    default_reason = Reason.GAME_OVER


class LifecycleError(CheckersError):
    default_reason = Reason.ROOM_NOT_FOUND


class RoomNotFoundError(LifecycleError):
    default_reason = Reason.ROOM_NOT_FOUND


class RoomFullError(LifecycleError):
    default_reason = Reason.ROOM_FULL


class InvalidTokenError(LifecycleError):
    default_reason = Reason.INVALID_TOKEN


class RepositoryError(CheckersError):
    """Storage layer misuse (ex. could not generate a free room code)."""

    default_reason = Reason.SERVER_ERROR


class InvalidFENError(InvalidRequestError):
    """A FEN-style board layout that cannot describe a reachable checkers position."""
