"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING_FOR_PLAYERS = "waiting for players"
    IN_PROGRESS = "in progress"
    FINISHED = "finished"


class Color(StrEnum):
    RED = "red"
    BLACK = "black"


class Reason(StrEnum):
    """Machine readable rejection reasons. These are what a requesting connection receives in its acknowledgement."""

    # protocol
    BAD_REQUEST = "BadRequest"
    SERVER_ERROR = "ServerError"

    # authorization
    NOT_A_PLAYER = "NotAPlayer"
    NOT_YOUR_TURN = "NotYourTurn"
    NOT_IN_ROOM = "NotInRoom"

    # rules
    OUT_OF_BOUNDS = "OutOfBounds"
    EMPTY_SOURCE = "EmptySource"
    WRONG_OWNER = "WrongOwner"
    OCCUPIED_DESTINATION = "OccupiedDestination"
    NOT_DIAGONAL = "NotDiagonal"
    WRONG_DIRECTION = "WrongDirection"
    NO_PIECE_TO_CAPTURE = "NoPieceToCapture"
    CANNOT_CAPTURE_OWN = "CannotCaptureOwn"
    TOO_FAR = "TooFar"
    MUST_CAPTURE = "MustCapture"

    # lifecycle
    GAME_OVER = "GameOver"
    WAITING_FOR_OPPONENT = "WaitingForOpponent"
    ROOM_NOT_FOUND = "RoomNotFound"
    ROOM_FULL = "RoomFull"
    INVALID_TOKEN = "InvalidToken"
