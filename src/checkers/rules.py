"""
Rules engine: validate a proposed move against a board and a player, apply it, and answer the
whole-board questions (forced capture, is there any move left at all).

All functions are pure. Boards go in, booleans / results / new boards come out.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from src.checkers.board import PROMOTION_ROW, Board
from src.checkers.moves import (
    FORWARD,
    Move,
    has_destination,
    has_jump,
    jump_destinations,
    legal_destinations,
)
from src.checkers.pieces import Piece
from src.checkers.square import Square
from src.core.shared_types import Color, Reason


@dataclass(frozen=True)
class MoveValidation:
    """Result of validating a move. `reason` is only set for an illegal move."""

    legal: bool
    reason: Optional[Reason] = None
    captured_square: Optional[Square] = None
    promotes: bool = False

    @classmethod
    def reject(cls, reason: Reason) -> "MoveValidation":
        return cls(legal=False, reason=reason)

    @property
    def is_capture(self) -> bool:
        return self.captured_square is not None


def promotes_on(piece: Piece, to_square: Square) -> bool:
    """A man landing on the far row for its color gets crowned"""
    if piece.is_empty or piece.is_king:
        return False
    assert piece.color is not None
    return to_square.row == PROMOTION_ROW[piece.color]


def validate_move(
    board: Board, color: Color, from_square: Square, to_square: Square
) -> MoveValidation:
    """
    Check a single move against the rules of checkers (geometry, ownership, occupancy, capture legality).

    ----
    The order of the checks decides which reason a client gets back when several apply:
    1. both squares on the board
    2. a piece on the source square, and it is yours
    3. the destination is empty
    4. the move is diagonal
    5. distance 1: men only move forward
    6. distance 2: there is an opponent's piece to jump over
    7. anything further is too far

    NOTE: forced capture is a whole-board property. It is checked by the Game, not here.
    """
    if not (from_square.is_within_bounds() and to_square.is_within_bounds()):
        return MoveValidation.reject(Reason.OUT_OF_BOUNDS)

    piece = board.piece(from_square)
    if piece.is_empty:
        return MoveValidation.reject(Reason.EMPTY_SOURCE)
    if piece.color != color:
        return MoveValidation.reject(Reason.WRONG_OWNER)
    if not board.is_empty_at(to_square):
        return MoveValidation.reject(Reason.OCCUPIED_DESTINATION)

    move = Move(from_square, to_square)
    if not move.is_diagonal:
        return MoveValidation.reject(Reason.NOT_DIAGONAL)

    d_row = to_square.row - from_square.row
    if move.row_distance == 1:
        if not piece.is_king and d_row != FORWARD[color]:
            return MoveValidation.reject(Reason.WRONG_DIRECTION)
        return MoveValidation(legal=True, promotes=promotes_on(piece, to_square))

    if move.row_distance == 2:
        jumped = move.captured_square
        assert jumped is not None
        jumped_piece = board.piece(jumped)
        if jumped_piece.is_empty:
            return MoveValidation.reject(Reason.NO_PIECE_TO_CAPTURE)
        if jumped_piece.color == color:
            return MoveValidation.reject(Reason.CANNOT_CAPTURE_OWN)
        if not piece.is_king and d_row != 2 * FORWARD[color]:
            return MoveValidation.reject(Reason.WRONG_DIRECTION)
        return MoveValidation(
            legal=True, captured_square=jumped, promotes=promotes_on(piece, to_square)
        )

    return MoveValidation.reject(Reason.TOO_FAR)


def apply_move(board: Board, from_square: Square, to_square: Square) -> Board:
    """
    Returns a NEW board with the piece relocated, crowned if it reached its far row,
    and the jumped piece removed if the move was a capture. The input board is left untouched.

    NOTE: does not validate. Call `validate_move` first.
    """
    move = Move(from_square, to_square)
    piece = board.piece(from_square)
    landed = piece.promoted() if promotes_on(piece, to_square) else piece

    changes: dict[Square, Piece] = {
        from_square: Piece.empty(),
        to_square: landed,
    }
    if move.captured_square is not None:
        changes[move.captured_square] = Piece.empty()
    return board.with_changes(changes)


def capturing_squares(board: Board, color: Color) -> list[Square]:
    """Squares of `color`'s pieces that have at least one jump available (these pieces are obliged to capture)"""
    return [square for square in board.locate_color(color) if has_jump(board, square)]


def player_has_any_capture(board: Board, color: Color) -> bool:
    """Forced capture: as soon as any piece of this color can jump, the player must jump"""
    return any(has_jump(board, square) for square in board.locate_color(color))


def has_any_legal_move(board: Board, color: Color) -> bool:
    """False if the color has no pieces left, or every one of its pieces is blocked"""
    return any(has_destination(board, square) for square in board.locate_color(color))


def allowed_destinations(board: Board, color: Color, square: Square) -> Iterator[Square]:
    """
    Destinations for the piece on `square`, with forced capture applied:
    if `color` has a capture anywhere on the board, only jumps are offered.
    """
    if player_has_any_capture(board, color):
        return jump_destinations(board, square)
    return legal_destinations(board, square)

