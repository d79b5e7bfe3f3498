"""
Geometry / base movement and capturing rules

Key idea: Use strategy pattern to define the movement directions for each piece type.
Every piece then moves along its directions in the same two shapes:
* a step: one square along the diagonal, landing on an empty square
* a jump: two squares along the diagonal, over an opponent's piece, landing on an empty square

Only one ply is ever generated. Chained jumps are asked for again from the landing square (by the Game).
Legality against the whole board (forced capture) is checked later by the rules engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Protocol

from src.checkers.pieces import Piece, PieceType, opponent_of
from src.checkers.square import Square
from src.core.shared_types import Color


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Piece: ...
    def locate_color(self, color: Color) -> list[Square]: ...


Vector = tuple[int, int]

# Red starts on rows 0-2 and moves DOWN the grid (increasing row). Black moves UP.
FORWARD: dict[Color, int] = {
    Color.RED: 1,
    Color.BLACK: -1,
}


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square

    @property
    def row_distance(self) -> int:
        return abs(self.to_square.row - self.from_square.row)

    @property
    def col_distance(self) -> int:
        return abs(self.to_square.col - self.from_square.col)

    @property
    def is_diagonal(self) -> bool:
        return self.row_distance == self.col_distance

    @property
    def is_jump(self) -> bool:
        return self.is_diagonal and self.row_distance == 2

    @property
    def captured_square(self) -> Optional[Square]:
        """The square jumped over (None for a step)"""
        if not self.is_jump:
            return None
        return self.from_square.midpoint(self.to_square)


# --- MOVEMENT DIRECTIONS ---
def man_directions(color: Color) -> list[Vector]:
    """A man only moves diagonally forward (towards the opponent's home row)"""
    forward = FORWARD[color]
    return [(forward, 1), (forward, -1)]


def king_directions(color: Color) -> list[Vector]:
    """A king moves diagonally in all four directions (still one square per step: no flying kings)"""
    return [(1, 1), (1, -1), (-1, 1), (-1, -1)]


# -- STRATEGY PATTERN: MOVEMENT RULES ---
DirectionsFn = Callable[[Color], list[Vector]]
MOVEMENT_RULES: dict[PieceType, DirectionsFn] = {
    PieceType.MAN: man_directions,
    PieceType.KING: king_directions,
}


def piece_directions(piece: Piece) -> list[Vector]:
    """Empty cells do not move anywhere"""
    if piece.is_empty:
        return []
    assert piece.color is not None
    return MOVEMENT_RULES[piece.type](piece.color)


# --- DESTINATIONS ---
def step_destinations(board: Board, square: Square) -> Iterator[Square]:
    """One square along each of the piece's directions, if that square is on the board and empty"""
    for dr, dc in piece_directions(board.piece(square)):
        target = square.offset(dr, dc)
        if target.is_within_bounds() and board.piece(target).is_empty:
            yield target


def jump_destinations(board: Board, square: Square) -> Iterator[Square]:
    """
    Two squares along each of the piece's directions:
    the landing square must be on the board and empty, the square in between must hold an opponent's piece.
    """
    piece = board.piece(square)
    if piece.is_empty:
        return
    assert piece.color is not None
    opponent = opponent_of(piece.color)

    for dr, dc in piece_directions(piece):
        landing = square.offset(2 * dr, 2 * dc)
        if not landing.is_within_bounds():
            continue
        if not board.piece(landing).is_empty:
            continue
        jumped = square.offset(dr, dc)
        if board.piece(jumped).color == opponent:
            yield landing


def legal_destinations(board: Board, square: Square) -> Iterator[Square]:
    """
    Lazily yields every square the piece on `square` can reach in one ply (steps first, then jumps).

    Nothing is yielded for an empty square.
    NOTE: does not know about forced capture. See `src.checkers.rules.allowed_destinations` for that.
    """
    yield from step_destinations(board, square)
    yield from jump_destinations(board, square)


def has_jump(board: Board, square: Square) -> bool:
    return next(jump_destinations(board, square), None) is not None


def has_destination(board: Board, square: Square) -> bool:
    return next(legal_destinations(board, square), None) is not None


def candidate_moves(board: Board, color: Color) -> Iterator[Move]:
    """Every one-ply move of every piece of a color (forced capture not applied)"""
    for from_square in board.locate_color(color):
        for to_square in legal_destinations(board, from_square):
            yield Move(from_square, to_square)
