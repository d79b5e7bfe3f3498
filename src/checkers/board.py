"""The Game board: the `position` (configuration of pieces on the grid) plus the few queries the rules need"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Self

from src.checkers.pieces import Piece, owner_of
from src.checkers.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError
from src.core.shared_types import Color

# rows 0-2 hold red, rows 5-7 hold black
STARTING_FEN = "1r1r1r1r/r1r1r1r1/1r1r1r1r/8/8/b1b1b1b1/1b1b1b1b/b1b1b1b1"
EMPTY_FEN = "/".join(["8"] * BOARD_DIMENSIONS[0])

# the far row for each color: a man arriving there is crowned
PROMOTION_ROW: dict[Color, int] = {
    Color.RED: BOARD_DIMENSIONS[0] - 1,
    Color.BLACK: 0,
}


def all_squares() -> Iterator[Square]:
    for row in range(BOARD_DIMENSIONS[0]):
        for col in range(BOARD_DIMENSIONS[1]):
            yield Square(row, col)


@dataclass(frozen=True)
class Board:
    """
    Immutable value type. Every change produces a new Board, so anyone holding an older board
    (move history display, a snapshot that is being serialized) never sees it change underneath them.
    """

    position: dict[Square, Piece] = field(default_factory=dict)

    @classmethod
    def initial(cls) -> Self:
        return cls.from_fen(STARTING_FEN)

    @classmethod
    def empty(cls) -> Self:
        return cls.from_fen(EMPTY_FEN)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board from a FEN-style layout string.

        Same idea as chess FEN, adapted to the 8x8 draughts grid:
        1r1r1r1r/r1r1r1r1/1r1r1r1r/8/8/b1b1b1b1/1b1b1b1b/b1b1b1b1
        means:
        * rows are separated by slashes, row 0 first
        * 'r'/'b' are red/black men, 'R'/'B' are red/black kings
        * a digit is that many consecutive empty cells
        """
        rows = fen_str.strip().split("/")
        if len(rows) != BOARD_DIMENSIONS[0]:
            raise InvalidFENError(
                f"Expected {BOARD_DIMENSIONS[0]} rows in {fen_str!r}, found {len(rows)}."
            )

        position: dict[Square, Piece] = {}
        for row, fen_one_row in enumerate(rows):
            col = 0
            for character in fen_one_row:
                if character.isdigit():
                    for _ in range(int(character)):
                        position[Square(row, col)] = Piece.empty()
                        col += 1
                    continue

                try:
                    piece = Piece.from_symbol(character)
                except KeyError as e:
                    raise InvalidFENError(
                        f"Unknown piece symbol {character!r} in {fen_str!r}."
                    ) from e
                position[Square(row, col)] = piece
                col += 1

            if col != BOARD_DIMENSIONS[1]:
                raise InvalidFENError(
                    f"Row {row} of {fen_str!r} describes {col} cells instead of {BOARD_DIMENSIONS[1]}."
                )

        board = cls(position)
        board._assert_reachable()
        return board

    def to_fen(self) -> str:
        """Rows are separated by slashes in the FEN string."""
        return "/".join(self._row_to_fen(row) for row in range(BOARD_DIMENSIONS[0]))

    def _row_to_fen(self, row: int) -> str:
        fen_characters: list[str] = []
        empty_count = 0
        for col in range(BOARD_DIMENSIONS[1]):
            symbol = self.piece(Square(row, col)).to_symbol()
            if symbol is None:
                empty_count += 1
                continue
            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(symbol)

        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def _assert_reachable(self) -> None:
        """Pieces only on dark squares, and no man left standing on its promotion row"""
        for square, piece in self.position.items():
            if piece.is_empty:
                continue
            if not square.is_dark():
                raise InvalidFENError(f"Piece on light square {square.to_pair()}.")
            color = owner_of(piece)
            assert color is not None
            if not piece.is_king and square.row == PROMOTION_ROW[color]:
                raise InvalidFENError(
                    f"Uncrowned {color} man on its promotion row at {square.to_pair()}."
                )

    def piece(self, square: Square) -> Piece:
        return self.position[square]

    def owner(self, square: Square) -> Optional[Color]:
        return owner_of(self.piece(square))

    def is_empty_at(self, square: Square) -> bool:
        return self.piece(square).is_empty

    def locate_color(self, color: Color) -> list[Square]:
        return [
            square for square, piece in self.position.items() if piece.color == color
        ]

    def count_pieces(self) -> dict[Color, int]:
        return {color: len(self.locate_color(color)) for color in Color}

    def with_changes(self, changes: dict[Square, Piece]) -> Self:
        """A copy of this board with some cells replaced. This board stays as it is."""
        position = dict(self.position)
        position.update(changes)
        return type(self)(position)

    def place_piece(self, piece: Piece, square: Square) -> Self:
        """convenience method for setting up test positions"""
        return self.with_changes({square: piece})

    def to_grid(self) -> list[list[Optional[str]]]:
        """8x8 grid of wire symbols, indexed [row][col]"""
        return [
            [
                self.piece(Square(row, col)).to_symbol()
                for col in range(BOARD_DIMENSIONS[1])
            ]
            for row in range(BOARD_DIMENSIONS[0])
        ]


def initial_board() -> Board:
    return Board.initial()
