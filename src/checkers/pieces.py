"""Defines the pieces: a cell on the board is either empty, a man, or a king (of a given color)"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Self

from src.core.shared_types import Color


class PieceType(Enum):
    EMPTY = auto()
    MAN = auto()
    KING = auto()


SYMBOL_TO_PIECE: dict[str, tuple[PieceType, Color]] = {
    "r": (PieceType.MAN, Color.RED),
    "R": (PieceType.KING, Color.RED),
    "b": (PieceType.MAN, Color.BLACK),
    "B": (PieceType.KING, Color.BLACK),
}

PIECE_TO_SYMBOL: dict[tuple[PieceType, Color], str] = {
    value: key for key, value in SYMBOL_TO_PIECE.items()
}


def opponent_of(color: Color) -> Color:
    return Color.BLACK if color == Color.RED else Color.RED


@dataclass(frozen=True)
class Piece:
    """
    Tagged cell value: {Empty, Man(Color), King(Color)}

    NOTE: An empty cell has no color. Use `Piece.empty()` rather than constructing one by hand.
    """

    type: PieceType
    color: Optional[Color] = None

    def __post_init__(self) -> None:
        if (self.type == PieceType.EMPTY) != (self.color is None):
            raise ValueError(
                f"An empty cell has no color, and a piece always has one. Got {self.type} / {self.color}"
            )

    @classmethod
    def empty(cls) -> Self:
        return cls(PieceType.EMPTY)

    @classmethod
    def man(cls, color: Color) -> Self:
        return cls(PieceType.MAN, color)

    @classmethod
    def king(cls, color: Color) -> Self:
        return cls(PieceType.KING, color)

    @classmethod
    def from_symbol(cls, character: str) -> Self:
        # lower case: men, upper case: kings
        piece_type, color = SYMBOL_TO_PIECE[character]
        return cls(piece_type, color)

    def to_symbol(self) -> Optional[str]:
        """Wire symbol. Empty cells are sent as None (null)"""
        match self.type:
            case PieceType.EMPTY:
                return None
            case PieceType.MAN | PieceType.KING:
                assert self.color is not None
                return PIECE_TO_SYMBOL[(self.type, self.color)]

    @property
    def is_empty(self) -> bool:
        return self.type == PieceType.EMPTY

    @property
    def is_king(self) -> bool:
        return self.type == PieceType.KING

    def promoted(self) -> Self:
        """Kings stay kings. Promoting an empty cell is a programming error."""
        match self.type:
            case PieceType.MAN | PieceType.KING:
                assert self.color is not None
                return type(self).king(self.color)
            case PieceType.EMPTY:
                raise ValueError("Cannot promote an empty cell.")


def owner_of(piece: Piece) -> Optional[Color]:
    """Color of the occupant, None for an empty cell"""
    return piece.color
