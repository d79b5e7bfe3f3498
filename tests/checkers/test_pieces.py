"""Unit tests for /src/checkers/pieces.py"""

import pytest

from src.checkers.pieces import Piece, PieceType, opponent_of, owner_of
from src.core.shared_types import Color


@pytest.mark.parametrize(
    "symbol, piece_type, color",
    [
        ("r", PieceType.MAN, Color.RED),
        ("R", PieceType.KING, Color.RED),
        ("b", PieceType.MAN, Color.BLACK),
        ("B", PieceType.KING, Color.BLACK),
    ],
)
def test_symbol_roundtrip(symbol: str, piece_type: PieceType, color: Color) -> None:
    piece = Piece.from_symbol(symbol)
    assert piece == Piece(piece_type, color)
    assert piece.to_symbol() == symbol


def test_empty_cell() -> None:
    empty = Piece.empty()
    assert empty.is_empty
    assert not empty.is_king
    assert empty.to_symbol() is None
    assert owner_of(empty) is None


def test_unknown_symbol() -> None:
    with pytest.raises(KeyError):
        Piece.from_symbol("x")


@pytest.mark.parametrize(
    "piece_type, color",
    [(PieceType.EMPTY, Color.RED), (PieceType.MAN, None), (PieceType.KING, None)],
)
def test_inconsistent_cells_are_refused(piece_type: PieceType, color: Color | None) -> None:
    """An empty cell has no color, a man/king always has one"""
    with pytest.raises(ValueError):
        Piece(piece_type, color)


@pytest.mark.parametrize("color", [Color.RED, Color.BLACK])
def test_promotion(color: Color) -> None:
    """Men get crowned, kings stay kings"""
    assert Piece.man(color).promoted() == Piece.king(color)
    assert Piece.king(color).promoted() == Piece.king(color)


def test_cannot_promote_empty_cell() -> None:
    with pytest.raises(ValueError):
        Piece.empty().promoted()


def test_owner_and_opponent() -> None:
    assert owner_of(Piece.man(Color.RED)) == Color.RED
    assert owner_of(Piece.king(Color.BLACK)) == Color.BLACK
    assert opponent_of(Color.RED) == Color.BLACK
    assert opponent_of(Color.BLACK) == Color.RED
