"""Unit tests for /src/checkers/square.py"""

import pytest

from src.checkers.square import Square


def test_pair_roundtrip() -> None:
    assert Square.from_pair((2, 1)).to_pair() == (2, 1)
    assert Square.from_pair([7, 0]) == Square(7, 0)


@pytest.mark.parametrize(
    "row, col, expected",
    [
        (0, 0, True),
        (7, 7, True),
        (3, 4, True),
        (-1, 0, False),
        (0, -1, False),
        (8, 0, False),
        (0, 8, False),
    ],
)
def test_within_bounds(row: int, col: int, expected: bool) -> None:
    assert Square(row, col).is_within_bounds() is expected


@pytest.mark.parametrize(
    "row, col, expected",
    [(0, 1, True), (1, 0, True), (0, 0, False), (7, 7, False), (2, 5, True)],
)
def test_dark_squares(row: int, col: int, expected: bool) -> None:
    """Pieces live on squares where row + col is odd"""
    assert Square(row, col).is_dark() is expected


def test_offset_and_midpoint() -> None:
    start = Square(2, 1)
    landing = start.offset(2, 2)
    assert landing == Square(4, 3)
    assert start.midpoint(landing) == Square(3, 2)
    assert landing.midpoint(start) == Square(3, 2)


def test_squares_are_hashable_values() -> None:
    """Squares are used as dictionary keys for the board position"""
    assert {Square(1, 2): "x"}[Square(1, 2)] == "x"
