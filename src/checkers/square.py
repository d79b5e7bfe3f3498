"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

# English draughts is always played on 8x8 (rows, cols)
BOARD_DIMENSIONS = (8, 8)


@dataclass(frozen=True)
class Square:
    """Zero-based (row, col). Row 0 is the red home row, row 7 the black home row."""

    row: int
    col: int

    @classmethod
    def from_pair(cls, pair: tuple[int, int] | list[int]) -> Square:
        row, col = pair
        return cls(row, col)

    def to_pair(self) -> tuple[int, int]:
        return (self.row, self.col)

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )

    def is_dark(self) -> bool:
        """Pieces only ever stand on the dark squares"""
        return (self.row + self.col) % 2 == 1

    def offset(self, d_row: int, d_col: int) -> Square:
        return Square(self.row + d_row, self.col + d_col)

    def midpoint(self, other: Square) -> Square:
        """Square halfway between two squares (only meaningful for a jump)"""
        return Square((self.row + other.row) // 2, (self.col + other.col) // 2)
