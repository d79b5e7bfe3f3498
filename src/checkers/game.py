"""
The Game class is the entrypoint into the domain layer for the Room / Service layers.
It is responsible for orchestrating all the business logic required to play a turn of checkers:
whose turn it is, re-validating the move, forced capture, chained jumps, history, and the end of the game.

It knows nothing about connections or players' identities: it only knows colors.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Self

from src.checkers.board import Board
from src.checkers.moves import has_jump, jump_destinations
from src.checkers.pieces import opponent_of
from src.checkers.rules import (
    allowed_destinations,
    apply_move,
    capturing_squares,
    has_any_legal_move,
    player_has_any_capture,
    validate_move,
)
from src.checkers.square import Square
from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    NotYourTurnError,
)
from src.core.shared_types import Color, Reason, Status

FIRST_TO_MOVE = Color.RED


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HistoryEntry:
    """One accepted move, as recorded in the move history"""

    player: Color
    from_square: Square
    to_square: Square
    captured_square: Optional[Square]
    promoted: bool
    timestamp: datetime


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY ROOM ---

    board: Board
    turn: Color
    history: list[HistoryEntry]
    status: Status
    # set while the same piece is in the middle of a chain of jumps: only that piece may move
    chain_square: Optional[Square] = None
    # remembered so a double stalemate can be decided in favour of the player who caused it
    last_mover: Optional[Color] = field(default=None)

    @classmethod
    def new_game(cls, board: Optional[Board] = None) -> Self:
        """Starting position, red to move, waiting for the second player to show up."""
        return cls(
            board=board or Board.initial(),
            turn=FIRST_TO_MOVE,
            history=[],
            status=Status.WAITING_FOR_PLAYERS,
        )

    @property
    def winner(self) -> Optional[Color]:
        """
        Derived from the board, never stored.
        ----

        A color without any legal move (no pieces left, or all of them blocked) has lost.

        If neither side can move (only reachable from a constructed position), the player who made the
        last move wins: they produced the position. Before any move has been made that case has no winner.
        """
        red_can_move = has_any_legal_move(self.board, Color.RED)
        black_can_move = has_any_legal_move(self.board, Color.BLACK)
        if red_can_move and black_can_move:
            return None
        if not red_can_move and not black_can_move:
            return self.last_mover
        return Color.BLACK if not red_can_move else Color.RED

    def start(self) -> None:
        """Both seats are taken."""
        if self.status == Status.WAITING_FOR_PLAYERS:
            self._change_status(Status.IN_PROGRESS)

    def reset(self, players_ready: bool = True) -> None:
        """Rematch: fresh board, empty history, red to move. Seats are the Room's business."""
        self.board = Board.initial()
        self.turn = FIRST_TO_MOVE
        self.history = []
        self.chain_square = None
        self.last_mover = None
        self._change_status(
            Status.IN_PROGRESS if players_ready else Status.WAITING_FOR_PLAYERS
        )

    def must_capture(self) -> list[Square]:
        """Squares of the player to move that are obliged to capture"""
        if self.status == Status.FINISHED:
            return []
        if self.chain_square is not None:
            return [self.chain_square]
        return capturing_squares(self.board, self.turn)

    def allowed_moves(self, color: Color, from_square: Square) -> list[Square]:
        """
        Destinations a client may offer for the piece on `from_square`.
        ----
        1. the square must be on the board and hold one of your pieces
        2. if you have a capture anywhere on the board, only jumps are returned
        3. halfway a chain of jumps, only the jumping piece has destinations (its further jumps)

        NOTE: no turn check. A client may look at its options while waiting.
        """
        if not from_square.is_within_bounds():
            raise IllegalMoveError(
                f"{from_square.to_pair()} is off the board.", Reason.OUT_OF_BOUNDS
            )
        piece = self.board.piece(from_square)
        if piece.is_empty:
            raise IllegalMoveError(
                f"No piece on {from_square.to_pair()}.", Reason.EMPTY_SOURCE
            )
        if piece.color != color:
            raise IllegalMoveError(
                f"The piece on {from_square.to_pair()} is not {color}.",
                Reason.WRONG_OWNER,
            )

        if self._is_chaining(color):
            if from_square != self.chain_square:
                return []
            return list(jump_destinations(self.board, from_square))
        return list(allowed_destinations(self.board, color, from_square))

    def make_move(self, color: Color, from_square: Square, to_square: Square) -> HistoryEntry:
        """
        Attempt to make a move
        -----

        1. the game must be in progress and it must be your turn
        2. re-validate the move with the rules engine (never trust the client)
        3. forced capture: if you can capture anywhere, a step is refused
        4. halfway a chain of jumps, only the jumping piece may move (and it must jump)
        5. update the board, the history
        6. decide the next turn (a capture that can be continued keeps the turn)
        7. update the game status (if somebody can no longer move)
        """
        # make sure the game is (still) in progress
        if self.status == Status.FINISHED:
            raise GameStateError("The game is over.", Reason.GAME_OVER)
        if self.status != Status.IN_PROGRESS:
            raise GameStateError(
                f"Game is not in progress. status: {self.status}",
                Reason.WAITING_FOR_OPPONENT,
            )

        # make sure it is your turn
        self._assert_your_turn(color)

        # check the move itself
        validation = validate_move(self.board, color, from_square, to_square)
        if not validation.legal:
            assert validation.reason is not None
            raise IllegalMoveError(
                f"Move not allowed: {from_square.to_pair()} -> {to_square.to_pair()}",
                validation.reason,
            )

        # check the obligations coming from the rest of the board
        if self._is_chaining(color) and (
            from_square != self.chain_square or not validation.is_capture
        ):
            raise IllegalMoveError(
                f"The piece on {self.chain_square.to_pair() if self.chain_square else None} must continue capturing.",
                Reason.MUST_CAPTURE,
            )
        if not validation.is_capture and player_has_any_capture(self.board, color):
            raise IllegalMoveError(
                "A capture is available, so you must capture.", Reason.MUST_CAPTURE
            )

        # update the board
        self.board = apply_move(self.board, from_square, to_square)

        # update the history
        entry = HistoryEntry(
            player=color,
            from_square=from_square,
            to_square=to_square,
            captured_square=validation.captured_square,
            promoted=validation.promotes,
            timestamp=utc_now(),
        )
        self.history.append(entry)
        self.last_mover = color

        # decide who moves next
        self._update_turn(color, to_square, captured=validation.is_capture)

        # check for the end of the game
        self._update_game_status()
        return entry

    # -- PRIVATE HELPERS ---
    def _assert_your_turn(self, color: Color) -> None:
        if color != self.turn:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.turn} to make a move first."
            )

    def _is_chaining(self, color: Color) -> bool:
        return self.chain_square is not None and color == self.turn

    def _update_turn(self, color: Color, landed_on: Square, captured: bool) -> None:
        """Chain capture: after a jump, if the same piece can jump again from where it landed, it keeps the turn"""
        if captured and has_jump(self.board, landed_on):
            self.turn = color
            self.chain_square = landed_on
            return
        self.turn = opponent_of(color)
        self.chain_square = None

    def _update_game_status(self) -> None:
        """Both colors are checked, regardless of who just moved."""
        if self.winner is not None:
            self.chain_square = None
            self._change_status(Status.FINISHED)

    def _change_status(self, new_status: Status) -> None:
        self.status = new_status
