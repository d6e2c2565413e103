"""Core rules for two-player Tic-Tac-Toe on a single 3x3 board."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Player = str  # "X" or "O"
EMPTY = " "

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

BOARD_SIZE = 9


class GameStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    DRAW = "draw"


class InvalidCellIndex(ValueError):
    """Raised when a move targets a cell that does not exist on the board."""

    def __init__(self, index: object) -> None:
        super().__init__(
            f"Cell index must be an integer between 0 and {BOARD_SIZE - 1}, "
            f"got {index!r}"
        )
        self.index = index


@dataclass(frozen=True)
class GameSnapshot:
    """Immutable view of a game handed to the rendering layer."""

    board: Tuple[str, ...]
    turn: Player
    status: GameStatus
    winner: Optional[Player]

    @property
    def is_over(self) -> bool:
        return self.status is not GameStatus.IN_PROGRESS


# ---------- Detection ----------


def winning_line(board: Sequence[str]) -> Optional[Tuple[int, int, int]]:
    """First completed line in ``WINNING_LINES`` order, or ``None``."""
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return (a, b, c)
    return None


def evaluate_board(board: Sequence[str]) -> Tuple[GameStatus, Optional[Player]]:
    """
    Derive the status of a board from scratch.

    Returns ``(WON, mark)`` for the first uniformly marked line,
    ``(DRAW, None)`` for a full board without one, and
    ``(IN_PROGRESS, None)`` otherwise.
    """
    line = winning_line(board)
    if line is not None:
        return GameStatus.WON, board[line[0]]
    if all(c != EMPTY for c in board):
        return GameStatus.DRAW, None
    return GameStatus.IN_PROGRESS, None


def other_player(player: Player) -> Player:
    return "O" if player == "X" else "X"


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    # Internal: 'X', 'O', or ' ' (space) for empty
    cells: List[str] = field(default_factory=lambda: [EMPTY] * BOARD_SIZE)
    current_player: Player = "X"

    # ---- derived state ----

    @property
    def status(self) -> GameStatus:
        return evaluate_board(self.cells)[0]

    @property
    def winner(self) -> Optional[Player]:
        return evaluate_board(self.cells)[1]

    # ---- API used by UI ----

    def snapshot(self) -> GameSnapshot:
        status, winner = evaluate_board(self.cells)
        return GameSnapshot(
            board=tuple(self.cells),
            turn=self.current_player,
            status=status,
            winner=winner,
        )

    def available_moves(self) -> List[int]:
        if self.status is not GameStatus.IN_PROGRESS:
            return []
        return [i for i, c in enumerate(self.cells) if c == EMPTY]

    def place_mark(self, index: int) -> GameSnapshot:
        """Mark ``index`` for the current player and pass the turn.

        Clicking an occupied cell or playing after the game has ended is not an
        error: the board is left alone and the unchanged snapshot is returned.
        """
        # bool is an int subclass but never a meaningful cell
        if (
            isinstance(index, bool)
            or not isinstance(index, int)
            or not 0 <= index < BOARD_SIZE
        ):
            raise InvalidCellIndex(index)

        if self.status is not GameStatus.IN_PROGRESS:
            logger.debug("Ignoring move on cell %d: game already finished", index)
            return self.snapshot()
        if self.cells[index] != EMPTY:
            logger.debug("Ignoring move on cell %d: cell already occupied", index)
            return self.snapshot()

        player = self.current_player
        self.cells[index] = player
        self.current_player = other_player(player)

        snap = self.snapshot()
        logger.debug("%s marked cell %d", player, index)
        if snap.status is GameStatus.WON:
            logger.debug("%s completed line %s", snap.winner, winning_line(self.cells))
        elif snap.status is GameStatus.DRAW:
            logger.debug("Board full without a line, game drawn")
        return snap

    def restart(self) -> GameSnapshot:
        self.cells = [EMPTY] * BOARD_SIZE
        self.current_player = "X"
        return self.snapshot()
