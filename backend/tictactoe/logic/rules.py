"""
Terminal state detection for a 3x3 board.

Cells are indexed 0..8 row-major: row = index // 3, col = index % 3.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tictactoe.logic.enums import Outcome, Role

if TYPE_CHECKING:
    from collections.abc import Sequence

BOARD_SIZE = 9

WINNING_TRIPLES: tuple[tuple[int, int, int], ...] = (
    # rows
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    # columns
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    # diagonals
    (0, 4, 8),
    (2, 4, 6),
)


def empty_board() -> list[Role | None]:
    return [None] * BOARD_SIZE


def evaluate(board: Sequence[Role | None]) -> Outcome | None:
    """
    Compute the outcome of a board.

    Return the role that occupies all three cells of any triple, DRAW when
    no triple is won and every cell is taken, or None while the game is
    still open.
    """
    if len(board) != BOARD_SIZE:
        raise ValueError(f"board must have {BOARD_SIZE} cells, got {len(board)}")

    for a, b, c in WINNING_TRIPLES:
        mark = board[a]
        if mark is not None and mark == board[b] == board[c]:
            return Outcome(mark)

    if all(cell is not None for cell in board):
        return Outcome.DRAW
    return None
