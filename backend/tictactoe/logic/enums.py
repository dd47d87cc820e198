"""
String enum definitions for tic-tac-toe game concepts.
"""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Mark a player places on the board. Also names whose turn it is."""

    X = "X"
    O = "O"  # noqa: E741

    @property
    def opponent(self) -> Role:
        return Role.O if self is Role.X else Role.X


class Outcome(StrEnum):
    """Terminal result of a game."""

    X = "X"
    O = "O"  # noqa: E741
    DRAW = "draw"
