"""
Pydantic models for the session layer.
"""

from pydantic import BaseModel

from tictactoe.logic.enums import Outcome


class RoomInfo(BaseModel):
    """Room information for lobby listing."""

    id: str
    players: int
    winner: Outcome | None
