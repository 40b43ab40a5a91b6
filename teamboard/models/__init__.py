# Database models
from .user import User
from .team import Team, TeamMember, TeamRole
from .board import Board
from .column import Column
from .card import Card

__all__ = [
    "User",
    "Team", "TeamMember", "TeamRole",
    "Board",
    "Column",
    "Card",
]
