"""Data access for pickup games: MongoDB persistence plus validation."""

from .errors import (
    AlreadyJoinedError,
    CommentNotFoundError,
    DatabaseError,
    GameError,
    GameFullError,
    GameNotFoundError,
    InvalidInputError,
    NotAPlayerError,
    UserNotFoundError,
)
from .games import GamesRepository, get_games_repository
from .media_storage import MediaStorage

__all__ = [
    "GamesRepository",
    "get_games_repository",
    "MediaStorage",
    "GameError",
    "InvalidInputError",
    "GameNotFoundError",
    "UserNotFoundError",
    "CommentNotFoundError",
    "GameFullError",
    "AlreadyJoinedError",
    "NotAPlayerError",
    "DatabaseError",
]
