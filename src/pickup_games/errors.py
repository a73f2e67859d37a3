# src/pickup_games/errors.py

class GameError(Exception):
    """Base class for everything the games data layer raises."""


class InvalidInputError(GameError, ValueError):
    pass


class GameNotFoundError(GameError):
    pass


class UserNotFoundError(GameError):
    pass


class CommentNotFoundError(GameError):
    pass


class GameFullError(GameError):
    pass


class AlreadyJoinedError(GameError):
    pass


class NotAPlayerError(GameError):
    pass


class DatabaseError(GameError):
    """A write was not acknowledged by MongoDB."""
