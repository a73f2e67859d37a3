# src/pickup_games/validation.py
import re
from datetime import datetime

from bs4 import BeautifulSoup
from bson import ObjectId

from . import db_models
from .errors import InvalidInputError

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
LINK_PATTERN = re.compile(r'^https?://[^\s/$.?#].[^\s]*$', re.IGNORECASE)


def is_valid_id(value, label="id"):
    """Trims and returns value if it is a valid ObjectId string."""
    if not isinstance(value, str):
        raise InvalidInputError(f"{label} must be a string")
    value = value.strip()
    if not value:
        raise InvalidInputError(f"{label} is empty")
    if not ObjectId.is_valid(value):
        raise InvalidInputError(f"{label} is not a valid ObjectId")
    return value


def check_string(value, label, min_length=1, max_length=None):
    if not isinstance(value, str):
        raise InvalidInputError(f"{label} must be a string")
    value = value.strip()
    if len(value) < min_length:
        if not value:
            raise InvalidInputError(f"{label} is empty or all whitespace")
        raise InvalidInputError(f"{label} must be at least {min_length} characters")
    if max_length is not None and len(value) > max_length:
        raise InvalidInputError(f"{label} must be at most {max_length} characters")
    return value


def check_capacity(value, min_players=0):
    """Accepts an int or a string of digits (form input)."""
    if isinstance(value, bool):
        raise InvalidInputError("maxCapacity must be a whole number")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise InvalidInputError("maxCapacity must be a whole number")

    low, high = db_models.CAPACITY_RANGE
    if not low <= value <= high:
        raise InvalidInputError(f"maxCapacity must be between {low} and {high}")
    if value < min_players:
        raise InvalidInputError(f"maxCapacity cannot be below the current {min_players} players")
    return value


def parse_date(value):
    value = check_string(value, "gameDate")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidInputError("gameDate must be formatted YYYY-MM-DD") from None


def parse_time(value, label):
    value = check_string(value, label)
    try:
        return datetime.strptime(value, TIME_FORMAT).time()
    except ValueError:
        raise InvalidInputError(f"{label} must be formatted HH:MM") from None


def game_end(game):
    """Wall-clock datetime at which a stored game finishes."""
    return datetime.combine(parse_date(game.get('gameDate')), parse_time(game.get('endTime'), "endTime"))


def check_link(link, linkdesc):
    link = (link or "").strip()
    linkdesc = (linkdesc or "").strip()
    if not link:
        return "", ""
    if not LINK_PATTERN.match(link):
        raise InvalidInputError("link must be an http(s) URL")
    if len(linkdesc) > db_models.LINK_DESC_MAX_LENGTH:
        raise InvalidInputError(f"linkdesc must be at most {db_models.LINK_DESC_MAX_LENGTH} characters")
    return link, linkdesc


def strip_markup(text):
    """Drops any HTML so stored text is safe to render."""
    return BeautifulSoup(text, 'html.parser').get_text().strip()


def check_text(value, label, min_length=1, max_length=None):
    """Like check_string, but measures the text left once markup is removed."""
    if not isinstance(value, str):
        raise InvalidInputError(f"{label} must be a string")
    return check_string(strip_markup(value), label, min_length, max_length)


def format_and_validate_game(gameName, description, gameLocation, maxCapacity, gameDate,
                             startTime, endTime, organizer=None, link="", linkdesc="",
                             min_players=0):
    """Validates and normalises the user-editable fields of a game."""
    gameName = check_text(gameName, "gameName", *db_models.NAME_LENGTH)
    description = check_text(description, "description", *db_models.DESCRIPTION_LENGTH)
    gameLocation = check_text(gameLocation, "gameLocation", *db_models.LOCATION_LENGTH)
    maxCapacity = check_capacity(maxCapacity, min_players)

    parse_date(gameDate)
    start = parse_time(startTime, "startTime")
    end = parse_time(endTime, "endTime")
    if end <= start:
        raise InvalidInputError("endTime must be after startTime")

    if organizer is not None:
        organizer = is_valid_id(organizer, "organizer")
    link, linkdesc = check_link(link, linkdesc)

    return {
        'gameName': gameName,
        'description': description,
        'gameLocation': gameLocation,
        'maxCapacity': maxCapacity,
        'gameDate': gameDate.strip(),
        'startTime': startTime.strip(),
        'endTime': endTime.strip(),
        'organizer': organizer,
        'link': link,
        'linkdesc': linkdesc,
    }
