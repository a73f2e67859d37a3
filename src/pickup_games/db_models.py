# --- MongoDB Data Structures ---

DEFAULT_GAME_IMAGE = "https://storage.googleapis.com/family-frisbee-media/icons/Full_court.png"

# 1. GAMES Collection
# Written by games.GamesRepository. _id is returned to callers as a string.
GAME_SCHEMA = {
    "_id": "ObjectId",
    "gameName": "Sunday Ultimate",
    "description": "Casual pickup, all levels welcome",
    "gameLocation": "Riverside Park, Field 3",
    "maxCapacity": 14,
    "gameDate": "YYYY-MM-DD",
    "startTime": "HH:MM",
    "endTime": "HH:MM",
    "players": ["<user id>"],  # organizer is always in here
    "totalNumberOfPlayers": 1,  # mirrors len(players)
    "group": "<group id>",
    "organizer": "<user id>",
    "comments": [],  # list of COMMENT_SCHEMA
    "gameImage": DEFAULT_GAME_IMAGE,
    "map": "",
    "directions": "",
    "link": "",
    "linkdesc": "",
    "expired": False  # flipped by the expiry sweep once the game has ended
}

# 2. Embedded comment (games.comments)
COMMENT_SCHEMA = {
    "_id": "ObjectId",
    "userId": "<user id>",
    "timestamp": "datetime (UTC)",
    "commentText": "Markup-free text"
}

# 3. USERS Collection (only the part this package touches)
USER_SCHEMA = {
    "_id": "ObjectId",
    "games": ["<game id>"]  # kept in sync with games.players
}

# Field limits enforced by validation.format_and_validate_game
NAME_LENGTH = (2, 100)
DESCRIPTION_LENGTH = (1, 1000)
LOCATION_LENGTH = (1, 200)
CAPACITY_RANGE = (2, 1000)
COMMENT_MAX_LENGTH = 500
LINK_DESC_MAX_LENGTH = 100
MAP_MAX_LENGTH = 2000
DIRECTIONS_MAX_LENGTH = 1000

SEARCH_RESULT_SIZE = 10
