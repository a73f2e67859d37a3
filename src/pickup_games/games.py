# src/pickup_games/games.py
import logging
import re
from datetime import datetime, timezone

from bson import ObjectId

from . import db_models
from .db_config import GAMES_COLLECTION, USERS_COLLECTION, get_mongo_client
from .errors import (
    AlreadyJoinedError,
    CommentNotFoundError,
    DatabaseError,
    GameFullError,
    GameNotFoundError,
    InvalidInputError,
    NotAPlayerError,
    UserNotFoundError,
)
from .media_storage import MediaStorage, game_folder
from .validation import (
    check_string,
    check_text,
    format_and_validate_game,
    game_end,
    is_valid_id,
)

logger = logging.getLogger(__name__)

IMAGE_TYPES = {
    'image/jpeg': '.jpg',
    'image/png': '.png',
    'image/gif': '.gif',
    'image/webp': '.webp',
}

COMMENT_FIELDS = ('_id', 'userId', 'timestamp', 'commentText')


def _serialize(game):
    """Converts ObjectIds in a stored game to strings for callers."""
    game['_id'] = str(game['_id'])
    for comment in game.get('comments', []):
        comment['_id'] = str(comment['_id'])
    return game


def _comment_for_storage(comment):
    """Validates a comment handed back through update() and restores its ObjectId."""
    if not isinstance(comment, dict):
        raise InvalidInputError("Each comment must be a document")
    missing = [field for field in COMMENT_FIELDS if field not in comment]
    if missing:
        raise InvalidInputError(f"Comment is missing {', '.join(missing)}")

    comment_id = comment['_id']
    if not isinstance(comment_id, ObjectId):
        comment_id = ObjectId(is_valid_id(comment_id, "comment id"))
    if not isinstance(comment['timestamp'], datetime):
        raise InvalidInputError("Comment timestamp must be a datetime")

    return {
        '_id': comment_id,
        'userId': is_valid_id(comment['userId'], "comment userId"),
        'timestamp': comment['timestamp'],
        'commentText': check_text(comment['commentText'], "Comment", max_length=db_models.COMMENT_MAX_LENGTH),
    }


class GamesRepository:
    """Reads and writes game documents and keeps users' game lists in sync."""

    def __init__(self, db, media=None):
        self.games = db[GAMES_COLLECTION]
        self.users = db[USERS_COLLECTION]
        self.media = media if media is not None else MediaStorage()

    def _find(self, game_id):
        game = self.games.find_one({'_id': ObjectId(game_id)})
        if game is None:
            raise GameNotFoundError("No game with that id")
        return game

    def _require_user(self, user_id):
        if self.users.find_one({'_id': ObjectId(user_id)}, {'_id': 1}) is None:
            raise UserNotFoundError("Could not find user")

    def create(self, gameName, description, gameLocation, maxCapacity, gameDate, startTime,
               endTime, group, organizer, link="", linkdesc=""):
        group = is_valid_id(group, "group")
        organizer = is_valid_id(organizer, "organizer")
        game_data = format_and_validate_game(gameName, description, gameLocation, maxCapacity, gameDate,
                                             startTime, endTime, organizer, link, linkdesc)
        self._require_user(organizer)

        new_game = {
            'gameName': game_data['gameName'],
            'description': game_data['description'],
            'gameLocation': game_data['gameLocation'],
            'maxCapacity': game_data['maxCapacity'],
            'gameDate': game_data['gameDate'],
            'startTime': game_data['startTime'],
            'endTime': game_data['endTime'],
            'players': [organizer],
            'totalNumberOfPlayers': 1,
            'group': group,
            'organizer': organizer,
            'comments': [],
            'gameImage': db_models.DEFAULT_GAME_IMAGE,
            'map': '',
            'directions': '',
            'expired': False,
            'link': game_data['link'],
            'linkdesc': game_data['linkdesc'],
        }

        insert_info = self.games.insert_one(new_game)
        if not insert_info.acknowledged or not insert_info.inserted_id:
            raise DatabaseError("Could not add game")

        game_id = str(insert_info.inserted_id)
        self.users.update_one({'_id': ObjectId(organizer)}, {'$push': {'games': game_id}})
        logger.info(f"Created game {game_id} ('{new_game['gameName']}') for group {group}")
        return self.get(game_id)

    def get(self, game_id):
        game_id = is_valid_id(game_id, "gameId")
        return _serialize(self._find(game_id))

    def get_all(self, include_expired=False):
        query = {} if include_expired else {'expired': False}
        return [_serialize(game) for game in self.games.find(query)]

    def get_all_by_group(self, group_id, include_expired=True):
        group_id = is_valid_id(group_id, "groupId")
        query = {'group': group_id}
        if not include_expired:
            query['expired'] = False
        return [_serialize(game) for game in self.games.find(query)]

    def add_comment(self, game_id, user_id, comment):
        game_id = is_valid_id(game_id, "gameId")
        user_id = is_valid_id(user_id, "userId")
        if not comment:
            raise InvalidInputError("Comment is not provided")
        text = check_text(comment, "Comment", max_length=db_models.COMMENT_MAX_LENGTH)

        game = self._find(game_id)
        if user_id not in game['players']:
            raise NotAPlayerError("Commenter is not in the game")

        new_comment = {
            '_id': ObjectId(),
            'userId': user_id,
            'timestamp': datetime.now(timezone.utc),
            'commentText': text,
        }
        self.games.update_one({'_id': ObjectId(game_id)}, {'$push': {'comments': new_comment}})
        logger.info(f"User {user_id} commented on game {game_id}")
        return dict(new_comment, _id=str(new_comment['_id']))

    def remove_comment(self, game_id, comment_id):
        game_id = is_valid_id(game_id, "gameId")
        comment_id = is_valid_id(comment_id, "commentId")
        self._find(game_id)

        result = self.games.update_one(
            {'_id': ObjectId(game_id)},
            {'$pull': {'comments': {'_id': ObjectId(comment_id)}}}
        )
        if result.modified_count == 0:
            raise CommentNotFoundError("No comment with that id")
        logger.info(f"Removed comment {comment_id} from game {game_id}")
        return True

    def add_user(self, user_id, game_id):
        """Joins user_id to the game. Returns the updated game."""
        user_id = is_valid_id(user_id, "userId")
        game_id = is_valid_id(game_id, "gameId")

        game = self._find(game_id)
        if game['maxCapacity'] <= len(game['players']):
            raise GameFullError("Game is full")
        if user_id in game['players']:
            raise AlreadyJoinedError("User is already in the game")
        self._require_user(user_id)

        # Re-checked in the filter so a concurrent join cannot overfill the game:
        # players.<maxCapacity - 1> exists only once the game is full.
        result = self.games.update_one(
            {
                '_id': ObjectId(game_id),
                'maxCapacity': game['maxCapacity'],
                'players': {'$ne': user_id},
                f"players.{game['maxCapacity'] - 1}": {'$exists': False},
            },
            {'$push': {'players': user_id}, '$inc': {'totalNumberOfPlayers': 1}}
        )
        if result.matched_count == 0:
            game = self._find(game_id)
            if user_id in game['players']:
                raise AlreadyJoinedError("User is already in the game")
            raise GameFullError("Game is full")
        self.users.update_one({'_id': ObjectId(user_id)}, {'$push': {'games': game_id}})
        logger.info(f"User {user_id} joined game {game_id}")
        return self.get(game_id)

    def leave_game(self, user_id, game_id):
        user_id = is_valid_id(user_id, "userId")
        game_id = is_valid_id(game_id, "gameId")

        game = self._find(game_id)
        if user_id not in game['players']:
            raise NotAPlayerError("User is not in the game")
        if user_id == game['organizer']:
            raise InvalidInputError("The organizer cannot leave their own game")

        self.games.update_one(
            {'_id': ObjectId(game_id)},
            {'$pull': {'players': user_id}, '$inc': {'totalNumberOfPlayers': -1}}
        )
        self.users.update_one({'_id': ObjectId(user_id)}, {'$pull': {'games': game_id}})
        logger.info(f"User {user_id} left game {game_id}")
        return self.get(game_id)

    def search_games(self, search):
        if not search or not isinstance(search, str) or not search.strip():
            raise InvalidInputError("Invalid search term")
        search = search.strip()

        # Literal substring match; the term is user input, not a pattern
        query = {'gameName': {'$regex': re.escape(search), '$options': 'i'}}
        game_list = [_serialize(game) for game in self.games.find(query).limit(db_models.SEARCH_RESULT_SIZE)]
        if not game_list:
            raise GameNotFoundError("Couldn't find any games with that name")
        return game_list

    def update(self, game_id, user_id, gameName, description, gameLocation, maxCapacity, gameDate,
               startTime, endTime, group, gameImage="", map="", directions="", link="", linkdesc="",
               players=None, comments=None, expired=None):
        """
        Replaces the whole game document.
        players, comments and expired keep their stored values unless given;
        a blank gameImage keeps the stored image.
        """
        game_id = is_valid_id(game_id, "gameId")
        user_id = is_valid_id(user_id, "userId")
        group = is_valid_id(group, "group")
        old_game = self._find(game_id)

        if players is None:
            players = list(old_game['players'])
        elif not isinstance(players, list):
            raise InvalidInputError("players must be a list")
        else:
            players = [is_valid_id(player, "player id") for player in players]
            if len(set(players)) != len(players):
                raise InvalidInputError("players contains duplicates")

        game_data = format_and_validate_game(gameName, description, gameLocation, maxCapacity, gameDate,
                                             startTime, endTime, user_id, link, linkdesc,
                                             min_players=len(players))
        if user_id not in players:
            raise InvalidInputError("The organizer must be one of the players")

        if comments is None:
            comments = old_game['comments']
        elif not isinstance(comments, list):
            raise InvalidInputError("comments must be a list")
        else:
            comments = [_comment_for_storage(comment) for comment in comments]

        if expired is None:
            expired = old_game['expired']
        elif not isinstance(expired, bool):
            raise InvalidInputError("expired must be true or false")

        gameImage = check_string(gameImage or "", "gameImage", min_length=0) or old_game['gameImage']
        map = check_string(map or "", "map", min_length=0, max_length=db_models.MAP_MAX_LENGTH)
        directions = check_text(directions or "", "directions", min_length=0,
                                max_length=db_models.DIRECTIONS_MAX_LENGTH)

        joined = [player for player in players if player not in old_game['players']]
        left = [player for player in old_game['players'] if player not in players]
        if joined:
            found = self.users.count_documents({'_id': {'$in': [ObjectId(p) for p in joined]}})
            if found != len(joined):
                raise UserNotFoundError("Could not find every new player")

        updated_game = {
            'gameName': game_data['gameName'],
            'organizer': user_id,
            'description': game_data['description'],
            'gameLocation': game_data['gameLocation'],
            'maxCapacity': game_data['maxCapacity'],
            'gameDate': game_data['gameDate'],
            'startTime': game_data['startTime'],
            'endTime': game_data['endTime'],
            'players': players,
            'totalNumberOfPlayers': len(players),
            'group': group,
            'comments': comments,
            'gameImage': gameImage,
            'map': map,
            'directions': directions,
            'expired': expired,
            'link': game_data['link'],
            'linkdesc': game_data['linkdesc'],
        }

        result = self.games.replace_one({'_id': ObjectId(game_id)}, updated_game)
        if result.matched_count == 0:
            raise GameNotFoundError("No game with that id")

        if joined:
            self.users.update_many({'_id': {'$in': [ObjectId(p) for p in joined]}},
                                   {'$addToSet': {'games': game_id}})
        if left:
            self.users.update_many({'_id': {'$in': [ObjectId(p) for p in left]}},
                                   {'$pull': {'games': game_id}})

        logger.info(f"Updated game {game_id}")
        return self.get(game_id)

    def remove(self, game_id):
        """Deletes the game, its id from every user and its media folder."""
        game_id = is_valid_id(game_id, "gameId")

        deletion_info = self.games.find_one_and_delete({'_id': ObjectId(game_id)})
        self.users.update_many({'games': game_id}, {'$pull': {'games': game_id}})
        if deletion_info is None:
            raise GameNotFoundError(f"Could not delete game with id of {game_id}")

        self.media.delete_folder(game_folder(game_id))
        logger.info(f"Removed game {game_id} ('{deletion_info['gameName']}')")
        return {'gameName': deletion_info['gameName'], 'deleted': True}

    def keep_status_updated(self, now=None):
        """Marks every game that has already ended as expired. Returns how many changed."""
        now = now or datetime.now()

        expired_ids = []
        for game in self.games.find({'expired': False}, {'gameDate': 1, 'endTime': 1}):
            try:
                ends_at = game_end(game)
            except InvalidInputError as e:
                logger.warning(f"Skipping game {game['_id']} with unreadable schedule: {e}")
                continue
            if ends_at < now:
                expired_ids.append(game['_id'])

        if not expired_ids:
            return 0

        result = self.games.update_many({'_id': {'$in': expired_ids}}, {'$set': {'expired': True}})
        logger.info(f"Marked {result.modified_count} games as expired")
        return result.modified_count

    def edit_game_image(self, game_id, user_id, image, content_type):
        """Uploads a new cover image for the game, then saves it through update()."""
        game_id = is_valid_id(game_id, "gameId")
        if not image:
            raise InvalidInputError("No image provided")
        extension = IMAGE_TYPES.get(content_type)
        if extension is None:
            raise InvalidInputError(f"Unsupported image type: {content_type}")

        user_id = is_valid_id(user_id, "userId")
        game = self._find(game_id)
        # update() makes user_id the organizer; reject before anything is uploaded
        if user_id not in game['players']:
            raise NotAPlayerError("Only a player of the game can change its image")
        url = self.media.upload(game_folder(game_id), f"{ObjectId()}{extension}", image, content_type)

        return self.update(game_id, user_id, game['gameName'], game['description'], game['gameLocation'],
                           game['maxCapacity'], game['gameDate'], game['startTime'], game['endTime'],
                           game['group'], gameImage=url, map=game['map'], directions=game['directions'],
                           link=game['link'], linkdesc=game['linkdesc'])


def get_games_repository(media=None):
    """Builds a repository on the configured database, or None if it is unreachable."""
    db = get_mongo_client()
    if db is None:
        return None
    return GamesRepository(db, media)
