"""
Pytest fixtures for the pickup games data layer.
"""

import mongomock
import pytest

from pickup_games import GamesRepository


class FakeMedia:
    """Records media calls instead of talking to Cloud Storage."""

    def __init__(self):
        self.deleted = []
        self.uploads = []

    def upload(self, folder, name, data, content_type):
        self.uploads.append((folder, name, data, content_type))
        return f"https://storage.example.test/{folder}/{name}"

    def delete_folder(self, folder):
        self.deleted.append(folder)
        return 0


@pytest.fixture
def db():
    """A fresh in-memory database."""
    return mongomock.MongoClient()['pickup_games_test']


@pytest.fixture
def media():
    return FakeMedia()


@pytest.fixture
def repo(db, media):
    return GamesRepository(db, media)


@pytest.fixture
def make_user(db):
    """Inserts a user document and returns its id as a string."""
    def _make_user(name="player"):
        result = db['users'].insert_one({'name': name, 'games': []})
        return str(result.inserted_id)
    return _make_user


@pytest.fixture
def organizer(make_user):
    return make_user("organizer")


@pytest.fixture
def group_id():
    return "65a1f0c2e4b0a1b2c3d4e5f6"


@pytest.fixture
def game_fields(group_id, organizer):
    """Valid arguments for GamesRepository.create."""
    return dict(
        gameName="Sunday Ultimate",
        description="Casual pickup, all levels welcome",
        gameLocation="Riverside Park, Field 3",
        maxCapacity=3,
        gameDate="2099-06-01",
        startTime="10:00",
        endTime="12:00",
        group=group_id,
        organizer=organizer,
    )


@pytest.fixture
def game(repo, game_fields):
    """A stored, not yet expired game with capacity 3."""
    return repo.create(**game_fields)
