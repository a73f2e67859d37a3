# src/pickup_games/db_config.py
from pymongo import MongoClient
from pymongo.errors import PyMongoError
from dotenv import load_dotenv
import logging
import os

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# In production these are set on the host, NOT via a .env file.
MONGO_URI = os.getenv("MONGO_URI")
DB_NAME = os.getenv("MONGO_DB_NAME", "pickup_games_db")

GAMES_COLLECTION = "games"
USERS_COLLECTION = "users"

MEDIA_BUCKET = os.getenv("MEDIA_BUCKET", "family-frisbee-media")
MEDIA_TOKEN = os.getenv("MEDIA_TOKEN")


def get_mongo_client():
    """Returns the MongoDB database object for the pickup games DB, or None."""
    if not MONGO_URI:
        logger.error("MONGO_URI not found. Check your .env file or environment variables.")
        return None

    try:
        client = MongoClient(MONGO_URI)

        # Ping the server to confirm a successful connection
        client.admin.command('ping')
        logger.info(f"MongoDB connection successful. Using database: '{DB_NAME}'")
        return client[DB_NAME]
    except PyMongoError as e:
        logger.error(f"Error connecting to MongoDB: {e}")
        return None
