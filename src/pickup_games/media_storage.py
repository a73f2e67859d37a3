# src/pickup_games/media_storage.py
from urllib.parse import quote
import logging

import requests

from .db_config import MEDIA_BUCKET, MEDIA_TOKEN

logger = logging.getLogger(__name__)

API_URL = "https://storage.googleapis.com/storage/v1/b/{bucket}/o"
UPLOAD_URL = "https://storage.googleapis.com/upload/storage/v1/b/{bucket}/o"
PUBLIC_URL = "https://storage.googleapis.com/{bucket}/{name}"
GAMES_PREFIX = "games"
TIMEOUT = 10


def game_folder(game_id):
    return f"{GAMES_PREFIX}/{game_id}"


class MediaStorage:
    """Game images kept in a Google Cloud Storage bucket, one folder per game."""

    def __init__(self, bucket=MEDIA_BUCKET, token=MEDIA_TOKEN, session=None):
        self.bucket = bucket
        self.session = session or requests.Session()
        if token:
            self.session.headers['Authorization'] = f"Bearer {token}"

    def upload(self, folder, name, data, content_type):
        """Stores data as folder/name and returns its public URL."""
        object_name = f"{folder}/{name}"
        try:
            response = self.session.post(
                UPLOAD_URL.format(bucket=self.bucket),
                params={'uploadType': 'media', 'name': object_name},
                data=data,
                headers={'Content-Type': content_type},
                timeout=TIMEOUT,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Error uploading {object_name} to {self.bucket}: {e}")
            raise

        logger.info(f"Uploaded {object_name} to {self.bucket}")
        return PUBLIC_URL.format(bucket=self.bucket, name=object_name)

    def list_folder(self, folder):
        names = []
        params = {'prefix': f"{folder}/", 'fields': 'items(name),nextPageToken'}
        while True:
            response = self.session.get(API_URL.format(bucket=self.bucket), params=params, timeout=TIMEOUT)
            response.raise_for_status()
            body = response.json()
            names.extend(item['name'] for item in body.get('items', []))
            if not body.get('nextPageToken'):
                return names
            params['pageToken'] = body['nextPageToken']

    def delete_folder(self, folder):
        """Deletes every object under folder/. Returns how many were removed."""
        try:
            names = self.list_folder(folder)
            for name in names:
                response = self.session.delete(
                    f"{API_URL.format(bucket=self.bucket)}/{quote(name, safe='')}",
                    timeout=TIMEOUT,
                )
                # Already gone is fine
                if response.status_code != 404:
                    response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Error deleting folder {folder} from {self.bucket}: {e}")
            raise

        logger.info(f"Deleted {len(names)} objects under {folder}/ in {self.bucket}")
        return len(names)
