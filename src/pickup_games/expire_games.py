# src/pickup_games/expire_games.py
# Run from cron: marks every game that has already ended as expired.

import logging

from .games import get_games_repository

logger = logging.getLogger(__name__)


def main():
    """Runs the expiry sweep once. Returns a process exit code."""
    # Configure logging
    logging.basicConfig(level=logging.INFO)
    logger.info("=== Starting expired games sweep ===")

    repository = get_games_repository()
    if repository is None:
        logger.error("Could not connect to MongoDB. Exiting.")
        return 1

    count = repository.keep_status_updated()
    logger.info(f"Marked {count} games as expired.")
    logger.info("=== Expired games sweep finished ===")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
