"""CLI for creating (or recreating) the calculation database schema"""

import argparse
import sys

from loguru import logger

from calcflow.config import settings
from calcflow.stores.database import Database


def main(database_url: str, reset: bool) -> None:
    database = Database(database_url)
    try:
        if reset:
            database.reset_tables()
        else:
            database.create_tables()
    finally:
        database.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--database-url",
        type=str,
        required=False,
        help="SQLAlchemy database URL",
        default=settings.database_url,
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop every table before creating it again (all data is lost)",
    )

    args = parser.parse_args()

    logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])
    main(database_url=args.database_url, reset=args.reset)
