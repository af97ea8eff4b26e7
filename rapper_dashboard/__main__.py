"""Run the API server: ``python -m rapper_dashboard``."""

import logging
import sys

import uvicorn

from rapper_dashboard.config import get_settings
from rapper_dashboard.database import Database
from rapper_dashboard.exceptions import StorageError

logger = logging.getLogger("rapper_dashboard")


def main() -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if not settings.database_url:
        logger.error("DATABASE_URL is not set; create a .env file with DATABASE_URL=...")
        return 1

    # Fail before binding the port if the store is unreachable
    database = Database(settings.database_url)
    try:
        database.connect()
    except StorageError:
        return 1
    finally:
        database.close()

    uvicorn.run("rapper_dashboard.main:app", host=settings.host, port=settings.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
