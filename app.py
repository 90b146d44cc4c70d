import sys

from loguru import logger

from calcflow.api import create_app
from calcflow.config import settings
from calcflow.stores.database import Database

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])

logger.info(f"Initializing calculation API with database {settings.database_url}")
database = Database(settings.database_url, echo=settings.database_echo)
database.create_tables()
app = create_app(storage=database)
