import logging
from typing import List

import databases
import sqlalchemy

from core.config import settings

logger = logging.getLogger(__name__)

REQUIRED_DB_SETTINGS = ("DB_USER", "DB_PASSWORD", "DB_HOST", "DB_NAME")

def validate_database_config() -> List[str]:
    """Names of required database settings that are empty; logged as warnings."""
    missing = [name for name in REQUIRED_DB_SETTINGS if not getattr(settings, name)]
    for name in missing:
        logger.warning(f"⚠️ Database setting {name} is empty or not set")
    if not missing:
        logger.info(f"Database configured for {settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}")
    return missing

# Pool is opened in the app lifespan; creating the object does not connect
database = databases.Database(settings.DATABASE_URL, min_size=2, max_size=10)

metadata = sqlalchemy.MetaData()
