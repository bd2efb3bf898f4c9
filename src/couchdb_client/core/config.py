"""
Client configuration loaded from environment variables (and a .env file).

Modules log through logging.getLogger(__name__), so all client output sits
under the "couchdb_client" logger. Responses are logged at DEBUG; set
LOG_LEVEL=DEBUG (or pass level to setup_logging) to see every exchange.
"""
import os
import logging
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

PACKAGE_LOGGER = "couchdb_client"


class Config:
    """Centralized configuration loaded from environment variables."""

    # CouchDB
    COUCHDB_URL = os.getenv("COUCHDB_URL", "http://localhost:5984")
    COUCHDB_USER = os.getenv("COUCHDB_USER")
    COUCHDB_PASSWORD = os.getenv("COUCHDB_PASSWORD")
    COUCHDB_TIMEOUT = float(os.getenv("COUCHDB_TIMEOUT", "30"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def get_auth(cls) -> Optional[Tuple[str, str]]:
        """Get basic auth tuple for CouchDB, or None when credentials are not configured."""
        if cls.COUCHDB_USER and cls.COUCHDB_PASSWORD:
            return (cls.COUCHDB_USER, cls.COUCHDB_PASSWORD)
        return None


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure console logging for applications using the client.

    Args:
        level: Level name for the client's logger (defaults to Config.LOG_LEVEL)

    Returns:
        The "couchdb_client" package logger
    """
    level_name = (level or Config.LOG_LEVEL).upper()
    logging.basicConfig(format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    client_logger = logging.getLogger(PACKAGE_LOGGER)
    client_logger.setLevel(getattr(logging, level_name, logging.INFO))
    return client_logger
