"""
PostgreSQL connections

Used only when STORAGE_BACKEND=postgres. Every PostgresStorage operation
opens its connection through get_db_connection_with_retry().
"""
import time
import logging

import psycopg2
from psycopg2.extras import RealDictCursor

from .config import settings

logger = logging.getLogger(__name__)


def _connect():
    if not settings.DATABASE_URL:
        raise Exception("DATABASE_URL not configured")
    conn = psycopg2.connect(settings.DATABASE_URL, cursor_factory=RealDictCursor)
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
    return conn


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0):
    """
    Open a connection whose cursors return dict rows

    Args:
        max_retries: attempts before giving up (default: 3)
        retry_delay: wait before the second attempt, doubled after each failure

    Raises:
        psycopg2.OperationalError: the last failure, once every attempt failed
    """
    delay = retry_delay

    for attempt in range(1, max_retries + 1):
        try:
            return _connect()
        except psycopg2.OperationalError as e:
            logger.warning(f"Database connection failed ({attempt}/{max_retries}): {e}")
            if attempt == max_retries:
                logger.error("Giving up on database connection")
                raise
            time.sleep(delay)
            delay *= 2
