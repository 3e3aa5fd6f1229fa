"""
Database connection utilities
"""
import psycopg2
from psycopg2.extras import RealDictCursor
from typing import Optional

from household_splits.utils.config import get_settings


def get_db_connection(
    host: Optional[str] = None,
    port: Optional[int] = None,
    database: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None
):
    """
    Get database connection using environment variables or provided values

    Rows come back as dicts (RealDictCursor), keyed by column name.

    Args:
        host: Database host (default: from DB_HOST env var)
        port: Database port (default: from DB_PORT env var)
        database: Database name (default: from DB_NAME env var)
        user: Database user (default: from DB_USER env var)
        password: Database password (default: from DB_PASSWORD env var)

    Returns:
        psycopg2 connection object
    """
    settings = get_settings()
    return psycopg2.connect(
        host=host or settings.db_host,
        port=port or settings.db_port,
        database=database or settings.db_name,
        user=user or settings.db_user,
        password=password or settings.db_password,
        cursor_factory=RealDictCursor,
    )


def test_connection() -> bool:
    """
    Test database connection

    Returns:
        True if connection successful, False otherwise
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT 1")
        cursor.close()
        conn.close()
        return True
    except psycopg2.Error as e:
        print(f"❌ Database connection failed: {e}")
        return False


# Not a pytest test
test_connection.__test__ = False
