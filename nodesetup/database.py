"""Connectivity check for the data-node PostgreSQL database."""
import psycopg2

from nodesetup.errors import DatabaseConnectionError
from nodesetup.settings import SQLCredentials
from nodesetup.utils import log_action, log_debug


def check_sql_connection(credentials: SQLCredentials, timeout: int = 10) -> None:
    """Open a connection with the given credentials, raising DatabaseConnectionError on failure."""
    log_action(f"Connecting to {credentials.user}@{credentials.host}:{credentials.port}/{credentials.database_name}")
    try:
        conn = psycopg2.connect(
            host=credentials.host,
            port=credentials.port,
            dbname=credentials.database_name,
            user=credentials.user,
            password=credentials.password,
            connect_timeout=timeout,
        )
    except psycopg2.Error as e:
        raise DatabaseConnectionError(str(e).strip()) from e

    try:
        with conn.cursor() as cur:
            cur.execute("SELECT extversion FROM pg_extension WHERE extname = 'timescaledb'")
            row = cur.fetchone()
    except psycopg2.Error as e:
        raise DatabaseConnectionError(str(e).strip()) from e
    finally:
        conn.close()

    if row is None:
        log_action("WARNING: the timescaledb extension is not installed in this database.")
    else:
        log_debug(f"timescaledb {row[0]} found")
