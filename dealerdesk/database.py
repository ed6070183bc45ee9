import os
import logging
import threading
from contextlib import contextmanager
from decimal import Decimal

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor


logger = logging.getLogger('dealerdesk.database')

# PostgreSQL connection - DATABASE_URL is required
DATABASE_URL = os.environ.get('DATABASE_URL')

if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required. Set it to your PostgreSQL connection string.")

# 2 Gunicorn workers x 8 max = 16 connections, leaves headroom for psql/admin
_connection_pool = None
_pool_lock = threading.Lock()

POOL_MIN_CONN = int(os.environ.get('DB_POOL_MIN_CONN', '2'))
POOL_MAX_CONN = int(os.environ.get('DB_POOL_MAX_CONN', '8'))
POOL_GETCONN_TIMEOUT = int(os.environ.get('DB_POOL_TIMEOUT', '10'))


def _get_pool():
    """Get or create the connection pool (lazy initialization, thread-safe)."""
    global _connection_pool
    if _connection_pool is None:
        with _pool_lock:
            if _connection_pool is None:
                _connection_pool = pool.ThreadedConnectionPool(
                    minconn=POOL_MIN_CONN,
                    maxconn=POOL_MAX_CONN,
                    dsn=DATABASE_URL,
                    keepalives=1,
                    keepalives_idle=30,
                    keepalives_interval=10,
                    keepalives_count=5,
                    connect_timeout=5,
                )
                logger.info(f'Connection pool created: min={POOL_MIN_CONN}, max={POOL_MAX_CONN}')
    return _connection_pool


def _getconn_with_timeout(timeout=None):
    """Get connection from pool with timeout.

    ThreadedConnectionPool.getconn() blocks forever when the pool is exhausted,
    so the call runs in a helper thread and gives up after `timeout` seconds.
    """
    if timeout is None:
        timeout = POOL_GETCONN_TIMEOUT

    result = [None]
    error = [None]

    def _get():
        try:
            result[0] = _get_pool().getconn()
        except Exception as e:
            error[0] = e

    t = threading.Thread(target=_get, daemon=True)
    t.start()
    t.join(timeout=timeout)

    if t.is_alive():
        raise psycopg2.OperationalError(
            f"Connection pool exhausted - timed out after {timeout}s waiting for available connection"
        )
    if error[0]:
        raise error[0]
    return result[0]


def get_db():
    """Get PostgreSQL database connection from pool.

    Validates connection health before returning. Stale connections are
    discarded and replaced, up to 3 attempts.
    """
    max_retries = 3
    last_error = None

    for attempt in range(max_retries):
        conn = _getconn_with_timeout()

        try:
            with conn.cursor() as cur:
                cur.execute('SELECT 1')
            conn.rollback()
            conn.autocommit = True
            return conn
        except (psycopg2.OperationalError, psycopg2.InterfaceError, psycopg2.DatabaseError) as e:
            last_error = e
            logger.warning(f'Stale connection discarded (attempt {attempt + 1}/{max_retries}): {e}')
            try:
                _get_pool().putconn(conn, close=True)
            except Exception:
                logger.debug('Failed to close stale connection', exc_info=True)

    raise psycopg2.OperationalError(f"Failed to get valid connection after {max_retries} attempts: {last_error}")


def release_db(conn):
    """Return connection to pool.

    Closed or broken connections are closed instead of being put back.
    """
    if conn and _connection_pool:
        try:
            if conn.closed:
                _connection_pool.putconn(conn, close=True)
                return
            # psycopg2 refuses autocommit changes inside an open transaction
            conn.rollback()
            conn.autocommit = False
            _connection_pool.putconn(conn)
        except Exception:
            logger.warning('Connection in bad state, closing it', exc_info=True)
            try:
                _connection_pool.putconn(conn, close=True)
            except Exception:
                logger.debug('Failed to close broken connection', exc_info=True)


@contextmanager
def transaction():
    """Context manager for atomic database transactions.

    Usage:
        with transaction() as conn:
            cursor = get_cursor(conn)
            cursor.execute('UPDATE arb_records ...')
            cursor.execute('UPDATE vehicles ...')
        # Auto-commits on success, auto-rollbacks on exception
    """
    conn = get_db()
    try:
        conn.autocommit = False
        yield conn
        conn.commit()
        logger.debug('Transaction committed successfully')
    except Exception as e:
        conn.rollback()
        logger.warning(f'Transaction rolled back: {e}')
        raise
    finally:
        release_db(conn)


_ping_cache = {'ok': False, 'ts': 0}

def ping_db():
    """Ping the database.

    Caches a successful result for 5 seconds so frequent health checks don't
    churn the pool. Returns True if successful, False otherwise.
    """
    import time
    now = time.time()
    if _ping_cache['ok'] and (now - _ping_cache['ts']) < 5:
        return True

    try:
        conn = get_db()
        try:
            with conn.cursor() as cur:
                cur.execute('SELECT 1')
            _ping_cache['ok'] = True
            _ping_cache['ts'] = now
            return True
        finally:
            release_db(conn)
    except Exception:
        logger.warning('Database ping failed', exc_info=True)
        _ping_cache['ok'] = False
        return False


@contextmanager
def get_db_connection():
    """Context manager for database connections - auto-releases to pool."""
    conn = get_db()
    try:
        yield conn
    finally:
        release_db(conn)


def get_cursor(conn):
    """Get cursor with dict row factory."""
    return conn.cursor(cursor_factory=RealDictCursor)


def init_db():
    """Initialize database tables and indexes.

    Delegates to migrations.init_schema.create_schema(). Skips if the
    schema already exists (checks for the 'vehicles' table).
    """
    with get_db_connection() as conn:
        cursor = get_cursor(conn)
        cursor.execute("""
            SELECT EXISTS (
                SELECT FROM information_schema.tables
                WHERE table_schema = 'public' AND table_name = 'vehicles'
            )
        """)
        exists = cursor.fetchone()['exists']
    if exists:
        logger.info('Database schema already initialized - skipping init_db()')
        return

    from migrations.init_schema import create_schema
    with transaction() as conn:
        create_schema(conn, get_cursor(conn))
    logger.info('Database schema initialized successfully')


def dict_from_row(row):
    """Convert a database row to a JSON-ready dictionary.

    Dates and datetimes become ISO strings, NUMERIC columns become floats.
    """
    if row is None:
        return None
    result = dict(row)
    for key, value in result.items():
        if isinstance(value, Decimal):
            result[key] = float(value)
        elif hasattr(value, 'isoformat'):
            result[key] = value.isoformat()
    return result
