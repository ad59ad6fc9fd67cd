#!/usr/bin/env python3
"""
Registry Database
The service's own storage for tenant connection profiles

SQLite in development, PostgreSQL (pooled) in production. Tenant ledger
databases are never opened here; see tenant_database.py.
"""

import sqlite3
import time
import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional, Sequence

import psycopg2
import psycopg2.extras
import psycopg2.pool

from ..config.settings import DATABASE_CONFIG

logger = logging.getLogger(__name__)

FETCH_NONE, FETCH_ONE, FETCH_ALL = 'none', 'one', 'all'


class RegistryDatabase:
    """Small connection manager for the registry tables"""

    def __init__(self, db_type: Optional[str] = None, sqlite_path: Optional[str] = None):
        self.db_type = (db_type or DATABASE_CONFIG['DB_TYPE']).lower()
        self.sqlite_path = sqlite_path or DATABASE_CONFIG['SQLITE_DB_PATH']
        self.pool = None
        if self.db_type == 'postgresql':
            self._open_pool()

    def _pg_params(self) -> Dict[str, Any]:
        socket_path = DATABASE_CONFIG['DB_SOCKET_PATH']
        params = {
            'host': socket_path or DATABASE_CONFIG['DB_HOST'],
            'port': DATABASE_CONFIG['DB_PORT'],
            'dbname': DATABASE_CONFIG['DB_NAME'],
            'user': DATABASE_CONFIG['DB_USER'],
            'password': DATABASE_CONFIG['DB_PASSWORD'],
            'sslmode': 'disable' if socket_path else DATABASE_CONFIG['DB_SSL_MODE'],
        }
        return {key: value for key, value in params.items() if value is not None}

    def _open_pool(self):
        params = self._pg_params()
        if not params.get('host') or not params.get('user'):
            logger.warning("Registry PostgreSQL credentials not configured - connection pool disabled")
            return
        try:
            self.pool = psycopg2.pool.ThreadedConnectionPool(
                DATABASE_CONFIG['POOL_MIN_CONN'], DATABASE_CONFIG['POOL_MAX_CONN'], **params
            )
            logger.info("Registry connection pool initialized")
        except psycopg2.Error as e:
            logger.warning(f"Failed to initialize registry connection pool: {e}")
            self.pool = None

    def placeholders(self, query: str) -> str:
        """Registry statements are written with %s; SQLite wants ?"""
        if self.db_type == 'postgresql':
            return query
        return query.replace('%s', '?')

    @contextmanager
    def connection(self):
        if self.db_type == 'postgresql':
            pooled = self.pool is not None
            conn = self.pool.getconn() if pooled else psycopg2.connect(**self._pg_params())
            try:
                yield conn
            finally:
                if pooled:
                    self.pool.putconn(conn)
                else:
                    conn.close()
        else:
            conn = sqlite3.connect(self.sqlite_path, timeout=60.0, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA busy_timeout=60000")
            try:
                yield conn
            finally:
                conn.close()

    def _cursor(self, conn):
        if self.db_type == 'postgresql':
            return conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
        return conn.cursor()

    @contextmanager
    def transaction(self):
        """Cursor whose statements commit together, or roll back on any error"""
        with self.connection() as conn:
            cursor = self._cursor(conn)
            try:
                yield cursor
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.warning(f"Registry transaction rolled back: {e}")
                raise
            finally:
                cursor.close()

    def run(self, query: str, params: Sequence[Any] = (), fetch: str = FETCH_NONE):
        """
        Execute one registry statement

        Returns the first row, all rows or the affected row count depending on ``fetch``.
        """
        with self.transaction() as cursor:
            cursor.execute(self.placeholders(query), tuple(params))
            if fetch == FETCH_ONE:
                return cursor.fetchone()
            if fetch == FETCH_ALL:
                return cursor.fetchall()
            return cursor.rowcount

    def health_check(self) -> Dict[str, Any]:
        started = time.time()
        try:
            row = self.run("SELECT 1 AS health_check", fetch=FETCH_ONE)
        except Exception as e:
            logger.error(f"Registry health check failed: {e}")
            return {'status': 'unhealthy', 'db_type': self.db_type, 'error': str(e)}

        healthy = row is not None and row['health_check'] == 1
        return {
            'status': 'healthy' if healthy else 'unhealthy',
            'db_type': self.db_type,
            'pooled': self.pool is not None,
            'response_time_ms': round((time.time() - started) * 1000, 2),
        }

    def close(self):
        if self.pool is not None:
            self.pool.closeall()
            self.pool = None
            logger.info("Registry connection pool closed")


# Registry used when none is passed in explicitly
registry_db = RegistryDatabase()
