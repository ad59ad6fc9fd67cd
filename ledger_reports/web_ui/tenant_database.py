#!/usr/bin/env python3
"""
Tenant Database Access
Opens the calling tenant's own ledger database and runs report statements against it

The engine is picked per call from the tenant's ConnectionProfile, so one service
process serves SQLite-file tenants and PostgreSQL-server tenants side by side.
Statements are written once with named placeholders (``:from_date``) and every
adapter binds them in its driver's parameter style; values are never spliced
into SQL text.

Each report opens its own connection (TenantSession) and closes it when done.
Tenant connections are never pooled or shared between requests.
"""

import os
import re
import sqlite3
import time
import logging
from collections.abc import Mapping
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, Generator, List, Optional, Sequence, Tuple
from urllib.request import pathname2url

import psycopg2
import psycopg2.errors

from ..config.settings import REPORT_CONFIG
from ..exceptions import ConnectionFailed, QuerySyntaxError, QueryTimeout
from .tenant_registry import ConnectionProfile, ENGINE_POSTGRESQL, ENGINE_SQLITE

logger = logging.getLogger(__name__)

NAMED_PARAMETER = re.compile(r"(?<![:\w]):([A-Za-z_][A-Za-z0-9_]*)")

# SQLite VM instructions between deadline checks
SQLITE_PROGRESS_STEPS = 10000


class Row(Mapping):
    """
    One result row: ordered, read-only, case-insensitive column lookup

    Engines disagree on the casing of unquoted aliases, so ``row['AccCode']`` and
    ``row['acccode']`` find the same column. Integer indexes read by position.
    """

    __slots__ = ('_names', '_values', '_positions')

    def __init__(self, names: Sequence[str], values: Sequence[Any]):
        self._names = tuple(names)
        self._values = tuple(values)
        self._positions = {}
        for position, name in enumerate(self._names):
            self._positions.setdefault(name.lower(), position)

    def __getitem__(self, key):
        if isinstance(key, int):
            return self._values[key]
        if not isinstance(key, str):
            raise KeyError(key)
        try:
            return self._values[self._positions[key.lower()]]
        except KeyError:
            raise KeyError(key) from None

    def __iter__(self):
        return iter(self._names)

    def __len__(self):
        return len(self._names)

    def __repr__(self):
        return f"Row({dict(zip(self._names, self._values))!r})"


class EngineAdapter:
    """Driver-specific connect, bind and execute for one engine kind"""

    engine = None

    def connect(self, profile: ConnectionProfile):
        raise NotImplementedError

    def bind(self, sql: str, params: Dict[str, Any]) -> Tuple[str, Any]:
        raise NotImplementedError

    def fetch(self, connection, sql: str, params: Dict[str, Any],
              timeout: Optional[float], profile: ConnectionProfile) -> List[Row]:
        raise NotImplementedError

    def close(self, connection):
        try:
            connection.close()
        except Exception as e:
            logger.warning(f"Error closing {self.engine} connection: {e}")


def _rows(cursor) -> List[Row]:
    names = [column[0] for column in (cursor.description or ())]
    return [Row(names, values) for values in cursor.fetchall()]


def _syntax_error(profile: ConnectionProfile, sql: str, error: Exception) -> QuerySyntaxError:
    logger.error(f"Query rejected by {profile.describe()}: {error}\n{sql}")
    return QuerySyntaxError(f"Query rejected by tenant {profile.tenant_id}: {error}")


def _timeout_error(profile: ConnectionProfile, timeout: Optional[float]) -> QueryTimeout:
    logger.warning(f"Query exceeded {timeout}s on {profile.describe()}")
    return QueryTimeout(f"Query exceeded {timeout}s for tenant {profile.tenant_id}")


class SQLiteAdapter(EngineAdapter):
    """Embedded file databases, opened read-only"""

    engine = ENGINE_SQLITE

    def connect(self, profile: ConnectionProfile):
        if not profile.database:
            raise ConnectionFailed(f"Tenant {profile.tenant_id} has no SQLite database path")

        # mode=ro refuses to create a missing file, so a bad path fails here
        uri = f"file:{pathname2url(os.path.abspath(profile.database))}?mode=ro"
        try:
            connection = sqlite3.connect(uri, uri=True, timeout=profile.timeout_seconds, check_same_thread=False)
            connection.execute("SELECT count(*) FROM sqlite_master").fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to open {profile.describe()}: {e}")
            raise ConnectionFailed(f"Cannot open SQLite database for tenant {profile.tenant_id}: {e}")
        return connection

    def bind(self, sql: str, params: Dict[str, Any]) -> Tuple[str, Any]:
        # sqlite3 takes :name natively; dates go in as ISO text to match stored values
        bound = {}
        for name, value in params.items():
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            bound[name] = value
        return sql, bound

    def fetch(self, connection, sql, params, timeout, profile):
        deadline = time.monotonic() + timeout if timeout else None
        if deadline is not None:
            connection.set_progress_handler(lambda: 1 if time.monotonic() > deadline else 0, SQLITE_PROGRESS_STEPS)

        cursor = connection.cursor()
        try:
            cursor.execute(sql, params)
            return _rows(cursor)
        except sqlite3.OperationalError as e:
            if 'interrupted' in str(e).lower():
                raise _timeout_error(profile, timeout)
            if 'locked' in str(e).lower():
                raise _timeout_error(profile, timeout)
            raise _syntax_error(profile, sql, e)
        except sqlite3.ProgrammingError as e:
            raise _syntax_error(profile, sql, e)
        except sqlite3.DatabaseError as e:
            # "file is not a database" only shows up on the first real statement
            logger.error(f"Unreadable database {profile.describe()}: {e}")
            raise ConnectionFailed(f"Tenant {profile.tenant_id} database is unreadable: {e}")
        finally:
            cursor.close()
            connection.set_progress_handler(None, 0)


class PostgreSQLAdapter(EngineAdapter):
    """Networked PostgreSQL servers, read-only autocommit sessions"""

    engine = ENGINE_POSTGRESQL

    def connect(self, profile: ConnectionProfile):
        try:
            connection = psycopg2.connect(
                host=profile.host,
                port=profile.port or 5432,
                dbname=profile.database,
                user=profile.user,
                password=profile.password,
                connect_timeout=profile.timeout_seconds,
            )
            connection.set_session(readonly=True, autocommit=True)
        except psycopg2.Error as e:
            # Driver messages name host and user only; the password never reaches the log
            logger.error(f"Failed to open {profile.describe()}: {e}")
            raise ConnectionFailed(f"Cannot connect to PostgreSQL for tenant {profile.tenant_id}")
        return connection

    def bind(self, sql: str, params: Dict[str, Any]) -> Tuple[str, Any]:
        # pyformat: a literal % has to be doubled once parameters are in play
        return NAMED_PARAMETER.sub(r"%(\1)s", sql.replace('%', '%%')), dict(params)

    def fetch(self, connection, sql, params, timeout, profile):
        cursor = connection.cursor()
        try:
            if timeout:
                cursor.execute("SET statement_timeout = %s", (int(timeout * 1000),))
            cursor.execute(sql, params)
            return _rows(cursor)
        except psycopg2.errors.QueryCanceled:
            raise _timeout_error(profile, timeout)
        except (psycopg2.ProgrammingError, psycopg2.DataError) as e:
            raise _syntax_error(profile, sql, e)
        except psycopg2.OperationalError as e:
            logger.error(f"Connection lost to {profile.describe()}: {e}")
            raise ConnectionFailed(f"Connection to tenant {profile.tenant_id} was lost")
        finally:
            cursor.close()


ENGINE_ADAPTERS = {
    ENGINE_SQLITE: SQLiteAdapter(),
    ENGINE_POSTGRESQL: PostgreSQLAdapter(),
}


class TenantSession:
    """An open connection to one tenant database for the life of one report"""

    def __init__(self, adapter: EngineAdapter, connection, profile: ConnectionProfile,
                 timeout: Optional[float] = None):
        self.adapter = adapter
        self.connection = connection
        self.profile = profile
        self.timeout = timeout
        self.deadline = time.monotonic() + timeout if timeout else None

    def _remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        remaining = self.deadline - time.monotonic()
        if remaining <= 0:
            raise _timeout_error(self.profile, self.timeout)
        return remaining

    def query(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Row]:
        """Run one statement; the session's overall deadline bounds it"""
        bound_sql, bound_params = self.adapter.bind(sql, params or {})
        return self.adapter.fetch(self.connection, bound_sql, bound_params, self._remaining(), self.profile)

    def query_one(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Optional[Row]:
        rows = self.query(sql, params)
        return rows[0] if rows else None


class TenantQueryExecutor:
    """Picks the engine adapter for a profile and hands out tenant sessions"""

    def __init__(self, adapters: Optional[Dict[str, EngineAdapter]] = None,
                 query_timeout: Optional[float] = None):
        self.adapters = adapters if adapters is not None else ENGINE_ADAPTERS
        self.query_timeout = query_timeout if query_timeout is not None else REPORT_CONFIG['QUERY_TIMEOUT_SECONDS']

    def adapter_for(self, profile: ConnectionProfile) -> EngineAdapter:
        adapter = self.adapters.get(profile.engine)
        if adapter is None:
            raise ConnectionFailed(f"Database type {profile.engine!r} is not supported")
        return adapter

    @contextmanager
    def session(self, profile: ConnectionProfile, timeout: Optional[float] = None) -> Generator[TenantSession, None, None]:
        adapter = self.adapter_for(profile)
        connection = adapter.connect(profile)
        try:
            yield TenantSession(adapter, connection, profile, timeout if timeout is not None else self.query_timeout)
        finally:
            adapter.close(connection)

    def execute(self, profile: ConnectionProfile, sql: str, params: Optional[Dict[str, Any]] = None,
                timeout: Optional[float] = None) -> List[Row]:
        """Open, run a single statement, close"""
        with self.session(profile, timeout) as session:
            return session.query(sql, params)

    def test_connection(self, profile: ConnectionProfile) -> Dict[str, Any]:
        """Open the tenant database and run a trivial statement"""
        start_time = time.time()
        rows = self.execute(profile, "SELECT 1 AS connection_check")
        return {
            'engine': profile.engine,
            'ok': bool(rows) and rows[0][0] == 1,
            'response_time_ms': round((time.time() - start_time) * 1000, 2),
        }
