#!/usr/bin/env python3
"""
Tenant Connection Registry
Resolves a tenant identifier to the connection profile of its own ledger database

Profiles are stored in the service's registry database (see database.py) and are
read on every request; nothing here caches a credential between requests.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..config.settings import REPORT_CONFIG
from ..exceptions import TenantNotConfigured
from .database import FETCH_ONE, RegistryDatabase, registry_db

logger = logging.getLogger(__name__)

ENGINE_SQLITE = 'sqlite'
ENGINE_POSTGRESQL = 'postgresql'
SUPPORTED_ENGINES = (ENGINE_SQLITE, ENGINE_POSTGRESQL)

PROFILE_COLUMNS = "tenant_id, engine, host, port, database_name, db_user, db_password, timeout_seconds"


@dataclass(frozen=True)
class ConnectionProfile:
    """
    Where one tenant's ledger lives

    For the embedded engine ``database`` is the file path and host/port are unused.
    The password is excluded from repr() so a profile can be logged safely.
    """
    tenant_id: str
    engine: str
    database: str
    host: str = ''
    port: Optional[int] = None
    user: str = ''
    password: str = field(default='', repr=False)
    timeout_seconds: int = REPORT_CONFIG['CONNECT_TIMEOUT_SECONDS']

    def describe(self) -> str:
        if self.engine == ENGINE_SQLITE:
            return f"{self.engine} database {self.database} (tenant {self.tenant_id})"
        port = f":{self.port}" if self.port else ''
        return f"{self.engine} database {self.database} on {self.host}{port} as {self.user or '?'} (tenant {self.tenant_id})"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ConnectionProfile':
        return cls(
            tenant_id=row['tenant_id'],
            engine=(row.get('engine') or '').lower(),
            database=row.get('database_name') or '',
            host=row.get('host') or '',
            port=int(row['port']) if row.get('port') else None,
            user=row.get('db_user') or '',
            password=row.get('db_password') or '',
            timeout_seconds=int(row.get('timeout_seconds') or REPORT_CONFIG['CONNECT_TIMEOUT_SECONDS']),
        )


class TenantRegistry:
    """Reads and maintains tenant connection profiles in the registry database"""

    def __init__(self, db: Optional[RegistryDatabase] = None):
        self.db = db or registry_db

    def init_schema(self):
        """Create the tenant_connections table if it does not exist"""
        self.db.run("""
            CREATE TABLE IF NOT EXISTS tenant_connections (
                tenant_id VARCHAR(100) PRIMARY KEY,
                engine VARCHAR(20) NOT NULL,
                host VARCHAR(255) DEFAULT '',
                port INTEGER,
                database_name VARCHAR(500) NOT NULL,
                db_user VARCHAR(100) DEFAULT '',
                db_password VARCHAR(255) DEFAULT '',
                timeout_seconds INTEGER DEFAULT 30,
                is_active INTEGER DEFAULT 1,
                last_connected_at VARCHAR(40),
                last_error TEXT,
                created_at VARCHAR(40)
            )
        """)
        logger.info("Tenant registry schema ready")

    def resolve(self, tenant_id: Optional[str]) -> ConnectionProfile:
        """Return the active profile for ``tenant_id`` or raise TenantNotConfigured"""
        if not tenant_id:
            raise TenantNotConfigured(tenant_id)

        row = self.db.run(
            f"SELECT {PROFILE_COLUMNS} FROM tenant_connections WHERE tenant_id = %s AND is_active = 1",
            (tenant_id,),
            fetch=FETCH_ONE,
        )
        if not row:
            logger.info(f"No active connection profile for tenant {tenant_id}")
            raise TenantNotConfigured(tenant_id)

        return ConnectionProfile.from_row(dict(row))

    def register(self, profile: ConnectionProfile, active: bool = True):
        """Insert or replace a tenant's connection profile"""
        if profile.engine not in SUPPORTED_ENGINES:
            raise ValueError(f"Unsupported engine {profile.engine!r}; expected one of {SUPPORTED_ENGINES}")

        with self.db.transaction() as cursor:
            cursor.execute(self.db.placeholders("DELETE FROM tenant_connections WHERE tenant_id = %s"),
                           (profile.tenant_id,))
            cursor.execute(
                self.db.placeholders(f"""
                    INSERT INTO tenant_connections ({PROFILE_COLUMNS}, is_active, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """),
                (
                    profile.tenant_id, profile.engine, profile.host, profile.port, profile.database,
                    profile.user, profile.password, profile.timeout_seconds, 1 if active else 0,
                    datetime.utcnow().isoformat(),
                ),
            )
        logger.info(f"Registered connection profile: {profile.describe()}")

    def deactivate(self, tenant_id: str) -> int:
        return self.db.run("UPDATE tenant_connections SET is_active = 0 WHERE tenant_id = %s", (tenant_id,))

    def mark_connected(self, tenant_id: str):
        """Record a successful connection (observational only)"""
        try:
            self.db.run(
                "UPDATE tenant_connections SET last_connected_at = %s, last_error = NULL WHERE tenant_id = %s",
                (datetime.utcnow().isoformat(), tenant_id),
            )
        except Exception as e:
            logger.warning(f"Could not update last_connected_at for tenant {tenant_id}: {e}")

    def record_failure(self, tenant_id: str, message: str):
        """Keep the sanitized connection error on the tenant record"""
        try:
            self.db.run(
                "UPDATE tenant_connections SET last_error = %s WHERE tenant_id = %s",
                (message[:1000], tenant_id),
            )
        except Exception as e:
            logger.warning(f"Could not record connection failure for tenant {tenant_id}: {e}")

    def status(self, tenant_id: str) -> Optional[Dict[str, Any]]:
        """Connection bookkeeping for one tenant, without credentials"""
        row = self.db.run(
            """
            SELECT tenant_id, engine, host, port, database_name, is_active, last_connected_at, last_error
            FROM tenant_connections WHERE tenant_id = %s
            """,
            (tenant_id,),
            fetch=FETCH_ONE,
        )
        return dict(row) if row else None
