#!/usr/bin/env python3
"""
Ledger Reports Configuration
Environment-driven settings for the registry database, tenant queries and logging
"""

import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Module Configuration
MODULE_VERSION = "1.0.0"
MODULE_NAME = "Ledger Reports"

# Registry database (where tenant connection profiles live)
DATABASE_CONFIG = {
    'DB_TYPE': os.getenv('DB_TYPE', 'sqlite'),
    'SQLITE_DB_PATH': os.getenv('SQLITE_DB_PATH', 'tenant_registry.db'),
    'DB_HOST': os.getenv('DB_HOST', 'localhost'),
    'DB_PORT': os.getenv('DB_PORT', '5432'),
    'DB_NAME': os.getenv('DB_NAME', 'ledger_reports'),
    'DB_USER': os.getenv('DB_USER', 'postgres'),
    'DB_PASSWORD': os.getenv('DB_PASSWORD', ''),
    'DB_SSL_MODE': os.getenv('DB_SSL_MODE', 'prefer'),
    'DB_SOCKET_PATH': os.getenv('DB_SOCKET_PATH'),
    'POOL_MIN_CONN': int(os.getenv('DB_POOL_MIN_CONN', 1)),
    'POOL_MAX_CONN': int(os.getenv('DB_POOL_MAX_CONN', 10)),
}

# Tenant report execution
REPORT_CONFIG = {
    'QUERY_TIMEOUT_SECONDS': float(os.getenv('QUERY_TIMEOUT_SECONDS', 120)),
    'CONNECT_TIMEOUT_SECONDS': int(os.getenv('CONNECT_TIMEOUT_SECONDS', 30)),
    'ACCOUNT_CODE_GROUPS': os.getenv('ACCOUNT_CODE_GROUPS', '1-2-2-4'),
    'INCLUDE_ZERO_BALANCES': os.getenv('INCLUDE_ZERO_BALANCES', 'false').lower() == 'true',
    'DEFAULT_TENANT_ID': os.getenv('DEFAULT_TENANT_ID') or None,
}

# Flask
FLASK_CONFIG = {
    'SECRET_KEY': os.getenv('FLASK_SECRET_KEY', os.urandom(24).hex()),
    'DEBUG': os.getenv('FLASK_DEBUG', 'False').lower() == 'true',
    'PORT': int(os.getenv('PORT', 5002)),
}

# Logging Configuration
LOGGING_CONFIG = {
    'LEVEL': os.getenv('LOG_LEVEL', 'INFO'),
    'FORMAT': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
}
