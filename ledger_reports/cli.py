#!/usr/bin/env python3
"""
Ledger Reports - Operator Commands
Manage tenant connection profiles and run reports from the shell

Usage:
    ledger-reports init-registry
    ledger-reports register-tenant acme --engine sqlite --database /data/acme.db
    ledger-reports register-tenant beta --engine postgresql --host db.internal --database ledger --user report
    ledger-reports test-connection acme
    ledger-reports trial-balance acme --from-date 2024-01-01 --to-date 2024-12-31
"""

import os
import sys
import json
import argparse
import logging
from typing import List, Optional

from .config.settings import REPORT_CONFIG
from .exceptions import ReportingError
from .reporting.financial_statements import FinancialStatementsGenerator
from .reporting.periods import parse_report_date
from .web_ui.app_db import configure_logging
from .web_ui.tenant_database import TenantQueryExecutor
from .web_ui.tenant_registry import ConnectionProfile, SUPPORTED_ENGINES, TenantRegistry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='ledger-reports', description='Multi-tenant ledger reporting service')
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('init-registry', help='Create the tenant registry table')

    register = commands.add_parser('register-tenant', help='Add or replace a tenant connection profile')
    register.add_argument('tenant_id')
    register.add_argument('--engine', choices=SUPPORTED_ENGINES, required=True)
    register.add_argument('--database', required=True, help='Database name, or file path for sqlite')
    register.add_argument('--host', default='')
    register.add_argument('--port', type=int)
    register.add_argument('--user', default='')
    register.add_argument('--password-env', default='TENANT_DB_PASSWORD',
                          help='Environment variable holding the password (default: TENANT_DB_PASSWORD)')
    register.add_argument('--timeout', type=int, default=REPORT_CONFIG['CONNECT_TIMEOUT_SECONDS'])
    register.add_argument('--inactive', action='store_true', help='Store the profile without activating it')

    test = commands.add_parser('test-connection', help="Open a tenant's database and run a trivial query")
    test.add_argument('tenant_id')

    trial = commands.add_parser('trial-balance', help='Print a hierarchical trial balance as JSON')
    trial.add_argument('tenant_id')
    trial.add_argument('--from-date')
    trial.add_argument('--to-date')
    trial.add_argument('--from-account')
    trial.add_argument('--upto-account')
    trial.add_argument('--include-zero', action='store_true')

    return parser


def main(argv: Optional[List[str]] = None, registry: Optional[TenantRegistry] = None,
         executor: Optional[TenantQueryExecutor] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    registry = registry or TenantRegistry()
    executor = executor or TenantQueryExecutor()

    try:
        if args.command == 'init-registry':
            registry.init_schema()
            print("Tenant registry ready")

        elif args.command == 'register-tenant':
            profile = ConnectionProfile(
                tenant_id=args.tenant_id,
                engine=args.engine,
                database=args.database,
                host=args.host,
                port=args.port,
                user=args.user,
                password=os.getenv(args.password_env, ''),
                timeout_seconds=args.timeout,
            )
            registry.init_schema()
            registry.register(profile, active=not args.inactive)
            print(f"Registered {profile.describe()}")

        elif args.command == 'test-connection':
            profile = registry.resolve(args.tenant_id)
            result = executor.test_connection(profile)
            registry.mark_connected(profile.tenant_id)
            print(f"Connection OK: {profile.describe()} ({result['response_time_ms']} ms)")

        elif args.command == 'trial-balance':
            profile = registry.resolve(args.tenant_id)
            report = FinancialStatementsGenerator(profile, executor).generate_trial_balance(
                from_date=parse_report_date(args.from_date, 'fromDate'),
                to_date=parse_report_date(args.to_date, 'toDate'),
                from_account=args.from_account,
                upto_account=args.upto_account,
                include_zero=args.include_zero,
            )
            print(json.dumps(report.to_dict("Trial Balance retrieved successfully", 0), indent=2))

    except ReportingError as e:
        print(f"Error: {e.public_message}", file=sys.stderr)
        logger.debug(f"{args.command} failed: {e}")
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == '__main__':
    sys.exit(main())
