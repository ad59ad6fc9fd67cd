#!/usr/bin/env python3
"""
Ledger Reporting API Endpoints
Flask routes for trial balances, account statements and aging reports

Every route resolves the calling tenant's connection profile, runs one report
against that tenant's own database and answers with the common envelope:

    {success, message, data, fromDate, toDate, totalDebit, totalCredit, processingTimeMs, ...}

Failures answer with success=false, no data and the status code of the error.
"""

import logging
from typing import Callable, Optional

from flask import request, jsonify

from ..config.settings import REPORT_CONFIG
from ..exceptions import ConnectionFailed, ReportingError
from ..reporting.aging import AgingReportGenerator
from ..reporting.assembler import AssembledReport, ReportTimer
from ..reporting.financial_statements import FinancialStatementsGenerator
from ..reporting.periods import parse_report_date
from .tenant_context import get_current_tenant_id
from .tenant_database import TenantQueryExecutor
from .tenant_registry import ConnectionProfile, TenantRegistry

logger = logging.getLogger(__name__)


def _flag(name: str, default: bool = False) -> bool:
    value = request.args.get(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _date_arg(name: str):
    return parse_report_date(request.args.get(name), name)


def _failure(message: str, status_code: int, timer: ReportTimer):
    return jsonify({
        'success': False,
        'message': message,
        'data': None,
        'processingTimeMs': timer.elapsed_ms,
    }), status_code


def register_reporting_routes(app, registry: Optional[TenantRegistry] = None,
                              executor: Optional[TenantQueryExecutor] = None):
    """Register all ledger reporting routes with the Flask app"""

    registry = registry or TenantRegistry()
    executor = executor or TenantQueryExecutor()

    def run_report(title: str, build: Callable[[ConnectionProfile], AssembledReport]):
        """Resolve the tenant, build the report and turn the outcome into a response"""
        timer = ReportTimer()
        tenant_id = get_current_tenant_id()
        try:
            profile = registry.resolve(tenant_id)
            report = build(profile)
            registry.mark_connected(profile.tenant_id)
            logger.info(f"{title} for tenant {tenant_id}: {len(report.rows)} rows in {timer.elapsed_ms} ms")
            return jsonify(report.to_dict(f"{title} retrieved successfully", timer.elapsed_ms))

        except ConnectionFailed as e:
            logger.error(f"Error generating {title.lower()} for tenant {tenant_id}: {e}")
            registry.record_failure(tenant_id, str(e))
            return _failure(e.public_message, e.status_code, timer)

        except ReportingError as e:
            logger.warning(f"{title} failed for tenant {tenant_id}: {e}")
            return _failure(e.public_message, e.status_code, timer)

        except Exception as e:
            logger.exception(f"Unexpected error generating {title.lower()} for tenant {tenant_id}: {e}")
            return _failure("Internal server error", 500, timer)

    def statements(profile):
        return FinancialStatementsGenerator(profile, executor)

    @app.route('/api/reports/trial-balance', methods=['GET'])
    def api_trial_balance():
        """
        Hierarchical trial balance

        GET Parameters:
            - fromDate / toDate: Period (YYYY-MM-DD or MM/DD/YYYY); default from the postings
            - fromAccount / uptoAccount: Inclusive account code range; default all accounts
            - includeZero: Keep accounts with a zero balance (true/false)
        """
        def build(profile):
            return statements(profile).generate_trial_balance(
                from_date=_date_arg('fromDate'),
                to_date=_date_arg('toDate'),
                from_account=request.args.get('fromAccount'),
                upto_account=request.args.get('uptoAccount'),
                include_zero=_flag('includeZero', REPORT_CONFIG['INCLUDE_ZERO_BALANCES']),
            )
        return run_report("Trial Balance", build)

    @app.route('/api/reports/three-trial-balance', methods=['GET'])
    def api_three_trial_balance():
        """Opening, period movement and closing balance per account"""
        def build(profile):
            return statements(profile).generate_three_column_trial_balance(
                from_date=_date_arg('fromDate'),
                to_date=_date_arg('toDate'),
                from_account=request.args.get('fromAccount'),
                upto_account=request.args.get('uptoAccount'),
                include_zero=_flag('includeZero', REPORT_CONFIG['INCLUDE_ZERO_BALANCES']),
            )
        return run_report("3 Trial Balance", build)

    @app.route('/api/reports/monthly-account-balance', methods=['GET'])
    def api_monthly_account_balance():
        def build(profile):
            return statements(profile).generate_monthly_account_balance(
                from_date=_date_arg('fromDate'),
                to_date=_date_arg('toDate'),
                from_account=request.args.get('fromAccount'),
                upto_account=request.args.get('uptoAccount'),
                include_zero=_flag('includeZero', True),
            )
        return run_report("Monthly Account Balance", build)

    @app.route('/api/reports/ledger', methods=['GET'])
    def api_account_ledger():
        """
        Account ledger with running balance

        GET Parameters:
            - accountCode: Account to list (required)
            - fromDate / toDate: Period; default from the account's postings
        """
        def build(profile):
            return statements(profile).generate_account_ledger(
                account_code=request.args.get('accountCode'),
                from_date=_date_arg('fromDate'),
                to_date=_date_arg('toDate'),
            )
        return run_report("Account Ledger", build)

    @app.route('/api/reports/account-position', methods=['GET'])
    def api_account_position():
        def build(profile):
            return statements(profile).generate_account_position(
                account_code=request.args.get('accountCode'),
                upto_date=_date_arg('uptoDate'),
            )
        return run_report("Account position", build)

    @app.route('/api/reports/cash-book', methods=['GET'])
    def api_cash_book():
        def build(profile):
            return statements(profile).generate_cash_book(
                from_date=_date_arg('fromDate'),
                to_date=_date_arg('toDate'),
            )
        return run_report("Cash Book", build)

    @app.route('/api/reports/journal-book', methods=['GET'])
    def api_journal_book():
        """Journal vouchers grouped by voucher with per-voucher totals"""
        def build(profile):
            return statements(profile).generate_journal_book(
                from_date=_date_arg('fromDate'),
                to_date=_date_arg('toDate'),
            )
        return run_report("Journal Book", build)

    @app.route('/api/reports/transaction-journal', methods=['GET'])
    def api_transaction_journal():
        """
        Vouchers of the selected document types

        GET Parameters:
            - documentTypes: Voucher prefixes, comma separated or repeated (e.g. SV,JV,CP); required
            - fromDate / toDate: Period; default from the postings
        """
        def build(profile):
            return statements(profile).generate_transaction_journal(
                document_types=','.join(request.args.getlist('documentTypes')),
                from_date=_date_arg('fromDate'),
                to_date=_date_arg('toDate'),
            )
        return run_report("Transaction Journal", build)

    def aging_route(title: str, method_name: str):
        def build(profile):
            generator = AgingReportGenerator(profile, executor)
            return getattr(generator, method_name)(
                as_on_date=_date_arg('asOnDate'),
                from_account=request.args.get('fromAccount'),
                upto_account=request.args.get('uptoAccount'),
                report_type=request.args.get('reportType'),
            )
        return run_report(title, build)

    @app.route('/api/reports/customer-aging', methods=['GET'])
    def api_customer_aging():
        """
        Receivables outstanding as on a date

        GET Parameters:
            - asOnDate: Aging date; default today
            - fromAccount / uptoAccount: Customer account range
            - reportType: summary or detailed (default)
        """
        return aging_route("Customer Aging Report", 'customer_aging')

    @app.route('/api/reports/supplier-aging', methods=['GET'])
    def api_supplier_aging():
        return aging_route("Supplier Aging Report", 'supplier_aging')

    @app.route('/api/tenant/connection', methods=['GET'])
    def api_tenant_connection():
        """Open the calling tenant's database and report whether it answers"""
        timer = ReportTimer()
        tenant_id = get_current_tenant_id()
        try:
            profile = registry.resolve(tenant_id)
            result = executor.test_connection(profile)
            registry.mark_connected(profile.tenant_id)
            return jsonify({
                'success': True,
                'message': 'Connection successful',
                'data': result,
                'processingTimeMs': timer.elapsed_ms,
            })
        except ConnectionFailed as e:
            registry.record_failure(tenant_id, str(e))
            return _failure(e.public_message, e.status_code, timer)
        except ReportingError as e:
            return _failure(e.public_message, e.status_code, timer)
        except Exception as e:
            logger.exception(f"Unexpected error testing connection for tenant {tenant_id}: {e}")
            return _failure("Internal server error", 500, timer)

    logger.info("Ledger reporting routes registered")
