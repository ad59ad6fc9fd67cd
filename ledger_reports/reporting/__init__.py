"""
Ledger Reports - Reporting Module
Account hierarchy roll-up and report generators for trial balances, statements and aging
"""

from .aging import AgingReportGenerator
from .financial_statements import FinancialStatementsGenerator

__all__ = ['AgingReportGenerator', 'FinancialStatementsGenerator']
