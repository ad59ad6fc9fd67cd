"""
Ledger Reports - Multi-Tenant Ledger Reporting Service
Hierarchical trial balances and account statements over each tenant's own database
"""

from .config.settings import MODULE_NAME, MODULE_VERSION

__version__ = MODULE_VERSION
