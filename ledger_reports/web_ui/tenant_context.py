#!/usr/bin/env python3
"""
Tenant Context for Ledger Reports
Works out which tenant a request belongs to

Lookup order: the value already pinned on ``g`` for this request, the Flask
session, the X-Tenant-ID header, then the DEFAULT_TENANT_ID setting (unset
unless configured). No tenant means the request is refused downstream with
TenantNotConfigured.
"""

import logging
from typing import Optional

from flask import g, request, session

from ..config.settings import REPORT_CONFIG

logger = logging.getLogger(__name__)

TENANT_HEADER = 'X-Tenant-ID'
CURRENT_TENANT_HEADER = 'X-Current-Tenant'


def _from_request() -> Optional[str]:
    pinned = getattr(g, 'tenant_id', None)
    if pinned:
        return pinned

    candidate = session.get('tenant_id') or request.headers.get(TENANT_HEADER, '')
    candidate = str(candidate).strip()
    return candidate or None


def get_current_tenant_id() -> Optional[str]:
    """Identifier of the calling tenant, or None when it cannot be determined"""
    try:
        tenant_id = _from_request()
    except RuntimeError:
        # Outside of a request (CLI, background jobs)
        return REPORT_CONFIG['DEFAULT_TENANT_ID']

    tenant_id = tenant_id or REPORT_CONFIG['DEFAULT_TENANT_ID']
    if tenant_id:
        g.tenant_id = tenant_id
    return tenant_id


def init_tenant_context(app):
    """Pin the tenant on ``g`` before each request and echo it back in a response header"""

    @app.before_request
    def pin_tenant():
        tenant_id = get_current_tenant_id()
        logger.debug(f"{request.method} {request.path} | tenant: {tenant_id}")

    @app.after_request
    def echo_tenant(response):
        tenant_id = getattr(g, 'tenant_id', None)
        if tenant_id:
            response.headers[CURRENT_TENANT_HEADER] = tenant_id
        return response

    logger.info("Tenant context initialized for Flask app")
