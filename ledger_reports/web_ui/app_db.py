#!/usr/bin/env python3
"""
Ledger Reports - Web Service
Flask application serving per-tenant ledger reports
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from flask import Flask, jsonify

from ..config.settings import FLASK_CONFIG, LOGGING_CONFIG, MODULE_NAME, MODULE_VERSION
from .reporting_api import register_reporting_routes
from .tenant_context import init_tenant_context
from .tenant_database import TenantQueryExecutor
from .tenant_registry import TenantRegistry

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, LOGGING_CONFIG['LEVEL'].upper(), logging.INFO),
        format=LOGGING_CONFIG['FORMAT'],
    )


def create_app(registry: Optional[TenantRegistry] = None,
               executor: Optional[TenantQueryExecutor] = None,
               config: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Build the Flask app

    Args:
        registry: Tenant connection registry (defaults to the configured registry database)
        executor: Tenant query executor (defaults to the built-in engine adapters)
        config: Extra Flask config values, e.g. TESTING
    """
    app = Flask(__name__)
    app.secret_key = FLASK_CONFIG['SECRET_KEY']
    # Month columns and row fields are emitted in insertion order
    app.json.sort_keys = False
    if config:
        app.config.update(config)

    registry = registry or TenantRegistry()
    try:
        registry.init_schema()
    except Exception as e:
        # The service still starts; report requests will fail until the registry is reachable
        logger.error(f"Could not initialize tenant registry schema: {e}")

    # Initialize multi-tenant context
    init_tenant_context(app)

    # Register ledger reporting routes
    register_reporting_routes(app, registry=registry, executor=executor)

    @app.route('/health')
    def health_check():
        """Application health plus registry database status"""
        health_response = {
            "status": "healthy",
            "application": MODULE_NAME,
            "version": MODULE_VERSION,
            "timestamp": datetime.now().isoformat(),
        }
        try:
            health_response["database"] = registry.db.health_check()
        except Exception as db_error:
            health_response["database"] = {"status": "unavailable", "error": str(db_error)}
        return jsonify(health_response), 200

    return app


def main():
    configure_logging()
    app = create_app()
    port = FLASK_CONFIG['PORT']
    logger.info(f"Starting {MODULE_NAME} {MODULE_VERSION} on port {port}")
    app.run(host='0.0.0.0', port=port, debug=FLASK_CONFIG['DEBUG'])


if __name__ == '__main__':
    main()
