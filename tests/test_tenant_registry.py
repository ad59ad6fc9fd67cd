import os
import tempfile
import unittest

from ledger_reports.exceptions import TenantNotConfigured
from ledger_reports.web_ui.tenant_registry import ConnectionProfile

from ledger_fixtures import build_registry


class TestTenantRegistry(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.pg_profile = ConnectionProfile(
            tenant_id='beta', engine='postgresql', database='ledger',
            host='db.internal', port=5432, user='report', password='hunter2', timeout_seconds=15,
        )
        self.registry = build_registry(self.tmpdir.name, self.pg_profile)

    def tearDown(self):
        self.registry.db.close()
        self.tmpdir.cleanup()

    def test_resolve_returns_registered_profile(self):
        self.assertEqual(self.registry.resolve('beta'), self.pg_profile)

    def test_unknown_or_blank_tenant(self):
        for tenant_id in ('nobody', '', None):
            with self.subTest(tenant_id=tenant_id):
                with self.assertRaises(TenantNotConfigured) as ctx:
                    self.registry.resolve(tenant_id)
                self.assertEqual(ctx.exception.status_code, 400)

    def test_register_replaces_existing_profile(self):
        updated = ConnectionProfile(tenant_id='beta', engine='sqlite', database='/data/beta.db')
        self.registry.register(updated)
        self.assertEqual(self.registry.resolve('beta'), updated)

    def test_inactive_profile_is_not_configured(self):
        self.registry.deactivate('beta')
        with self.assertRaises(TenantNotConfigured):
            self.registry.resolve('beta')

    def test_unsupported_engine(self):
        with self.assertRaises(ValueError):
            self.registry.register(ConnectionProfile(tenant_id='x', engine='mssql', database='db'))

    def test_connection_bookkeeping(self):
        self.registry.record_failure('beta', 'Cannot connect to PostgreSQL for tenant beta')
        status = self.registry.status('beta')
        self.assertEqual(status['last_error'], 'Cannot connect to PostgreSQL for tenant beta')
        self.assertNotIn('db_password', status)

        self.registry.mark_connected('beta')
        status = self.registry.status('beta')
        self.assertIsNone(status['last_error'])
        self.assertIsNotNone(status['last_connected_at'])

    def test_describe_has_no_credentials(self):
        description = self.pg_profile.describe()
        self.assertIn('db.internal:5432', description)
        self.assertNotIn('hunter2', description)
        self.assertTrue(os.path.exists(os.path.join(self.tmpdir.name, 'registry.db')))


if __name__ == '__main__':
    unittest.main()
