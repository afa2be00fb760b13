"""Unit tests for FakeUserRepository: verifies Port contract compliance."""

import unittest
from datetime import datetime, timedelta, timezone

from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import ConflictError
from domain.model.user import PASSKEY_SENTINEL

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestFakeUserRepository(unittest.TestCase):

    def setUp(self):
        self.repo = FakeUserRepository()
        self.user = self.repo.create('alice', 'a@x.com', 'hash', NOW)

    # ── create ────────────────────────────────────────────────

    def test_create_sets_defaults(self):
        self.assertFalse(self.user.is_admin)
        self.assertEqual(self.user.token, '')
        self.assertIsNone(self.user.last_login)
        self.assertIsNone(self.user.passkey)
        self.assertEqual(self.user.created_at, NOW)

    def test_create_duplicate_username_raises(self):
        with self.assertRaises(ConflictError):
            self.repo.create('alice', 'other@x.com', 'hash', NOW)

    def test_same_email_different_username_allowed(self):
        other = self.repo.create('alice2', 'a@x.com', 'hash', NOW)
        self.assertNotEqual(other.id, self.user.id)

    # ── lookups ───────────────────────────────────────────────

    def test_find_by_email_and_username_requires_both(self):
        self.assertIsNotNone(self.repo.find_by_email_and_username('a@x.com', 'alice'))
        self.assertIsNone(self.repo.find_by_email_and_username('a@x.com', 'bob'))
        self.assertIsNone(self.repo.find_by_email_and_username('b@x.com', 'alice'))

    def test_find_by_token_ignores_empty_token(self):
        self.assertIsNone(self.repo.find_by_token(''))
        self.repo.update_token(self.user.id, 'tok', NOW)
        self.assertEqual(self.repo.find_by_token('tok').id, self.user.id)

    def test_returned_users_are_copies(self):
        found = self.repo.find_by_username('alice')
        found.passkey = 'mutated'
        self.assertIsNone(self.repo.get_by_id(self.user.id).passkey)

    # ── updates ───────────────────────────────────────────────

    def test_updates_return_false_for_missing_user(self):
        self.assertFalse(self.repo.update_token('missing', 'tok', NOW))
        self.assertFalse(self.repo.update_passkey('missing', 'abc123', NOW))
        self.assertFalse(self.repo.invalidate_passkey('missing'))
        self.assertFalse(self.repo.update_password('missing', 'abc123', 'hash'))

    def test_update_password_clears_passkey_fields(self):
        self.repo.update_passkey(self.user.id, 'abc123', NOW)
        self.assertTrue(self.repo.update_password(self.user.id, 'abc123', 'new-hash'))

        stored = self.repo.get_by_id(self.user.id)
        self.assertEqual(stored.password_hash, 'new-hash')
        self.assertIsNone(stored.passkey)
        self.assertIsNone(stored.passkey_generated_at)

    def test_update_password_requires_current_passkey(self):
        self.repo.update_passkey(self.user.id, 'abc123', NOW)
        self.assertTrue(self.repo.update_password(self.user.id, 'abc123', 'first-hash'))

        self.assertFalse(self.repo.update_password(self.user.id, 'abc123', 'second-hash'))
        self.assertEqual(self.repo.get_by_id(self.user.id).password_hash, 'first-hash')

    def test_update_password_rejected_after_invalidation(self):
        self.repo.update_passkey(self.user.id, 'abc123', NOW)
        self.repo.invalidate_passkey(self.user.id)

        self.assertFalse(self.repo.update_password(self.user.id, 'abc123', 'new-hash'))
        self.assertEqual(self.repo.get_by_id(self.user.id).password_hash, 'hash')

    def test_update_token_with_previous_token_is_conditional(self):
        self.assertTrue(self.repo.update_token(self.user.id, 'tok-1', NOW, previous_token=''))
        self.assertFalse(self.repo.update_token(self.user.id, 'tok-2', NOW, previous_token=''))
        self.assertEqual(self.repo.get_by_id(self.user.id).token, 'tok-1')

    def test_invalidate_passkey_is_idempotent(self):
        self.repo.update_passkey(self.user.id, 'abc123', NOW)
        self.assertTrue(self.repo.invalidate_passkey(self.user.id))
        self.assertTrue(self.repo.invalidate_passkey(self.user.id))
        stored = self.repo.get_by_id(self.user.id)
        self.assertEqual(stored.passkey, PASSKEY_SENTINEL)
        self.assertEqual(stored.passkey_generated_at, NOW)

    def test_invalidate_passkeys_issued_before(self):
        bob = self.repo.create('bob', 'b@x.com', 'hash', NOW)
        carol = self.repo.create('carol', 'c@x.com', 'hash', NOW)
        self.repo.update_passkey(self.user.id, 'old111', NOW - timedelta(minutes=20))
        self.repo.update_passkey(bob.id, 'new222', NOW)
        self.repo.update_passkey(carol.id, 'old333', NOW - timedelta(minutes=30))
        self.repo.invalidate_passkey(carol.id)

        count = self.repo.invalidate_passkeys_issued_before(NOW - timedelta(minutes=10))

        self.assertEqual(count, 1)
        self.assertEqual(self.repo.get_by_id(self.user.id).passkey, PASSKEY_SENTINEL)
        self.assertEqual(self.repo.get_by_id(bob.id).passkey, 'new222')


if __name__ == '__main__':
    unittest.main()
