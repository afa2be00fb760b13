"""Tests for MongoUserRepository against a mocked collection."""

import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from adapter.mongodb.user_repository import MongoUserRepository
from domain.model.errors import ConflictError, InternalError
from domain.model.user import PASSKEY_SENTINEL

NOW = datetime(2026, 1, 23, 12, 0, 0, tzinfo=timezone.utc)


def _user_doc(**overrides) -> dict:
    doc = {
        '_id': 'user-1',
        'username': 'alice',
        'email': 'a@x.com',
        'password_hash': '$2b$12$hash',
        'is_admin': False,
        'token': '',
        'created_at': NOW,
        'updated_at': NOW,
    }
    doc.update(overrides)
    return doc


class MongoRepositoryTestCase(unittest.TestCase):

    def setUp(self):
        self.collection = MagicMock()
        db = MagicMock()
        db.__getitem__.return_value = self.collection
        self.repo = MongoUserRepository(db)


class TestCreate(MongoRepositoryTestCase):

    @patch('adapter.mongodb.user_repository.uuid')
    def test_create_success(self, mock_uuid):
        mock_uuid.uuid4.return_value.hex = 'new-user-id'

        user = self.repo.create('alice', 'a@x.com', '$2b$12$hash', NOW)

        self.assertEqual(user.id, 'new-user-id')
        self.assertEqual(user.username, 'alice')
        self.assertFalse(user.is_admin)
        self.assertEqual(user.token, '')
        doc = self.collection.insert_one.call_args[0][0]
        self.assertEqual(doc['_id'], 'new-user-id')
        self.assertEqual(doc['password_hash'], '$2b$12$hash')
        self.assertFalse(doc['is_admin'])

    def test_duplicate_key_raises_conflict(self):
        self.collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with self.assertRaises(ConflictError):
            self.repo.create('alice', 'a@x.com', 'hash', NOW)

    def test_driver_error_raises_internal(self):
        self.collection.insert_one.side_effect = PyMongoError("connection reset")

        with self.assertRaises(InternalError):
            self.repo.create('alice', 'a@x.com', 'hash', NOW)


class TestReads(MongoRepositoryTestCase):

    def test_find_by_username(self):
        self.collection.find_one.return_value = _user_doc(token='tok', last_login=NOW)

        user = self.repo.find_by_username('alice')

        self.assertEqual(user.id, 'user-1')
        self.assertEqual(user.token, 'tok')
        self.assertEqual(user.last_login, NOW)
        self.assertIsNone(user.passkey)
        self.collection.find_one.assert_called_once_with({'username': 'alice'})

    def test_find_by_email_and_username_queries_both(self):
        self.collection.find_one.return_value = None

        self.assertIsNone(self.repo.find_by_email_and_username('a@x.com', 'alice'))
        self.collection.find_one.assert_called_once_with({'email': 'a@x.com', 'username': 'alice'})

    def test_find_by_token_skips_query_for_empty_token(self):
        self.assertIsNone(self.repo.find_by_token(''))
        self.collection.find_one.assert_not_called()

    def test_naive_datetimes_are_read_as_utc(self):
        naive = datetime(2026, 1, 23, 12, 0, 0)
        self.collection.find_one.return_value = _user_doc(
            created_at=naive, updated_at=naive, passkey='abc123', passkey_generated_at=naive,
        )

        user = self.repo.get_by_id('user-1')

        self.assertEqual(user.passkey_generated_at, NOW)
        self.assertEqual(user.created_at.tzinfo, timezone.utc)

    def test_driver_error_raises_internal(self):
        self.collection.find_one.side_effect = PyMongoError("timeout")

        with self.assertRaises(InternalError):
            self.repo.find_by_username('alice')


class TestUpdates(MongoRepositoryTestCase):

    def setUp(self):
        super().setUp()
        self.collection.update_one.return_value = MagicMock(matched_count=1)

    def test_update_token_sets_token_and_last_login_together(self):
        self.assertTrue(self.repo.update_token('user-1', 'tok', NOW))

        query, update = self.collection.update_one.call_args[0]
        self.assertEqual(query, {'_id': 'user-1'})
        self.assertEqual(update['$set']['token'], 'tok')
        self.assertEqual(update['$set']['last_login'], NOW)

    def test_update_passkey(self):
        self.repo.update_passkey('user-1', 'abc123', NOW)

        _, update = self.collection.update_one.call_args[0]
        self.assertEqual(update['$set']['passkey'], 'abc123')
        self.assertEqual(update['$set']['passkey_generated_at'], NOW)

    def test_invalidate_passkey_sets_sentinel(self):
        self.repo.invalidate_passkey('user-1')

        _, update = self.collection.update_one.call_args[0]
        self.assertEqual(update, {'$set': {'passkey': PASSKEY_SENTINEL}})

    def test_update_password_unsets_passkey_in_same_update(self):
        self.repo.update_password('user-1', 'abc123', 'new-hash')

        self.collection.update_one.assert_called_once()
        query, update = self.collection.update_one.call_args[0]
        self.assertEqual(query, {'_id': 'user-1', 'passkey': 'abc123'})
        self.assertEqual(update['$set']['password_hash'], 'new-hash')
        self.assertEqual(set(update['$unset']), {'passkey', 'passkey_generated_at'})

    def test_update_password_returns_false_when_passkey_already_consumed(self):
        self.collection.update_one.return_value = MagicMock(matched_count=0)

        self.assertFalse(self.repo.update_password('user-1', 'abc123', 'new-hash'))

    def test_update_token_filters_on_previous_token(self):
        self.repo.update_token('user-1', 'tok-2', NOW, previous_token='tok-1')

        query, _ = self.collection.update_one.call_args[0]
        self.assertEqual(query, {'_id': 'user-1', 'token': 'tok-1'})

    def test_update_token_first_login_matches_missing_token(self):
        self.repo.update_token('user-1', 'tok-1', NOW, previous_token='')

        query, _ = self.collection.update_one.call_args[0]
        self.assertEqual(query, {'_id': 'user-1', 'token': {'$in': ['', None]}})

    def test_update_returns_false_when_no_match(self):
        self.collection.update_one.return_value = MagicMock(matched_count=0)

        self.assertFalse(self.repo.update_token('missing', 'tok', NOW))

    def test_update_driver_error_raises_internal(self):
        self.collection.update_one.side_effect = PyMongoError("not primary")

        with self.assertRaises(InternalError):
            self.repo.invalidate_passkey('user-1')

    def test_invalidate_passkeys_issued_before(self):
        self.collection.update_many.return_value = MagicMock(modified_count=3)

        count = self.repo.invalidate_passkeys_issued_before(NOW)

        self.assertEqual(count, 3)
        query, update = self.collection.update_many.call_args[0]
        self.assertEqual(query['passkey_generated_at'], {'$lt': NOW})
        self.assertIn(PASSKEY_SENTINEL, query['passkey']['$nin'])
        self.assertEqual(update, {'$set': {'passkey': PASSKEY_SENTINEL}})


class TestEnsureIndexes(MongoRepositoryTestCase):

    def test_unique_username_index(self):
        self.assertTrue(self.repo.ensure_indexes())

        calls = self.collection.create_index.call_args_list
        self.assertEqual(calls[0][0][0], [('username', 1)])
        self.assertEqual(calls[0][1]['name'], 'idx_users_username')
        self.assertTrue(calls[0][1]['unique'])
        self.assertEqual(len(calls), 4)

    def test_conflicting_index_is_replaced(self):
        self.collection.create_index.side_effect = [
            OperationFailure("Index with name: idx_users_username already exists with different options"),
            None, None, None, None,
        ]
        self.collection.index_information.return_value = {
            '_id_': {'key': [('_id', 1)]},
            'idx_users_username': {'key': [('username', 1)]},
        }

        self.assertTrue(self.repo.ensure_indexes())
        self.collection.drop_index.assert_called_once_with('idx_users_username')

    def test_failure_returns_false(self):
        self.collection.create_index.side_effect = PyMongoError("unauthorized")

        self.assertFalse(self.repo.ensure_indexes())


if __name__ == '__main__':
    unittest.main()
