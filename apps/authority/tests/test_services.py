"""
Unit tests for the authority's batch policy.
"""
from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

from django.test import TestCase
from django.utils import timezone

from apps.authority import services
from apps.authority.models import AuthorityTask


def make_item(task_id, operation='create', updated_at=None, **data):
    updated_at = updated_at or timezone.now()
    payload = {
        'id': str(task_id),
        'title': 'x',
        'description': None,
        'completed': False,
        'created_at': updated_at.isoformat(),
        'updated_at': updated_at.isoformat(),
        'is_deleted': operation == 'delete',
    }
    payload.update(data)
    return {
        'id': str(uuid4()),
        'task_id': str(task_id),
        'operation': operation,
        'data': payload,
        'created_at': updated_at.isoformat(),
        'retry_count': 0,
        'error_message': None,
        'status': 'in-progress',
    }


class ApplyBatchTest(TestCase):

    def setUp(self):
        self.task_id = uuid4()
        self.now = timezone.now()

    def test_unknown_task_is_stored(self):
        item = make_item(self.task_id, updated_at=self.now)

        [result] = services.apply_batch([item])

        self.assertEqual(result['status'], 'success')
        self.assertEqual(result['client_id'], item['id'])
        record = AuthorityTask.objects.get(task_id=self.task_id)
        self.assertEqual(result['server_id'], record.server_id)
        self.assertEqual(record.updated_at, self.now)

    def test_newer_item_replaces_stored_copy(self):
        services.apply_batch([make_item(self.task_id, updated_at=self.now)])
        later = self.now + timedelta(seconds=1)

        [result] = services.apply_batch([make_item(self.task_id, 'update', later, title='y')])

        self.assertEqual(result['status'], 'success')
        record = AuthorityTask.objects.get(task_id=self.task_id)
        self.assertEqual(record.data['title'], 'y')
        self.assertEqual(record.updated_at, later)

    def test_same_timestamp_is_accepted(self):
        services.apply_batch([make_item(self.task_id, updated_at=self.now)])

        [result] = services.apply_batch([make_item(self.task_id, 'update', self.now, title='y')])

        self.assertEqual(result['status'], 'success')

    def test_older_item_gets_conflict_with_stored_version(self):
        services.apply_batch([make_item(self.task_id, updated_at=self.now, title='newer')])
        earlier = self.now - timedelta(seconds=1)

        [result] = services.apply_batch([make_item(self.task_id, 'update', earlier, title='older')])

        self.assertEqual(result['status'], 'conflict')
        resolved = result['resolved_data']
        self.assertEqual(resolved['title'], 'newer')
        self.assertEqual(resolved['id'], str(self.task_id))
        self.assertEqual(resolved['updated_at'], self.now.isoformat())
        self.assertEqual(AuthorityTask.objects.get(task_id=self.task_id).data['title'], 'newer')

    def test_delete_marks_record_deleted(self):
        services.apply_batch([make_item(self.task_id, updated_at=self.now)])

        services.apply_batch([make_item(self.task_id, 'delete', self.now + timedelta(seconds=1))])

        self.assertTrue(AuthorityTask.objects.get(task_id=self.task_id).is_deleted)

    def test_invalid_items_get_error(self):
        bad_operation = make_item(self.task_id, operation='upsert')
        no_timestamp = make_item(uuid4())
        del no_timestamp['data']['updated_at']

        results = services.apply_batch([bad_operation, no_timestamp])

        self.assertEqual([r['status'] for r in results], ['error', 'error'])
        self.assertIn('Unsupported operation', results[0]['error'])
        self.assertIn('Invalid task data', results[1]['error'])
        self.assertEqual(AuthorityTask.objects.count(), 0)

    def test_items_without_id_are_skipped(self):
        item = make_item(self.task_id)
        del item['id']

        self.assertEqual(services.apply_batch([item, 'junk']), [])

    def test_unexpected_failure_only_affects_its_item(self):
        first, second = make_item(uuid4()), make_item(uuid4())
        real = services._apply_item_locked

        def flaky(client_id, item):
            if client_id == first['id']:
                raise RuntimeError("boom")
            return real(client_id, item)

        with patch('apps.authority.services._apply_item_locked', side_effect=flaky):
            results = services.apply_batch([first, second])

        self.assertEqual([r['status'] for r in results], ['error', 'success'])
        self.assertEqual(AuthorityTask.objects.count(), 1)
