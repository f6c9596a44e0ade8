"""
Unit tests for task services.
Every mutation must be persisted together with exactly one pending sync entry.
"""
from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

from django.test import TestCase
from django.utils import timezone

from apps.sync.models import Operation, QueueStatus, SyncQueueEntry
from apps.tasks import services
from apps.tasks.dtos import TaskIn, TaskUpdateIn
from apps.tasks.models import SyncStatus, Task


class NextUpdatedAtTest(TestCase):

    def test_uses_clock_when_it_has_advanced(self):
        previous = timezone.now() - timedelta(seconds=5)
        self.assertGreater(services.next_updated_at(previous), previous)

    def test_bumps_by_one_microsecond_when_clock_has_not_advanced(self):
        previous = timezone.now() + timedelta(hours=1)
        self.assertEqual(services.next_updated_at(previous), previous + timedelta(microseconds=1))

    def test_no_previous_value(self):
        self.assertIsNotNone(services.next_updated_at(None))


class CreateTaskTest(TestCase):

    def test_create_queues_one_pending_create_entry(self):
        task = services.create_task(TaskIn(title='x', description='first'))

        entries = SyncQueueEntry.objects.filter(task_id=task.id)
        self.assertEqual(entries.count(), 1)
        entry = entries.get()
        self.assertEqual(entry.operation, Operation.CREATE)
        self.assertEqual(entry.status, QueueStatus.PENDING)
        self.assertEqual(entry.retry_count, 0)
        self.assertEqual(entry.data['title'], 'x')
        self.assertEqual(entry.data['id'], str(task.id))
        self.assertEqual(task.sync_status, SyncStatus.PENDING)

    def test_client_assigned_id_is_kept(self):
        task_id = uuid4()
        task = services.create_task(TaskIn(id=task_id, title='x'))
        self.assertEqual(task.id, task_id)
        self.assertTrue(Task.objects.filter(id=task_id).exists())

    def test_blank_title_rejected_and_nothing_queued(self):
        with self.assertRaises(ValueError):
            services.create_task(TaskIn(title='   '))
        self.assertEqual(Task.objects.count(), 0)
        self.assertEqual(SyncQueueEntry.objects.count(), 0)

    def test_duplicate_id_rejected(self):
        task = services.create_task(TaskIn(title='x'))
        with self.assertRaises(ValueError):
            services.create_task(TaskIn(id=task.id, title='again'))
        self.assertEqual(SyncQueueEntry.objects.count(), 1)

    def test_queue_failure_rolls_back_task(self):
        with patch('apps.tasks.services.SyncQueue.enqueue', side_effect=RuntimeError('disk full')):
            with self.assertRaises(RuntimeError):
                services.create_task(TaskIn(title='x'))
        self.assertEqual(Task.objects.count(), 0)


class UpdateTaskTest(TestCase):

    def setUp(self):
        self.task = services.create_task(TaskIn(title='x'))

    def test_update_queues_update_entry_with_new_snapshot(self):
        updated = services.update_task(self.task.id, TaskUpdateIn(title='y', completed=True))

        self.assertEqual(updated.title, 'y')
        self.assertTrue(updated.completed)
        entry = SyncQueueEntry.objects.filter(task_id=self.task.id).order_by('-created_at').first()
        self.assertEqual(entry.operation, Operation.UPDATE)
        self.assertEqual(entry.data['title'], 'y')
        self.assertEqual(SyncQueueEntry.objects.filter(task_id=self.task.id).count(), 2)

    def test_partial_update_keeps_other_fields(self):
        services.update_task(self.task.id, TaskUpdateIn(description='notes'))
        task = Task.objects.get(id=self.task.id)
        self.assertEqual(task.title, 'x')
        self.assertEqual(task.description, 'notes')

    def test_updated_at_strictly_increases_within_same_clock_tick(self):
        frozen = self.task.updated_at
        with patch('django.utils.timezone.now', return_value=frozen):
            first = services.update_task(self.task.id, TaskUpdateIn(title='y'))
            second = services.update_task(self.task.id, TaskUpdateIn(title='z'))

        self.assertGreater(first.updated_at, self.task.updated_at)
        self.assertGreater(second.updated_at, first.updated_at)

    def test_update_marks_synced_task_pending_again(self):
        Task.objects.filter(id=self.task.id).update(sync_status=SyncStatus.SYNCED)
        updated = services.update_task(self.task.id, TaskUpdateIn(completed=True))
        self.assertEqual(updated.sync_status, SyncStatus.PENDING)

    def test_blank_title_rejected(self):
        with self.assertRaises(ValueError):
            services.update_task(self.task.id, TaskUpdateIn(title=''))
        self.assertEqual(SyncQueueEntry.objects.filter(task_id=self.task.id).count(), 1)

    def test_explicit_null_clears_description(self):
        services.update_task(self.task.id, TaskUpdateIn(description='notes'))

        updated = services.update_task(self.task.id, TaskUpdateIn(description=None))

        self.assertIsNone(updated.description)
        self.assertIsNone(Task.objects.get(id=self.task.id).description)
        entry = SyncQueueEntry.objects.filter(task_id=self.task.id).order_by('-created_at').first()
        self.assertIsNone(entry.data['description'])

    def test_null_title_rejected(self):
        with self.assertRaises(ValueError):
            services.update_task(self.task.id, TaskUpdateIn(title=None))
        self.assertEqual(Task.objects.get(id=self.task.id).title, 'x')
        self.assertEqual(SyncQueueEntry.objects.filter(task_id=self.task.id).count(), 1)

    def test_null_completed_rejected(self):
        with self.assertRaises(ValueError):
            services.update_task(self.task.id, TaskUpdateIn(completed=None))

    def test_missing_task_returns_none(self):
        self.assertIsNone(services.update_task(uuid4(), TaskUpdateIn(title='y')))

    def test_deleted_task_returns_none(self):
        services.soft_delete_task(self.task.id)
        self.assertIsNone(services.update_task(self.task.id, TaskUpdateIn(title='y')))


class SoftDeleteTaskTest(TestCase):

    def setUp(self):
        self.task = services.create_task(TaskIn(title='x'))

    def test_soft_delete_keeps_row_and_queues_delete(self):
        self.assertTrue(services.soft_delete_task(self.task.id))

        task = Task.objects.get(id=self.task.id)
        self.assertTrue(task.is_deleted)
        self.assertGreater(task.updated_at, self.task.updated_at)
        entry = SyncQueueEntry.objects.filter(task_id=self.task.id, operation=Operation.DELETE).get()
        self.assertTrue(entry.data['is_deleted'])

    def test_deleted_task_is_hidden(self):
        services.soft_delete_task(self.task.id)
        self.assertIsNone(services.get_task(self.task.id))
        self.assertEqual(services.list_tasks(), [])

    def test_delete_twice_returns_false(self):
        services.soft_delete_task(self.task.id)
        self.assertFalse(services.soft_delete_task(self.task.id))
        self.assertEqual(SyncQueueEntry.objects.filter(operation=Operation.DELETE).count(), 1)

    def test_delete_missing_task(self):
        self.assertFalse(services.soft_delete_task(uuid4()))


class ListTasksTest(TestCase):

    def test_needs_sync_filters_synced_tasks(self):
        pending = services.create_task(TaskIn(title='pending'))
        synced = services.create_task(TaskIn(title='synced'))
        Task.objects.filter(id=synced.id).update(sync_status=SyncStatus.SYNCED)

        all_ids = {t.id for t in services.list_tasks()}
        needs_sync_ids = {t.id for t in services.list_tasks(needs_sync=True)}

        self.assertEqual(all_ids, {pending.id, synced.id})
        self.assertEqual(needs_sync_ids, {pending.id})
