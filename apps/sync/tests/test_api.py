"""
Integration tests for sync API endpoints.
"""
from unittest.mock import patch

from django.test import TestCase, Client, override_settings

from apps.sync.models import QueueStatus, SyncQueueEntry
from apps.sync.lock import CycleLease
from apps.sync.queue import SyncQueue
from apps.sync.tests.fakes import InProcessSession, in_process_client
from apps.tasks import services
from apps.tasks.dtos import TaskIn
from apps.tasks.models import Task


class SyncAPITest(TestCase):

    def setUp(self):
        self.http = Client()
        self.session = InProcessSession()
        patcher = patch('apps.sync.services.AuthorityClient', return_value=in_process_client(self.session))
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_trigger_sync(self):
        task = services.create_task(TaskIn(title='x'))

        response = self.http.post('/api/sync/')

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['synced_items'], 1)
        self.assertEqual(data['errors'], [])
        self.assertEqual(Task.objects.get(id=task.id).sync_status, 'synced')

    def test_trigger_sync_offline(self):
        services.create_task(TaskIn(title='x'))
        self.session.offline = True

        response = self.http.post('/api/sync/')

        self.assertEqual(response.status_code, 503)
        data = response.json()
        self.assertFalse(data['success'])
        self.assertEqual(data['errors'][0]['error'], 'Server unreachable')
        self.assertEqual(data['errors'][0]['operation'], 'sync')

    def test_trigger_sync_while_cycle_running(self):
        services.create_task(TaskIn(title='x'))
        other_worker = CycleLease()
        other_worker.acquire()
        try:
            response = self.http.post('/api/sync/')
        finally:
            other_worker.release()

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['errors'][0]['error'], 'Sync already in progress')
        self.assertEqual(SyncQueueEntry.objects.get().status, QueueStatus.PENDING)

    @override_settings(JOB_BACKEND='local')
    def test_trigger_sync_in_background(self):
        services.create_task(TaskIn(title='x'))

        response = self.http.post('/api/sync/?background=true')

        self.assertEqual(response.status_code, 202)
        data = response.json()
        self.assertTrue(data['job_id'])
        self.assertEqual(data['backend'], 'local')
        # The local backend runs the job before returning
        self.assertFalse(SyncQueueEntry.objects.exclude(status=QueueStatus.SYNCED).exists())

    def test_status(self):
        services.create_task(TaskIn(title='a'))
        failing = services.create_task(TaskIn(title='b'))
        queue = SyncQueue(max_retries=3)
        entry = SyncQueueEntry.objects.get(task_id=failing.id)
        queue.record_failure(entry.id, 'boom')

        response = self.http.get('/api/sync/status')

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['pending_sync_count'], 2)
        self.assertEqual(data['error'], 1)
        self.assertEqual(data['failed'], 0)
        self.assertEqual(data['dead_letter'], 0)
        self.assertEqual(data['sync_queue_size'], 2)
        self.assertTrue(data['is_online'])
        self.assertIsNone(data['last_sync_timestamp'])

    def test_status_after_sync(self):
        services.create_task(TaskIn(title='a'))
        self.http.post('/api/sync/')

        data = self.http.get('/api/sync/status').json()

        self.assertEqual(data['pending_sync_count'], 0)
        self.assertEqual(data['synced'], 1)
        self.assertIsNotNone(data['last_sync_timestamp'])

    def test_dead_letter_listing(self):
        task = services.create_task(TaskIn(title='a'))
        entry = SyncQueueEntry.objects.get(task_id=task.id)
        queue = SyncQueue(max_retries=3)
        for _ in range(3):
            queue.record_failure(entry.id, 'boom')

        response = self.http.get('/api/sync/dead-letter')

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['id'], str(entry.id))
        self.assertEqual(data[0]['retry_count'], 3)
        self.assertEqual(data[0]['error_message'], 'boom')

        detail = self.http.get(f'/api/sync/dead-letter/{entry.id}')
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(self.http.get('/api/sync/status').json()['dead_letter'], 1)

    def test_dead_letter_missing(self):
        response = self.http.get('/api/sync/dead-letter/00000000-0000-0000-0000-000000000000')
        self.assertEqual(response.status_code, 404)
