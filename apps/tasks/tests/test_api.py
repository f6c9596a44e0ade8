"""
Integration tests for task API endpoints.
"""
import json
from uuid import uuid4

from django.test import TestCase, Client

from apps.sync.models import Operation, SyncQueueEntry
from apps.tasks.models import Task


class TaskAPITest(TestCase):

    def setUp(self):
        self.client = Client()

    def _create(self, **body):
        return self.client.post('/api/tasks/', data=json.dumps(body), content_type='application/json')

    def test_create_task(self):
        response = self._create(title='Buy milk', description='2 litres')

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['title'], 'Buy milk')
        self.assertEqual(data['sync_status'], 'pending')
        self.assertFalse(data['is_deleted'])
        self.assertIsNone(data['server_id'])
        self.assertEqual(SyncQueueEntry.objects.filter(task_id=data['id']).count(), 1)

    def test_create_requires_title(self):
        response = self._create(description='no title')
        self.assertEqual(response.status_code, 422)
        self.assertEqual(Task.objects.count(), 0)

    def test_create_rejects_blank_title(self):
        response = self._create(title='  ')
        self.assertEqual(response.status_code, 400)

    def test_create_with_taken_id_conflicts(self):
        task_id = str(uuid4())
        self._create(id=task_id, title='one')
        response = self._create(id=task_id, title='two')
        self.assertEqual(response.status_code, 409)

    def test_get_and_list(self):
        task_id = self._create(title='x').json()['id']

        response = self.client.get(f'/api/tasks/{task_id}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['id'], task_id)

        response = self.client.get('/api/tasks/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual([t['id'] for t in response.json()], [task_id])

    def test_get_missing_task(self):
        response = self.client.get(f'/api/tasks/{uuid4()}')
        self.assertEqual(response.status_code, 404)

    def test_update_task(self):
        created = self._create(title='x').json()

        response = self.client.put(
            f"/api/tasks/{created['id']}",
            data=json.dumps({'completed': True}),
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['completed'])
        self.assertEqual(data['title'], 'x')
        self.assertTrue(
            SyncQueueEntry.objects.filter(task_id=created['id'], operation=Operation.UPDATE).exists()
        )

    def test_update_with_null_description_clears_it(self):
        created = self._create(title='x', description='notes').json()

        response = self.client.put(
            f"/api/tasks/{created['id']}",
            data=json.dumps({'description': None}),
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()['description'])
        self.assertEqual(response.json()['title'], 'x')

    def test_update_with_null_title_rejected(self):
        created = self._create(title='x').json()

        response = self.client.put(
            f"/api/tasks/{created['id']}",
            data=json.dumps({'title': None}),
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(Task.objects.get(id=created['id']).title, 'x')

    def test_update_missing_task(self):
        response = self.client.put(
            f'/api/tasks/{uuid4()}',
            data=json.dumps({'title': 'y'}),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 404)

    def test_delete_is_soft(self):
        task_id = self._create(title='x').json()['id']

        response = self.client.delete(f'/api/tasks/{task_id}')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['success'])
        self.assertTrue(Task.objects.get(id=task_id).is_deleted)
        self.assertEqual(self.client.get(f'/api/tasks/{task_id}').status_code, 404)
        self.assertEqual(self.client.get('/api/tasks/').json(), [])

    def test_delete_missing_task(self):
        response = self.client.delete(f'/api/tasks/{uuid4()}')
        self.assertEqual(response.status_code, 404)

    def test_needs_sync_filter(self):
        synced_id = self._create(title='synced').json()['id']
        pending_id = self._create(title='pending').json()['id']
        Task.objects.filter(id=synced_id).update(sync_status='synced')

        response = self.client.get('/api/tasks/?needs_sync=true')

        self.assertEqual([t['id'] for t in response.json()], [pending_id])
