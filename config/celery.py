"""
Celery configuration for tasksync.
"""
import os
from datetime import timedelta

from celery import Celery

from .sync import get_sync_settings

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('tasksync')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

# Celery Beat Schedule
app.conf.beat_schedule = {
    'run-sync-cycle': {
        'task': 'apps.sync.tasks.run_sync_cycle_task',
        'schedule': timedelta(minutes=get_sync_settings()['SYNC_INTERVAL_MINUTES']),
    },
}
