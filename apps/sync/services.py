"""
Services for Sync app - the public entry points used by the API, the
background jobs and the Lambda handlers.

Components are wired here with explicit references; nothing in the sync
engine reaches for a global queue or store.
"""
import logging
from typing import List, Optional

from django.db.models import Max

from apps.tasks.models import Task
from apps.tasks.store import DjangoTaskStore

from .client import AuthorityClient
from .dtos import DeadLetterEntryDTO, SyncResult
from .orchestrator import SyncOrchestrator
from .queue import DeadLetterStore, SyncQueue
from .transmitter import BatchTransmitter

logger = logging.getLogger(__name__)


def build_orchestrator(client=None) -> SyncOrchestrator:
    """
    Assemble the default sync engine.

    `client` defaults to an AuthorityClient for SYNC_AUTHORITY_URL; tests
    pass a fake with check_connectivity() and send_batch().
    """
    client = client or AuthorityClient()
    store = DjangoTaskStore()
    queue = SyncQueue()
    transmitter = BatchTransmitter(queue=queue, task_store=store, client=client)
    return SyncOrchestrator(task_store=store, queue=queue, transmitter=transmitter, client=client)


def run_sync_cycle(client=None) -> SyncResult:
    """Run one sync cycle. Never raises."""
    return build_orchestrator(client).run_cycle()


def get_sync_status(client=None) -> dict:
    """
    Queue counts, dead-letter count, last successful sync and connectivity.
    """
    client = client or AuthorityClient()
    counts = SyncQueue().status_counts()
    dead_letter = DeadLetterStore().count()
    last_synced = Task.objects.aggregate(last=Max('last_synced_at'))['last']

    return {
        'pending_sync_count': counts['pending'],
        'in_progress': counts['in-progress'],
        'synced': counts['synced'],
        'error': counts['error'],
        'failed': dead_letter,
        'dead_letter': dead_letter,
        'last_sync_timestamp': last_synced,
        'is_online': client.check_connectivity(),
        'sync_queue_size': counts['pending'] + counts['in-progress'],
    }


def list_dead_letters(task_id=None) -> List[DeadLetterEntryDTO]:
    return DeadLetterStore().list(task_id=task_id)


def get_dead_letter(entry_id) -> Optional[DeadLetterEntryDTO]:
    return DeadLetterStore().get(entry_id)
