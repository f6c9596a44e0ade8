"""
Services for Tasks app - CRUD on the local replica.

Every committed mutation records exactly one pending sync queue entry in
the same database transaction, so a task change is never persisted
without the mutation that will carry it to the authority.
"""
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID, uuid4

from django.db import transaction
from django.utils import timezone

from apps.sync.models import Operation
from apps.sync.queue import SyncQueue

from .dtos import TaskDTO, TaskIn, TaskUpdateIn
from .models import SyncStatus
from .store import DjangoTaskStore

logger = logging.getLogger(__name__)


def next_updated_at(previous: Optional[datetime]) -> datetime:
    """
    Timestamp for a mutation that must be strictly later than `previous`.

    Two mutations inside the same clock tick (or after a clock step back)
    still get increasing timestamps.
    """
    now = timezone.now()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def list_tasks(needs_sync: bool = False) -> List[TaskDTO]:
    """
    List active (not soft-deleted) tasks.
    With needs_sync=True only tasks still pending or in error are returned.
    """
    tasks = DjangoTaskStore().list_active()
    if needs_sync:
        tasks = [t for t in tasks if t.sync_status in (SyncStatus.PENDING, SyncStatus.ERROR)]
    return tasks


def get_task(task_id: UUID) -> Optional[TaskDTO]:
    """Get an active task. Soft-deleted tasks are reported as missing."""
    task = DjangoTaskStore().get(task_id)
    if task is None or task.is_deleted:
        return None
    return task


def create_task(payload: TaskIn) -> TaskDTO:
    """
    Create a task and queue its `create` mutation.

    Raises ValueError for a blank title or an id that is already taken.
    """
    if not payload.title or not payload.title.strip():
        raise ValueError("Title is required")

    store = DjangoTaskStore()
    task_id = payload.id or uuid4()
    if store.get(task_id) is not None:
        raise ValueError(f"Task {task_id} already exists")

    now = timezone.now()
    task = TaskDTO(
        id=task_id,
        title=payload.title,
        description=payload.description,
        completed=payload.completed,
        created_at=now,
        updated_at=now,
        sync_status=SyncStatus.PENDING,
    )

    with transaction.atomic():
        store.insert(task)
        SyncQueue().enqueue(task.id, Operation.CREATE, task.to_payload())

    logger.info(f"Created task {task.id}")
    return task


def update_task(task_id: UUID, payload: TaskUpdateIn) -> Optional[TaskDTO]:
    """
    Apply a partial update and queue an `update` mutation.
    Returns None when the task does not exist or is soft-deleted.
    """
    store = DjangoTaskStore()
    existing = store.get(task_id)
    if existing is None or existing.is_deleted:
        return None

    # An explicit null clears a nullable field; only omitted fields are left alone
    changes = payload.dict(exclude_unset=True)
    if 'title' in changes and not (changes['title'] or '').strip():
        raise ValueError("Title cannot be blank")
    if 'completed' in changes and changes['completed'] is None:
        raise ValueError("Completed cannot be null")

    updated = replace(
        existing,
        **changes,
        updated_at=next_updated_at(existing.updated_at),
        sync_status=SyncStatus.PENDING,
    )

    with transaction.atomic():
        store.update(updated)
        SyncQueue().enqueue(updated.id, Operation.UPDATE, updated.to_payload())

    logger.info(f"Updated task {task_id}")
    return updated


def soft_delete_task(task_id: UUID) -> bool:
    """Soft delete a task and queue a `delete` mutation."""
    store = DjangoTaskStore()
    existing = store.get(task_id)
    if existing is None or existing.is_deleted:
        return False

    deleted = replace(
        existing,
        is_deleted=True,
        updated_at=next_updated_at(existing.updated_at),
        sync_status=SyncStatus.PENDING,
    )

    with transaction.atomic():
        store.update(deleted)
        SyncQueue().enqueue(deleted.id, Operation.DELETE, deleted.to_payload())

    logger.info(f"Soft-deleted task {task_id}")
    return True
