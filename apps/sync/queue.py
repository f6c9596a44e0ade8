"""
Sync Queue and Dead Letter Store.

The queue is the durable log of local mutations awaiting transmission.
Entries move pending -> in-progress -> synced, or back to pending after a
failure; once an entry has failed SYNC_MAX_RETRIES times it is moved to the
dead letter store and removed from the queue in the same transaction.
"""
import copy
import logging
from datetime import timedelta
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from .dtos import DeadLetterEntryDTO, FailureOutcome, SyncQueueEntryDTO
from .models import DeadLetterEntry, Operation, QueueStatus, SyncQueueEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


def _entry_to_dto(entry: SyncQueueEntry) -> SyncQueueEntryDTO:
    return SyncQueueEntryDTO(
        id=entry.id,
        task_id=entry.task_id,
        operation=entry.operation,
        data=entry.data,
        status=entry.status,
        retry_count=entry.retry_count,
        error_message=entry.error_message,
        created_at=entry.created_at,
    )


def _dead_letter_to_dto(entry: DeadLetterEntry) -> DeadLetterEntryDTO:
    return DeadLetterEntryDTO(
        id=entry.id,
        task_id=entry.task_id,
        operation=entry.operation,
        data=entry.data,
        retry_count=entry.retry_count,
        error_message=entry.error_message,
        created_at=entry.created_at,
        failed_at=entry.failed_at,
    )


class DeadLetterStore:
    """Terminal holding area for mutations that exhausted their retries."""

    def add(self, entry: SyncQueueEntry) -> DeadLetterEntryDTO:
        dead = DeadLetterEntry.objects.create(
            id=entry.id,
            task_id=entry.task_id,
            operation=entry.operation,
            data=entry.data,
            retry_count=entry.retry_count,
            error_message=entry.error_message,
            created_at=entry.created_at,
            failed_at=timezone.now(),
        )
        return _dead_letter_to_dto(dead)

    def get(self, entry_id: UUID) -> Optional[DeadLetterEntryDTO]:
        try:
            return _dead_letter_to_dto(DeadLetterEntry.objects.get(id=entry_id))
        except DeadLetterEntry.DoesNotExist:
            return None

    def list(self, task_id: Optional[UUID] = None) -> List[DeadLetterEntryDTO]:
        queryset = DeadLetterEntry.objects.all()
        if task_id:
            queryset = queryset.filter(task_id=task_id)
        return [_dead_letter_to_dto(entry) for entry in queryset]

    def count(self) -> int:
        return DeadLetterEntry.objects.count()


class SyncQueue:
    """
    Ordered durable log of pending mutations.

    Not safe for concurrent drains: callers must hold the orchestrator's
    single-flight guard between drain_candidates() and the status updates.
    """

    def __init__(self, max_retries: Optional[int] = None, dead_letters: Optional[DeadLetterStore] = None):
        if max_retries is None:
            max_retries = getattr(settings, 'SYNC_MAX_RETRIES', DEFAULT_MAX_RETRIES)
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.max_retries = max_retries
        self.dead_letters = dead_letters or DeadLetterStore()

    # -------------------------------------------------------------------------
    # Producer side
    # -------------------------------------------------------------------------

    def enqueue(self, task_id: UUID, operation: str, data_snapshot: dict) -> SyncQueueEntryDTO:
        """
        Append a pending entry. Storage errors propagate to the caller.

        created_at is kept strictly increasing per task so the drain order
        always matches the enqueue order.
        """
        if operation not in Operation.values:
            raise ValueError(f"Unknown sync operation: {operation}")

        created_at = timezone.now()
        latest = (
            SyncQueueEntry.objects.filter(task_id=task_id)
            .order_by('-created_at')
            .values_list('created_at', flat=True)
            .first()
        )
        if latest is not None and created_at <= latest:
            created_at = latest + timedelta(microseconds=1)

        entry = SyncQueueEntry.objects.create(
            task_id=task_id,
            operation=operation,
            data=copy.deepcopy(data_snapshot),
            created_at=created_at,
        )
        logger.debug(f"Enqueued {operation} for task {task_id} (entry={entry.id})")
        return _entry_to_dto(entry)

    # -------------------------------------------------------------------------
    # Orchestrator side
    # -------------------------------------------------------------------------

    def drain_candidates(self) -> List[SyncQueueEntryDTO]:
        """All pending entries ordered by (task_id, created_at). Read-only."""
        queryset = SyncQueueEntry.objects.filter(
            status=QueueStatus.PENDING
        ).order_by('task_id', 'created_at')
        return [_entry_to_dto(entry) for entry in queryset]

    def mark_in_progress(self, entry_ids: Iterable[UUID]) -> int:
        return SyncQueueEntry.objects.filter(
            id__in=list(entry_ids), status=QueueStatus.PENDING
        ).update(status=QueueStatus.IN_PROGRESS, updated_at=timezone.now())

    def release_in_progress(self) -> int:
        """
        Put in-progress entries back to pending without touching retry state.
        Only call this while holding the single-flight guard.
        """
        return SyncQueueEntry.objects.filter(
            status=QueueStatus.IN_PROGRESS
        ).update(status=QueueStatus.PENDING, updated_at=timezone.now())

    def mark_synced(self, entry_id: UUID) -> bool:
        """Idempotent transition to synced. Returns False for unknown ids."""
        updated = SyncQueueEntry.objects.filter(id=entry_id).update(
            status=QueueStatus.SYNCED,
            error_message=None,
            updated_at=timezone.now(),
        )
        return updated > 0

    def record_failure(self, entry_id: UUID, error: str) -> Optional[FailureOutcome]:
        """
        Count one failed attempt for an entry.

        Reaching the retry ceiling moves the entry to the dead letter store;
        otherwise it goes back to pending with the error recorded.
        Returns None if the entry is no longer in the queue.
        """
        with transaction.atomic():
            try:
                entry = SyncQueueEntry.objects.select_for_update().get(id=entry_id)
            except SyncQueueEntry.DoesNotExist:
                logger.warning(f"record_failure: queue entry {entry_id} not found")
                return None

            entry.retry_count += 1
            entry.error_message = error

            if entry.retry_count >= self.max_retries:
                self.dead_letters.add(entry)
                entry.delete()
                logger.warning(
                    f"Entry {entry_id} ({entry.operation} task {entry.task_id}) "
                    f"moved to dead letter store after {entry.retry_count} failures: {error}"
                )
                return FailureOutcome(entry_id=entry_id, retry_count=entry.retry_count, dead_lettered=True)

            entry.status = QueueStatus.PENDING
            entry.save(update_fields=['retry_count', 'error_message', 'status', 'updated_at'])

        logger.info(f"Entry {entry_id} failed (attempt {entry.retry_count}/{self.max_retries}): {error}")
        return FailureOutcome(entry_id=entry_id, retry_count=entry.retry_count, dead_lettered=False)

    # -------------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------------

    def get(self, entry_id: UUID) -> Optional[SyncQueueEntryDTO]:
        try:
            return _entry_to_dto(SyncQueueEntry.objects.get(id=entry_id))
        except SyncQueueEntry.DoesNotExist:
            return None

    def has_pending(self, task_id: UUID) -> bool:
        return SyncQueueEntry.objects.filter(
            task_id=task_id,
            status__in=[QueueStatus.PENDING, QueueStatus.IN_PROGRESS],
        ).exists()

    def status_counts(self) -> Dict[str, int]:
        """
        Counts by queue status. `error` counts pending entries that have
        failed at least once and are waiting for another attempt.
        """
        counts = {status: 0 for status in QueueStatus.values}
        rows = SyncQueueEntry.objects.values('status').annotate(total=Count('id')).order_by()
        for row in rows:
            counts[row['status']] = row['total']
        counts['error'] = SyncQueueEntry.objects.filter(
            status=QueueStatus.PENDING, retry_count__gt=0
        ).count()
        return counts
