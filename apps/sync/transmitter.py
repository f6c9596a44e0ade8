"""
Batch Transmitter - sends pending entries to the authority and applies
the per-item outcomes to the queue and the task store.

Wire format:
    request:  {"items": [...], "client_timestamp": "...", "checksum": "<sha256 hex>"}
    response: {"processed_items": [{"client_id", "server_id", "status", "resolved_data"?, "error"?}]}
"""
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from django.utils import timezone

from apps.tasks.dtos import TaskDTO
from apps.tasks.models import SyncStatus
from apps.tasks.store import TaskStoreInterface

from .dtos import BatchOutcome, ConflictResolution, SyncErrorDTO, SyncQueueEntryDTO
from .exceptions import TransportError
from .integrity import compute_checksum
from .queue import SyncQueue
from .resolver import resolve_conflict

logger = logging.getLogger(__name__)


class ItemStatus:
    SUCCESS = 'success'
    CONFLICT = 'conflict'
    ERROR = 'error'


UNKNOWN_ERROR = 'Unknown error'


class BatchTransmitter:
    """
    One instance per wiring; holds no per-batch state.

    `client` must provide send_batch(payload) -> dict, raising
    TransportError when no usable response was received.
    """

    def __init__(
        self,
        queue: SyncQueue,
        task_store: TaskStoreInterface,
        client,
        resolver: Callable[[TaskDTO, TaskDTO], ConflictResolution] = resolve_conflict,
    ):
        self.queue = queue
        self.task_store = task_store
        self.client = client
        self.resolver = resolver

    def build_payload(self, entries: Sequence[SyncQueueEntryDTO]) -> Dict[str, Any]:
        items = [entry.to_wire() for entry in entries]
        return {
            'items': items,
            'client_timestamp': timezone.now().isoformat(),
            'checksum': compute_checksum(items),
        }

    def send(self, entries: Sequence[SyncQueueEntryDTO]) -> List[Dict[str, Any]]:
        """
        Send one batch and return its per-item results.
        Raises TransportError (incl. BatchIntegrityError) when no usable response came back.
        """
        payload = self.build_payload(entries)
        logger.info(f"Transmitting batch of {len(entries)} entries")
        response = self.client.send_batch(payload)
        return response.get('processed_items', [])

    def transmit(self, entries: Sequence[SyncQueueEntryDTO]) -> BatchOutcome:
        """send() + apply_results(); a transport failure fails the whole batch."""
        if not entries:
            return BatchOutcome()

        try:
            results = self.send(entries)
        except TransportError as e:
            logger.warning(f"Batch of {len(entries)} entries failed in transport: {e}")
            return self.fail_batch(entries, str(e))

        return self.apply_results(entries, results)

    def fail_batch(self, entries: Sequence[SyncQueueEntryDTO], message: str) -> BatchOutcome:
        """Route every entry of the batch through retry accounting."""
        errors = []
        dead_lettered = 0
        for entry in entries:
            if self._record_failure(entry, message):
                dead_lettered += 1
            errors.append(_error_for(entry, message))

        return BatchOutcome(
            failed=len(entries),
            dead_lettered=dead_lettered,
            transport_failed=True,
            errors=errors,
        )

    def apply_results(self, entries: Sequence[SyncQueueEntryDTO], results: List[Dict[str, Any]]) -> BatchOutcome:
        """
        Apply per-item results in response order.

        Results that match no entry of this batch are ignored. Entries that
        received no result stay in-progress; the orchestrator releases them.
        """
        by_id = {str(entry.id): entry for entry in entries}
        handled = set()
        synced = conflicts = failed = dead_lettered = 0
        errors: List[SyncErrorDTO] = []

        for result in results:
            if not isinstance(result, dict):
                logger.warning(f"Ignoring malformed batch result: {result!r}")
                continue

            client_id = str(result.get('client_id'))
            entry = by_id.get(client_id)
            if entry is None or client_id in handled:
                logger.warning(f"Ignoring result for unknown or repeated queue entry {client_id}")
                continue
            handled.add(client_id)

            status = result.get('status')
            error_message = None

            if status == ItemStatus.SUCCESS:
                self._apply_success(entry, result.get('server_id'))
                synced += 1
            elif status == ItemStatus.CONFLICT and result.get('resolved_data'):
                try:
                    self._apply_conflict(entry, result)
                    synced += 1
                    conflicts += 1
                except (ValueError, TypeError) as e:
                    error_message = f"Invalid conflict data: {e}"
            elif status == ItemStatus.CONFLICT:
                error_message = result.get('error') or 'Conflict reported without resolved data'
            else:
                error_message = result.get('error') or UNKNOWN_ERROR

            if error_message is not None:
                failed += 1
                if self._record_failure(entry, error_message):
                    dead_lettered += 1
                errors.append(_error_for(entry, error_message))

        return BatchOutcome(
            synced=synced,
            conflicts=conflicts,
            failed=failed,
            dead_lettered=dead_lettered,
            errors=errors,
        )

    # -------------------------------------------------------------------------
    # Outcome handlers
    # -------------------------------------------------------------------------

    def _apply_success(self, entry: SyncQueueEntryDTO, server_id: Optional[str]) -> None:
        self.queue.mark_synced(entry.id)

        task = self.task_store.get(entry.task_id)
        if task is None:
            logger.warning(f"Task {entry.task_id} vanished before its sync result was applied")
            return

        self.task_store.update(replace(
            task,
            server_id=str(server_id) if server_id else task.server_id,
            sync_status=self._settled_status(entry),
            last_synced_at=timezone.now(),
        ))

    def _apply_conflict(self, entry: SyncQueueEntryDTO, result: Dict[str, Any]) -> None:
        local = TaskDTO.from_payload(entry.data)
        # The authority's payload is authoritative for the fields it sends
        remote = TaskDTO.from_payload({**entry.data, **result['resolved_data'], 'id': str(entry.task_id)})
        resolution = self.resolver(local, remote)

        current = self.task_store.get(entry.task_id)
        resolved = resolution.resolved_task
        if current is not None and current.updated_at > resolved.updated_at:
            # A newer local edit is already queued behind this entry
            resolved = current

        server_id = result.get('server_id')
        self.queue.mark_synced(entry.id)
        resolved = replace(
            resolved,
            id=entry.task_id,
            server_id=str(server_id) if server_id else (current.server_id if current else resolved.server_id),
            sync_status=self._settled_status(entry),
            last_synced_at=timezone.now(),
        )

        if current is None:
            self.task_store.insert(resolved)
        else:
            self.task_store.update(resolved)

        winner = 'local' if resolution.resolved_task is local else 'remote'
        logger.info(f"Conflict on task {entry.task_id} resolved by {resolution.strategy}: {winner} wins")

    def _record_failure(self, entry: SyncQueueEntryDTO, message: str) -> bool:
        """Returns True when the entry was dead-lettered."""
        outcome = self.queue.record_failure(entry.id, message)

        task = self.task_store.get(entry.task_id)
        if task is not None and task.sync_status != SyncStatus.ERROR:
            self.task_store.update(replace(task, sync_status=SyncStatus.ERROR))

        return bool(outcome and outcome.dead_lettered)

    def _settled_status(self, entry: SyncQueueEntryDTO) -> str:
        # Later mutations of the same task may still be waiting
        return SyncStatus.PENDING if self.queue.has_pending(entry.task_id) else SyncStatus.SYNCED


def _error_for(entry: SyncQueueEntryDTO, message: str) -> SyncErrorDTO:
    return SyncErrorDTO(
        task_id=str(entry.task_id),
        operation=entry.operation,
        error=message,
        timestamp=timezone.now(),
    )
