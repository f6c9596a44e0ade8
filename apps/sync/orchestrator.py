"""
Sync Orchestrator - runs one sync cycle to completion.

    idle -> checking_connectivity -> draining -> transmitting -> applying_results -> idle

The orchestrator never raises past run_cycle(): every outcome, including
total failure, is reported as a SyncResult. It does not retry within a
cycle; entries that failed stay pending and are picked up by the next one.

At most one cycle runs at a time across every process sharing the
database: the cycle lease (apps.sync.lock) is held from the connectivity
check until the results are applied.
"""
import enum
import logging
from typing import Optional

from django.utils import timezone

from apps.tasks.store import TaskStoreInterface

from .dtos import SyncErrorDTO, SyncResult
from .exceptions import TransportError
from .lock import CycleLease
from .queue import SyncQueue
from .transmitter import BatchTransmitter

logger = logging.getLogger(__name__)

SERVER_UNREACHABLE = 'Server unreachable'
CYCLE_IN_PROGRESS = 'Sync already in progress'


class CyclePhase(str, enum.Enum):
    IDLE = 'idle'
    CHECKING_CONNECTIVITY = 'checking_connectivity'
    DRAINING = 'draining'
    TRANSMITTING = 'transmitting'
    APPLYING_RESULTS = 'applying_results'


def _cycle_error(message: str) -> SyncErrorDTO:
    return SyncErrorDTO(task_id='', operation='sync', error=message, timestamp=timezone.now())


class SyncOrchestrator:
    """
    Wires queue, task store and transmitter together for one cycle at a time.

    `client` must provide check_connectivity() -> bool and is normally the
    same object the transmitter sends batches through.
    """

    def __init__(
        self,
        task_store: TaskStoreInterface,
        queue: SyncQueue,
        transmitter: BatchTransmitter,
        client,
        lock: Optional[CycleLease] = None,
    ):
        self.task_store = task_store
        self.queue = queue
        self.transmitter = transmitter
        self.client = client
        # Each orchestrator is its own would-be holder of the shared lease
        self._lock = lock or CycleLease()
        self.phase = CyclePhase.IDLE

    def _enter(self, phase: CyclePhase) -> None:
        logger.debug(f"Sync cycle: {self.phase.value} -> {phase.value}")
        self.phase = phase

    def run_cycle(self) -> SyncResult:
        try:
            acquired = self._lock.acquire()
        except Exception as e:
            logger.exception(f"Sync cycle could not take the cycle lease: {e}")
            return SyncResult(success=False, synced_items=0, failed_items=0, errors=[_cycle_error(str(e) or 'Unknown sync error')])

        if not acquired:
            logger.info("Sync cycle skipped: another cycle is running")
            return SyncResult(success=False, synced_items=0, failed_items=0, errors=[_cycle_error(CYCLE_IN_PROGRESS)])

        try:
            return self._run_locked()
        except Exception as e:
            logger.exception(f"Sync cycle failed in phase {self.phase.value}: {e}")
            return SyncResult(success=False, synced_items=0, failed_items=0, errors=[_cycle_error(str(e) or 'Unknown sync error')])
        finally:
            self._enter(CyclePhase.IDLE)
            try:
                self._lock.release()
            except Exception as e:
                # The lease expires on its own; the next cycle takes it over
                logger.exception(f"Failed to release the cycle lease: {e}")

    def _run_locked(self) -> SyncResult:
        self._enter(CyclePhase.CHECKING_CONNECTIVITY)
        if not self.client.check_connectivity():
            logger.info("Sync cycle aborted: authority unreachable")
            return SyncResult(success=False, synced_items=0, failed_items=0, errors=[_cycle_error(SERVER_UNREACHABLE)])

        self._enter(CyclePhase.DRAINING)
        # Holding the lease means no live cycle owns these entries
        stale = self.queue.release_in_progress()
        if stale:
            logger.warning(f"Recovered {stale} entries left in-progress by an interrupted cycle")
        entries = self.queue.drain_candidates()
        if not entries:
            return SyncResult(success=True, synced_items=0, failed_items=0)
        self.queue.mark_in_progress(entry.id for entry in entries)

        try:
            self._enter(CyclePhase.TRANSMITTING)
            try:
                results = self.transmitter.send(entries)
            except TransportError as e:
                logger.warning(f"Batch of {len(entries)} entries failed in transport: {e}")
                outcome = self.transmitter.fail_batch(entries, str(e))
            else:
                self._enter(CyclePhase.APPLYING_RESULTS)
                outcome = self.transmitter.apply_results(entries, results)
        finally:
            # Entries the authority did not answer for go back to pending untouched
            unanswered = self.queue.release_in_progress()
            if unanswered:
                logger.warning(f"{unanswered} entries got no result and were returned to the queue")

        result = SyncResult(
            success=not outcome.transport_failed,
            synced_items=outcome.synced,
            failed_items=outcome.failed,
            conflicts=outcome.conflicts,
            dead_lettered=outcome.dead_lettered,
            errors=list(outcome.errors),
        )
        logger.info(
            f"Sync cycle finished: success={result.success} synced={result.synced_items} "
            f"conflicts={result.conflicts} failed={result.failed_items} dead_lettered={result.dead_lettered}"
        )
        return result
