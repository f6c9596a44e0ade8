"""
Sync API endpoints.

Triggers sync cycles and exposes queue / dead-letter state for
inspection.
"""
from typing import List, Optional
from uuid import UUID

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.job_service import JobService, get_backend_name

from .orchestrator import CYCLE_IN_PROGRESS, SERVER_UNREACHABLE
from .schemas import DeadLetterOut, SyncJobOut, SyncResultOut, SyncStatusOut
from .services import get_dead_letter, get_sync_status, list_dead_letters, run_sync_cycle

router = Router(tags=["Sync"])


@router.post("", response={200: SyncResultOut, 202: SyncJobOut, 409: SyncResultOut, 503: SyncResultOut})
def trigger_sync_api(request: HttpRequest, background: bool = False):
    """
    Run one sync cycle.

    Query Parameters:
    - background: queue the cycle on the job backend and return 202 with
      the job id instead of waiting for the result

    Returns 503 with the cycle result when the authority is unreachable,
    and 409 when another cycle is already running.
    """
    if background:
        job_id = JobService.run_sync_cycle()
        return 202, {"job_id": job_id, "backend": get_backend_name()}

    result = run_sync_cycle()
    cycle_errors = {e.error for e in result.errors if e.operation == 'sync'}
    if not result.success and SERVER_UNREACHABLE in cycle_errors:
        return 503, result
    if not result.success and CYCLE_IN_PROGRESS in cycle_errors:
        return 409, result
    return 200, result


@router.get("/status", response=SyncStatusOut)
def sync_status_api(request: HttpRequest):
    """Queue counts, dead-letter count, last successful sync and connectivity."""
    return get_sync_status()


@router.get("/dead-letter", response=List[DeadLetterOut])
def list_dead_letters_api(request: HttpRequest, task_id: Optional[UUID] = None):
    """Entries that exhausted their retries, most recent failure first."""
    return list_dead_letters(task_id=task_id)


@router.get("/dead-letter/{entry_id}", response=DeadLetterOut)
def get_dead_letter_api(request: HttpRequest, entry_id: UUID):
    entry = get_dead_letter(entry_id)
    if entry is None:
        raise HttpError(404, "Dead letter entry not found")
    return entry
