from celery import shared_task
import logging

from apps.sync.services import run_sync_cycle

logger = logging.getLogger(__name__)


@shared_task
def run_sync_cycle_task():
    """
    Run one sync cycle on a Celery worker.

    Queued by JobService (celery backend) and by the beat schedule.
    The orchestrator never raises; a cycle refused by the single-flight
    guard comes back as an unsuccessful result and is only logged.
    """
    result = run_sync_cycle()

    if not result.success:
        reasons = "; ".join(e.error for e in result.errors[:3])
        logger.warning(f"Scheduled sync cycle did not complete: {reasons}")

    return {
        'success': result.success,
        'synced_items': result.synced_items,
        'failed_items': result.failed_items,
        'conflicts': result.conflicts,
        'dead_lettered': result.dead_lettered,
    }
