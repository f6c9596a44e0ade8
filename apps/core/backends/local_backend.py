"""
Local Job Backend - in-process execution for development and tests.

No Redis, SQS, or external dependencies required.

Usage:
    Set JOB_BACKEND=local in your .env file.
"""

import logging
import uuid
from typing import Any, Dict

from apps.core.job_service import JobServiceInterface, RUN_SYNC_CYCLE

logger = logging.getLogger(__name__)


# Job handler registry - maps job names to handler functions
JOB_HANDLERS = {}


def register_handler(job_name: str):
    """Decorator to register a job handler."""
    def decorator(func):
        JOB_HANDLERS[job_name] = func
        return func
    return decorator


class LocalJobService(JobServiceInterface):
    """
    Execute jobs synchronously in the calling process.

    Note: the job runs inside the request that queued it, so the response
    waits for it. Only use for development.
    """

    def send_job(
        self,
        job_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        job_id = str(uuid.uuid4())

        logger.info(f"[LOCAL] Executing job {job_name} (id={job_id})")

        if delay_seconds > 0:
            logger.warning(f"[LOCAL] delay_seconds={delay_seconds} ignored in local backend")

        handler = JOB_HANDLERS.get(job_name)
        if handler is None:
            raise ValueError(f"No handler registered for job: {job_name}")

        result = handler(**payload)
        logger.info(f"[LOCAL] Job {job_name} completed: {result}")
        return job_id


# =============================================================================
# Job Handlers
# =============================================================================

@register_handler(RUN_SYNC_CYCLE)
def handle_run_sync_cycle():
    """Run one sync cycle and summarise it."""
    from apps.sync.services import run_sync_cycle

    result = run_sync_cycle()
    return (
        f"success={result.success} synced={result.synced_items} "
        f"failed={result.failed_items} conflicts={result.conflicts}"
    )
