"""
Celery Job Backend - execution via Celery + Redis.

Usage:
    Set JOB_BACKEND=celery in your .env file.
    Requires Redis and a Celery worker running.
"""

import logging
import uuid
from typing import Any, Dict

from apps.core.job_service import JobServiceInterface, RUN_SYNC_CYCLE

logger = logging.getLogger(__name__)


# Job names -> registered Celery task names
CELERY_TASKS = {
    RUN_SYNC_CYCLE: "apps.sync.tasks.run_sync_cycle_task",
}


def _get_celery_task(job_name: str):
    """Get the Celery task for a job name."""
    task_path = CELERY_TASKS.get(job_name)
    if not task_path:
        raise ValueError(f"No Celery task mapped for: {job_name}")

    from celery import current_app
    return current_app.tasks.get(task_path)


class CeleryJobService(JobServiceInterface):
    """Queue jobs on the Celery broker."""

    def send_job(
        self,
        job_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        job_id = str(uuid.uuid4())

        logger.info(f"[CELERY] Queueing job {job_name} (id={job_id})")

        task = _get_celery_task(job_name)
        if task is None:
            logger.error(f"[CELERY] Task not registered: {job_name}")
            raise ValueError(f"Celery task not found: {job_name}")

        options = {'kwargs': payload, 'task_id': job_id}
        if delay_seconds > 0:
            options['countdown'] = delay_seconds
        task.apply_async(**options)

        return job_id
