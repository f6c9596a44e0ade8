"""
JobService - Abstraction layer for background job execution.

The actual backend is chosen by the JOB_BACKEND setting.

Usage:
    from apps.core.job_service import JobService

    # Run a sync cycle outside the request
    job_id = JobService.run_sync_cycle()

Environment Configuration:
    JOB_BACKEND=local   # In-process execution (development, tests)
    JOB_BACKEND=celery  # Celery + Redis
    JOB_BACKEND=lambda  # AWS Lambda + SQS
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict

from django.conf import settings

logger = logging.getLogger(__name__)

RUN_SYNC_CYCLE = "run_sync_cycle"


class JobServiceInterface(ABC):
    """
    Abstract interface for background job execution.

    Implementations:
    - LocalJobService: in-process execution
    - CeleryJobService: Celery + Redis
    - LambdaJobService: AWS Lambda + SQS
    """

    @abstractmethod
    def send_job(
        self,
        job_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        """
        Queue a job for execution.

        Args:
            job_name: Identifier for the job handler
            payload: Keyword arguments for the handler
            delay_seconds: Delay before execution (0 = immediate)

        Returns:
            Job ID for tracking
        """
        pass


def get_backend_name() -> str:
    return getattr(settings, 'JOB_BACKEND', None) or os.getenv('JOB_BACKEND', 'local')


def _get_backend() -> JobServiceInterface:
    """Get the configured job backend."""
    backend = get_backend_name()

    if backend == 'local':
        from apps.core.backends.local_backend import LocalJobService
        return LocalJobService()
    elif backend == 'celery':
        from apps.core.backends.celery_backend import CeleryJobService
        return CeleryJobService()
    elif backend == 'lambda':
        from apps.core.backends.lambda_backend import LambdaJobService
        return LambdaJobService()
    else:
        raise ValueError(f"Unknown JOB_BACKEND: {backend}")


class JobService:
    """Facade for dispatching background jobs to the configured backend."""

    @staticmethod
    def run_sync_cycle() -> str:
        """
        Queue one sync cycle.

        Used by: POST /api/sync?background=true and the periodic schedule.
        Overlapping cycles are refused by the orchestrator's guard, so
        queueing more than one is harmless.
        """
        logger.info("Queueing run_sync_cycle job")
        return _get_backend().send_job(job_name=RUN_SYNC_CYCLE, payload={})
