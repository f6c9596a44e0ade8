"""
Lambda Job Backend - sync cycles triggered through SQS.

    POST /api/sync?background=true
        -> JobService.run_sync_cycle()
        -> SQS message {job_id, job_name, payload}
        -> lambda_handlers.sqs_job_handler
        -> JOB_HANDLERS[job_name]  (apps.sync.services.run_sync_cycle)

A Lambda consumer can run several invocations at once, so two queued
cycles may start together; the cycle lease in the database turns the
second into a "Sync already in progress" no-op. On a FIFO queue
(URL ending in ".fifo") every cycle shares one message group, so SQS
also hands them to the consumer one at a time.

Usage:
    Set JOB_BACKEND=lambda in your .env file.

Environment Variables:
    JOB_QUEUE_URL: SQS queue URL for job messages
    AWS_REGION: AWS region (default: us-east-1)
"""

import json
import logging
import os
import uuid
from typing import Any, Dict, Optional

from apps.core.job_service import JobServiceInterface

logger = logging.getLogger(__name__)

# SQS caps DelaySeconds at 15 minutes
MAX_SQS_DELAY = 900
SYNC_MESSAGE_GROUP = 'sync-cycle'


def is_fifo_queue(queue_url: str) -> bool:
    return queue_url.endswith('.fifo')


class LambdaJobService(JobServiceInterface):
    """Queue sync jobs on SQS for lambda_handlers.sqs_job_handler."""

    def __init__(self, sqs_client=None, queue_url: Optional[str] = None):
        self._sqs_client = sqs_client
        self._queue_url = queue_url or os.getenv('JOB_QUEUE_URL')

        if not self._queue_url:
            logger.warning("[LAMBDA] JOB_QUEUE_URL not set; background sync cycles cannot be queued")

    @property
    def sqs_client(self):
        if self._sqs_client is None:
            import boto3
            self._sqs_client = boto3.client('sqs', region_name=os.getenv('AWS_REGION', 'us-east-1'))
        return self._sqs_client

    def build_message(self, job_id: str, job_name: str, payload: Dict[str, Any], delay_seconds: int) -> Dict[str, Any]:
        """send_message() arguments for one job."""
        message = {
            'QueueUrl': self._queue_url,
            'MessageBody': json.dumps({'job_id': job_id, 'job_name': job_name, 'payload': payload}),
            'MessageAttributes': {
                'JobName': {'DataType': 'String', 'StringValue': job_name},
                'JobId': {'DataType': 'String', 'StringValue': job_id},
            },
        }
        if is_fifo_queue(self._queue_url):
            # FIFO queues reject per-message delays; ordering comes from the group
            if delay_seconds:
                logger.warning(f"[LAMBDA] Ignoring delay of {delay_seconds}s for {job_name} on a FIFO queue")
            message['MessageGroupId'] = SYNC_MESSAGE_GROUP
            message['MessageDeduplicationId'] = job_id
        else:
            message['DelaySeconds'] = max(0, min(delay_seconds, MAX_SQS_DELAY))
        return message

    def send_job(
        self,
        job_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        if not self._queue_url:
            raise RuntimeError("JOB_QUEUE_URL environment variable not set.")

        job_id = str(uuid.uuid4())
        message = self.build_message(job_id, job_name, payload, delay_seconds)

        try:
            response = self.sqs_client.send_message(**message)
        except Exception as e:
            logger.exception(f"[LAMBDA] Could not queue {job_name} (id={job_id}): {e}")
            raise

        logger.info(f"[LAMBDA] Queued {job_name} (id={job_id}, MessageId={response['MessageId']})")
        return job_id
