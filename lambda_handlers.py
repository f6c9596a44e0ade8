"""
Lambda Handlers - Entry points for AWS Lambda functions.

This module provides Lambda handlers for:
1. SQS Job Processing - Consumes messages sent by the lambda job backend
2. Scheduled Events - EventBridge trigger for the periodic sync cycle
3. Django API (via Mangum) - HTTP requests through API Gateway
"""

import os
import sys
import json
import logging

# Ensure the project root is in the path for Lambda
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Configure Django before importing any models
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

import django
django.setup()

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def sqs_job_handler(event, context):
    """
    AWS Lambda handler for SQS job messages.

    Event structure:
    {
        "Records": [
            {
                "body": "{\"job_id\": \"...\", \"job_name\": \"...\", \"payload\": {...}}"
            }
        ]
    }

    A message with no registered handler is logged and counted as failed.
    Handler exceptions propagate so SQS can redeliver the message or move
    it to the queue's DLQ.
    """
    from apps.core.backends.local_backend import JOB_HANDLERS

    processed = 0
    failed = 0

    for record in event.get('Records', []):
        message = json.loads(record['body'])
        job_id = message.get('job_id', 'unknown')
        job_name = message['job_name']
        payload = message.get('payload', {})

        logger.info(f"Processing job {job_name} (id={job_id})")

        handler = JOB_HANDLERS.get(job_name)
        if handler is None:
            logger.error(f"No handler for job: {job_name}")
            failed += 1
            continue

        try:
            result = handler(**payload)
        except Exception as e:
            logger.exception(f"Job {job_name} (id={job_id}) failed: {e}")
            raise

        logger.info(f"Job {job_name} completed: {result}")
        processed += 1

    return {
        'statusCode': 200,
        'body': json.dumps({
            'processed': processed,
            'failed': failed
        })
    }


def scheduled_sync_cycle(event, context):
    """
    EventBridge scheduled handler: run one sync cycle.

    Schedule: every SYNC_INTERVAL_MINUTES (5 by default)
    """
    from apps.sync.services import run_sync_cycle

    logger.info("Running scheduled sync cycle")
    result = run_sync_cycle()

    return {
        'statusCode': 200,
        'body': json.dumps({
            'success': result.success,
            'synced_items': result.synced_items,
            'failed_items': result.failed_items,
            'conflicts': result.conflicts,
            'dead_lettered': result.dead_lettered,
        })
    }


# =============================================================================
# Django API Handler (Mangum)
# =============================================================================

def api_handler(event, context):
    """
    AWS Lambda handler for HTTP requests via API Gateway.

    Uses Mangum to wrap Django's ASGI application.
    """
    from config.asgi import lambda_handler

    return lambda_handler(event, context)
