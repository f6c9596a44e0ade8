"""
Services for Authority app - the receiving end of batch sync.

Conflict policy (last-write-wins, same signal as the client resolver):
- unknown task            -> store the payload, answer `success`
- stored copy is newer    -> keep it, answer `conflict` with the stored payload
- otherwise               -> store the payload, answer `success`
Items with an unknown operation or an unusable payload get `error`.
"""
import logging
from typing import Any, Dict, List, Optional

from django.db import transaction

from apps.sync.models import Operation
from apps.tasks.dtos import TaskDTO

from .models import AuthorityTask

logger = logging.getLogger(__name__)


class ItemRejected(ValueError):
    """An item the authority refuses to apply."""


def apply_batch(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Apply batch items in order and return one result per item.
    Items without an id cannot be answered and are skipped.
    """
    results = []
    for item in items:
        client_id = item.get('id') if isinstance(item, dict) else None
        if not client_id:
            logger.warning(f"Skipping batch item without id: {item!r}")
            continue
        results.append(_apply_item(str(client_id), item))
    return results


def _apply_item(client_id: str, item: Dict[str, Any]) -> Dict[str, Any]:
    try:
        with transaction.atomic():
            return _apply_item_locked(client_id, item)
    except ItemRejected as e:
        return {'client_id': client_id, 'status': 'error', 'error': str(e)}
    except Exception as e:
        logger.exception(f"Failed to apply batch item {client_id}: {e}")
        return {'client_id': client_id, 'status': 'error', 'error': 'Internal error while applying item'}


def _apply_item_locked(client_id: str, item: Dict[str, Any]) -> Dict[str, Any]:
    operation = item.get('operation')
    if operation not in Operation.values:
        raise ItemRejected(f"Unsupported operation: {operation}")

    task_id = item.get('task_id')
    data = item.get('data')
    if not task_id or not isinstance(data, dict):
        raise ItemRejected("Item has no task_id or data")

    try:
        incoming = TaskDTO.from_payload({**data, 'id': task_id})
    except ValueError as e:
        raise ItemRejected(f"Invalid task data: {e}")

    is_deleted = operation == Operation.DELETE or incoming.is_deleted
    record = AuthorityTask.objects.select_for_update().filter(task_id=incoming.id).first()

    if record is None:
        record = AuthorityTask.objects.create(
            task_id=incoming.id,
            data=data,
            updated_at=incoming.updated_at,
            is_deleted=is_deleted,
        )
        logger.info(f"Authority accepted new task {incoming.id} as {record.server_id}")
        return _success(client_id, record)

    if record.updated_at > incoming.updated_at:
        logger.info(f"Authority holds a newer version of task {incoming.id}; reporting conflict")
        return {
            'client_id': client_id,
            'server_id': record.server_id,
            'status': 'conflict',
            'resolved_data': current_version(record),
        }

    record.data = data
    record.updated_at = incoming.updated_at
    record.is_deleted = is_deleted
    record.save()
    return _success(client_id, record)


def _success(client_id: str, record: AuthorityTask) -> Dict[str, Any]:
    return {'client_id': client_id, 'server_id': record.server_id, 'status': 'success'}


def current_version(record: AuthorityTask) -> Dict[str, Any]:
    """The authority's payload for a task, as sent in conflict results."""
    return {
        **record.data,
        'id': str(record.task_id),
        'updated_at': record.updated_at.isoformat(),
        'is_deleted': record.is_deleted,
        'server_id': record.server_id,
    }


def get_authority_task(task_id) -> Optional[AuthorityTask]:
    try:
        return AuthorityTask.objects.get(task_id=task_id)
    except AuthorityTask.DoesNotExist:
        return None
