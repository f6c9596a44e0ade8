"""
Tasks API endpoints.

CRUD on the local replica. Every mutation is queued for the next sync
cycle by the service layer.
"""
from typing import List
from uuid import UUID

from django.http import HttpRequest
from django.utils import timezone
from ninja import Router
from ninja.errors import HttpError

from .dtos import DeleteOut, TaskIn, TaskOut, TaskUpdateIn
from .services import create_task, get_task, list_tasks, soft_delete_task, update_task

router = Router(tags=["Tasks"])


@router.get("", response=List[TaskOut])
def list_tasks_api(request: HttpRequest, needs_sync: bool = False):
    """
    List active tasks, newest change first.

    Query Parameters:
    - needs_sync: only tasks still waiting for the authority (pending or error)
    """
    return list_tasks(needs_sync=needs_sync)


@router.get("/{task_id}", response=TaskOut)
def get_task_api(request: HttpRequest, task_id: UUID):
    task = get_task(task_id)
    if task is None:
        raise HttpError(404, "Task not found")
    return task


@router.post("", response={201: TaskOut})
def create_task_api(request: HttpRequest, payload: TaskIn):
    """Create a task. A client-supplied id is kept; otherwise one is generated."""
    try:
        task = create_task(payload)
    except ValueError as e:
        status = 409 if "already exists" in str(e) else 400
        raise HttpError(status, str(e))
    return 201, task


@router.put("/{task_id}", response=TaskOut)
def update_task_api(request: HttpRequest, task_id: UUID, payload: TaskUpdateIn):
    try:
        task = update_task(task_id, payload)
    except ValueError as e:
        raise HttpError(400, str(e))
    if task is None:
        raise HttpError(404, "Task not found")
    return task


@router.delete("/{task_id}", response=DeleteOut)
def delete_task_api(request: HttpRequest, task_id: UUID):
    """Soft delete. The task stays in the database until the authority confirms."""
    if not soft_delete_task(task_id):
        raise HttpError(404, "Task not found")
    return {"success": True, "timestamp": timezone.now()}
