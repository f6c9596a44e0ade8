"""
Task Store - persistence boundary consumed by the sync engine.

The sync engine never touches the Task model directly; it receives a
TaskStoreInterface at construction time and only exchanges TaskDTOs with it.

Usage:
    from apps.tasks.store import DjangoTaskStore

    store = DjangoTaskStore()
    task = store.get(task_id)
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from .dtos import TaskDTO
from .models import Task


class TaskStoreInterface(ABC):
    """
    Contract the sync engine relies on.

    Soft delete is expressed as update() with is_deleted=True.
    """

    @abstractmethod
    def get(self, task_id: UUID) -> Optional[TaskDTO]:
        """Return the task (soft-deleted included) or None."""
        pass

    @abstractmethod
    def list_active(self) -> List[TaskDTO]:
        """Return all tasks that are not soft-deleted."""
        pass

    @abstractmethod
    def insert(self, task: TaskDTO) -> None:
        pass

    @abstractmethod
    def update(self, task: TaskDTO) -> bool:
        """Full replace by id. Returns False when no such task exists."""
        pass


def task_to_dto(task: Task) -> TaskDTO:
    return TaskDTO(
        id=task.id,
        title=task.title,
        description=task.description,
        completed=task.completed,
        created_at=task.created_at,
        updated_at=task.updated_at,
        is_deleted=task.is_deleted,
        sync_status=task.sync_status,
        server_id=task.server_id,
        last_synced_at=task.last_synced_at,
    )


def _model_fields(task: TaskDTO) -> dict:
    return {
        'title': task.title,
        'description': task.description,
        'completed': task.completed,
        'created_at': task.created_at,
        'updated_at': task.updated_at,
        'is_deleted': task.is_deleted,
        'sync_status': task.sync_status,
        'server_id': task.server_id,
        'last_synced_at': task.last_synced_at,
    }


class DjangoTaskStore(TaskStoreInterface):
    """Task Store backed by the Django ORM."""

    def get(self, task_id: UUID) -> Optional[TaskDTO]:
        try:
            return task_to_dto(Task.objects.get(id=task_id))
        except Task.DoesNotExist:
            return None

    def list_active(self) -> List[TaskDTO]:
        return [task_to_dto(task) for task in Task.objects.filter(is_deleted=False)]

    def insert(self, task: TaskDTO) -> None:
        Task.objects.create(id=task.id, **_model_fields(task))

    def update(self, task: TaskDTO) -> bool:
        return Task.objects.filter(id=task.id).update(**_model_fields(task)) > 0
