"""DTOs for Sync app - values passed between queue, transmitter and orchestrator."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from apps.tasks.dtos import TaskDTO


LAST_WRITE_WINS = 'last-write-wins'


@dataclass(frozen=True)
class SyncQueueEntryDTO:
    id: UUID
    task_id: UUID
    operation: str
    data: Dict[str, Any]
    status: str
    retry_count: int
    error_message: Optional[str]
    created_at: datetime

    def to_wire(self) -> Dict[str, Any]:
        """Representation sent to the authority inside a batch."""
        return {
            'id': str(self.id),
            'task_id': str(self.task_id),
            'operation': self.operation,
            'data': self.data,
            'created_at': self.created_at.isoformat(),
            'retry_count': self.retry_count,
            'error_message': self.error_message,
            'status': self.status,
        }


@dataclass(frozen=True)
class DeadLetterEntryDTO:
    id: UUID
    task_id: UUID
    operation: str
    data: Dict[str, Any]
    retry_count: int
    error_message: Optional[str]
    created_at: datetime
    failed_at: datetime


@dataclass(frozen=True)
class FailureOutcome:
    """Result of SyncQueue.record_failure()."""
    entry_id: UUID
    retry_count: int
    dead_lettered: bool


@dataclass(frozen=True)
class ConflictResolution:
    strategy: str
    resolved_task: TaskDTO


@dataclass(frozen=True)
class SyncErrorDTO:
    task_id: str
    operation: str
    error: str
    timestamp: datetime


@dataclass(frozen=True)
class BatchOutcome:
    """What the transmitter did with one batch."""
    synced: int = 0
    conflicts: int = 0
    failed: int = 0
    dead_lettered: int = 0
    transport_failed: bool = False
    errors: List[SyncErrorDTO] = field(default_factory=list)


@dataclass(frozen=True)
class SyncResult:
    """
    Summary of one sync cycle.
    `synced_items` includes entries settled by conflict resolution.
    """
    success: bool
    synced_items: int
    failed_items: int
    conflicts: int = 0
    dead_lettered: int = 0
    errors: List[SyncErrorDTO] = field(default_factory=list)
