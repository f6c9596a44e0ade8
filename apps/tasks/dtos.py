"""DTOs for Tasks app - used by the sync engine and the API layer."""
from dataclasses import dataclass, asdict
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Optional
from uuid import UUID

from django.utils.dateparse import parse_datetime
from ninja import Schema


def _coerce_datetime(value) -> Optional[datetime]:
    """Accept datetimes or ISO-8601 strings; naive values are taken as UTC."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = parse_datetime(str(value))
        if parsed is None:
            raise ValueError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class TaskDTO:
    """
    Point-in-time copy of a Task.

    This is what the Task Store hands out and accepts, and what gets
    snapshotted into sync queue entries (via to_payload()).
    """
    id: UUID
    title: str
    description: Optional[str]
    completed: bool
    created_at: datetime
    updated_at: datetime
    is_deleted: bool = False
    sync_status: str = 'pending'
    server_id: Optional[str] = None
    last_synced_at: Optional[datetime] = None

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe dict used for queue snapshots and the wire format."""
        payload = asdict(self)
        payload['id'] = str(self.id)
        payload['created_at'] = _isoformat(self.created_at)
        payload['updated_at'] = _isoformat(self.updated_at)
        payload['last_synced_at'] = _isoformat(self.last_synced_at)
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'TaskDTO':
        """
        Build a TaskDTO from a snapshot or an authority-supplied payload.

        Raises ValueError when id or updated_at is missing or malformed.
        """
        if not data.get('id'):
            raise ValueError("Task payload has no id")
        updated_at = _coerce_datetime(data.get('updated_at'))
        if updated_at is None:
            raise ValueError("Task payload has no updated_at")

        return cls(
            id=data['id'] if isinstance(data['id'], UUID) else UUID(str(data['id'])),
            title=data.get('title') or '',
            description=data.get('description'),
            completed=bool(data.get('completed', False)),
            created_at=_coerce_datetime(data.get('created_at')) or updated_at,
            updated_at=updated_at,
            is_deleted=bool(data.get('is_deleted', False)),
            sync_status=data.get('sync_status') or 'pending',
            server_id=data.get('server_id'),
            last_synced_at=_coerce_datetime(data.get('last_synced_at')),
        )


# =============================================================================
# API Schemas
# =============================================================================

class TaskIn(Schema):
    title: str
    description: Optional[str] = None
    completed: bool = False
    # Client-assigned identity; generated when omitted
    id: Optional[UUID] = None


class TaskUpdateIn(Schema):
    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None


class TaskOut(Schema):
    id: UUID
    title: str
    description: Optional[str] = None
    completed: bool
    created_at: datetime
    updated_at: datetime
    is_deleted: bool
    sync_status: str
    server_id: Optional[str] = None
    last_synced_at: Optional[datetime] = None


class DeleteOut(Schema):
    success: bool
    timestamp: datetime
