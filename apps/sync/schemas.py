"""
Schemas for the sync wire format and the sync API responses.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from ninja import Schema


# =============================================================================
# Batch wire format (client <-> authority)
# =============================================================================

class BatchRequestIn(Schema):
    items: List[Dict[str, Any]]
    client_timestamp: Optional[datetime] = None
    checksum: str


class BatchItemResultOut(Schema):
    client_id: str
    server_id: Optional[str] = None
    status: str  # success | conflict | error
    resolved_data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class BatchResponseOut(Schema):
    processed_items: List[BatchItemResultOut]


class ErrorOut(Schema):
    error: str
    processed_items: List[BatchItemResultOut] = []


class HealthOut(Schema):
    status: str
    timestamp: datetime


# =============================================================================
# Sync API
# =============================================================================

class SyncErrorOut(Schema):
    task_id: str
    operation: str
    error: str
    timestamp: datetime


class SyncResultOut(Schema):
    success: bool
    synced_items: int
    failed_items: int
    conflicts: int = 0
    dead_lettered: int = 0
    errors: List[SyncErrorOut] = []


class SyncJobOut(Schema):
    job_id: str
    backend: str


class SyncStatusOut(Schema):
    pending_sync_count: int
    in_progress: int
    synced: int
    error: int
    failed: int
    dead_letter: int
    last_sync_timestamp: Optional[datetime] = None
    is_online: bool
    sync_queue_size: int


class DeadLetterOut(Schema):
    id: UUID
    task_id: UUID
    operation: str
    data: Dict[str, Any]
    retry_count: int
    error_message: Optional[str] = None
    created_at: datetime
    failed_at: datetime
