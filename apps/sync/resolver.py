"""
Conflict Resolver - last-write-wins on `updated_at`.

Ties go to the remote (authority) version, so replicas converge without a
secondary tie-break key. The operation type plays no part: only the task
payloads are compared.
"""
from apps.tasks.dtos import TaskDTO

from .dtos import ConflictResolution, LAST_WRITE_WINS


def resolve_conflict(local_task: TaskDTO, remote_task: TaskDTO) -> ConflictResolution:
    if local_task.updated_at > remote_task.updated_at:
        winner = local_task
    else:
        winner = remote_task

    return ConflictResolution(strategy=LAST_WRITE_WINS, resolved_task=winner)
