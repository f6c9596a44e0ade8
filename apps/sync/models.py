import uuid
from django.db import models
from django.utils import timezone


class Operation(models.TextChoices):
    CREATE = 'create', 'Create'
    UPDATE = 'update', 'Update'
    DELETE = 'delete', 'Delete'


class QueueStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in-progress', 'In Progress'
    SYNCED = 'synced', 'Synced'


class SyncQueueEntry(models.Model):
    """
    A local mutation waiting to be sent to the authority.

    `data` is a snapshot of the task payload at enqueue time, not a live
    reference. Only the sync orchestrator changes status/retry fields.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    task_id = models.UUIDField(db_index=True)  # No FK - looked up by id

    operation = models.CharField(max_length=10, choices=Operation.choices)
    data = models.JSONField(default=dict)

    status = models.CharField(
        max_length=15,
        choices=QueueStatus.choices,
        default=QueueStatus.PENDING,
        db_index=True
    )
    retry_count = models.PositiveIntegerField(default=0)
    error_message = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['task_id', 'created_at']
        verbose_name = "Sync Queue Entry"
        verbose_name_plural = "Sync Queue"

    def __str__(self):
        return f"{self.operation} {self.task_id} ({self.status}, retries={self.retry_count})"


class DeadLetterEntry(models.Model):
    """
    A queue entry that exhausted its retries.
    Kept for manual inspection; never moved back into the active queue.
    """
    id = models.UUIDField(primary_key=True, editable=False)  # Same id as the queue entry
    task_id = models.UUIDField(db_index=True)

    operation = models.CharField(max_length=10, choices=Operation.choices)
    data = models.JSONField(default=dict)
    retry_count = models.PositiveIntegerField(default=0)
    error_message = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField()
    failed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-failed_at']
        verbose_name = "Dead Letter Entry"
        verbose_name_plural = "Dead Letter Queue"

    def __str__(self):
        return f"{self.operation} {self.task_id} failed at {self.failed_at}"


class SyncLease(models.Model):
    """
    Cross-process guard for sync cycles.

    One row per lease name. A process holds the lease while `holder` is its
    token and `expires_at` is in the future; an expired lease may be taken
    over, which is how a cycle killed mid-flight gets recovered.
    """
    name = models.CharField(max_length=50, primary_key=True)
    holder = models.CharField(max_length=64, blank=True, null=True)
    acquired_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"{self.name} held by {self.holder or '-'} until {self.expires_at}"
