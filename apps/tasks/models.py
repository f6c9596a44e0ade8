import uuid
from django.db import models
from django.utils import timezone


class SyncStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    SYNCED = 'synced', 'Synced'
    ERROR = 'error', 'Error'


class Task(models.Model):
    """
    A to-do item owned by the local replica.

    `id` is assigned by the client so the record keeps its identity across
    replicas; `server_id` is only known once the authority accepts it.
    `updated_at` is set explicitly by the services (never auto_now) because
    it is the last-write-wins signal and must strictly increase.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    completed = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)
    is_deleted = models.BooleanField(default=False, db_index=True)

    # Sync bookkeeping
    sync_status = models.CharField(
        max_length=10,
        choices=SyncStatus.choices,
        default=SyncStatus.PENDING
    )
    server_id = models.CharField(max_length=64, blank=True, null=True)
    last_synced_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.title} ({self.sync_status})"
