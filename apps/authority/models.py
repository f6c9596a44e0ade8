import uuid
from django.db import models


class AuthorityTask(models.Model):
    """
    The authority's copy of a client task.

    `id` doubles as the server identifier handed back to clients; `task_id`
    is the client-assigned identity the record is matched on.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    task_id = models.UUIDField(unique=True)

    data = models.JSONField(default=dict)
    updated_at = models.DateTimeField(help_text="updated_at of the accepted payload")
    is_deleted = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    received_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']
        verbose_name = "Authority Task"
        verbose_name_plural = "Authority Tasks"

    def __str__(self):
        return f"{self.task_id} -> {self.id}"

    @property
    def server_id(self) -> str:
        return str(self.id)
