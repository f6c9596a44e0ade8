from django.contrib import admin
from .models import SyncQueueEntry, DeadLetterEntry, SyncLease


@admin.register(SyncQueueEntry)
class SyncQueueEntryAdmin(admin.ModelAdmin):
    list_display = ['task_id', 'operation', 'status', 'retry_count', 'created_at']
    list_filter = ['status', 'operation']
    search_fields = ['task_id', 'error_message']
    readonly_fields = ['id', 'task_id', 'operation', 'data', 'created_at', 'updated_at']


@admin.register(DeadLetterEntry)
class DeadLetterEntryAdmin(admin.ModelAdmin):
    list_display = ['task_id', 'operation', 'retry_count', 'error_message', 'failed_at']
    list_filter = ['operation']
    search_fields = ['task_id', 'error_message']

    # Terminal records; inspection only
    def has_change_permission(self, request, obj=None):
        return False


@admin.register(SyncLease)
class SyncLeaseAdmin(admin.ModelAdmin):
    list_display = ['name', 'holder', 'acquired_at', 'expires_at']
    readonly_fields = ['name', 'holder', 'acquired_at', 'expires_at']
