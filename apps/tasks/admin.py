from django.contrib import admin
from .models import Task


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'completed', 'sync_status', 'is_deleted', 'updated_at', 'last_synced_at']
    list_filter = ['sync_status', 'completed', 'is_deleted']
    search_fields = ['title', 'description', 'server_id']
    readonly_fields = ['id', 'created_at', 'updated_at', 'server_id', 'last_synced_at']
