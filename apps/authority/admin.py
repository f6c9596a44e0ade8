from django.contrib import admin
from .models import AuthorityTask


@admin.register(AuthorityTask)
class AuthorityTaskAdmin(admin.ModelAdmin):
    list_display = ['task_id', 'id', 'updated_at', 'is_deleted', 'received_at']
    list_filter = ['is_deleted']
    search_fields = ['task_id']
