"""
URL configuration for tasksync.
"""
from django.contrib import admin
from django.urls import path
from ninja import NinjaAPI

api = NinjaAPI(
    title="tasksync API",
    version="1.0.0",
    description="Task tracking with offline-first synchronization",
    docs_url="/docs",
)

from apps.tasks.api import router as tasks_router
from apps.sync.api import router as sync_router
from apps.authority.api import router as authority_router

api.add_router("/tasks/", tasks_router)
api.add_router("/sync/", sync_router)
api.add_router("/authority/", authority_router)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', api.urls),
]
