"""
Sync cycle lease - single-flight guard shared by every process.

Cycles can start from the web process, Celery workers and Lambda, so the
guard lives in the database all of them share. Acquiring is one
conditional UPDATE, which the database applies atomically; no transaction
is held open while the cycle talks to the authority.

Usage:
    lease = CycleLease()
    if lease.acquire():
        try:
            ...
        finally:
            lease.release()
"""
import logging
import uuid
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from .models import SyncLease

logger = logging.getLogger(__name__)

SYNC_CYCLE_LEASE = 'sync-cycle'
DEFAULT_LEASE_SECONDS = 300


class CycleLease:
    """
    One instance per would-be holder. `ttl_seconds` must outlive the
    longest cycle (connectivity timeout + batch timeout + apply time).
    """

    def __init__(self, name: str = SYNC_CYCLE_LEASE, ttl_seconds: Optional[float] = None):
        self.name = name
        self.ttl = timedelta(seconds=ttl_seconds or getattr(settings, 'SYNC_LOCK_TTL', DEFAULT_LEASE_SECONDS))
        self.token = uuid.uuid4().hex

    def acquire(self) -> bool:
        """Take the lease if it is free or expired. Never blocks."""
        now = timezone.now()
        SyncLease.objects.get_or_create(name=self.name)

        free_or_expired = Q(holder__isnull=True) | Q(expires_at__lte=now)
        expired_holder = (
            SyncLease.objects.filter(name=self.name, holder__isnull=False, expires_at__lte=now)
            .values_list('holder', flat=True)
            .first()
        )

        taken = SyncLease.objects.filter(free_or_expired, name=self.name).update(
            holder=self.token,
            acquired_at=now,
            expires_at=now + self.ttl,
        )
        if taken and expired_holder:
            logger.warning(f"Took over expired lease {self.name} from holder {expired_holder}")
        return taken > 0

    def release(self) -> None:
        # Filtered by token so a holder whose lease expired cannot free a successor's
        SyncLease.objects.filter(name=self.name, holder=self.token).update(
            holder=None, expires_at=None,
        )

    def is_held(self) -> bool:
        return SyncLease.objects.filter(
            name=self.name, holder=self.token, expires_at__gt=timezone.now()
        ).exists()
