"""
Tests for the database-backed cycle lease.
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from apps.sync.lock import CycleLease, SYNC_CYCLE_LEASE
from apps.sync.models import SyncLease


class CycleLeaseTest(TestCase):

    def test_only_one_holder_at_a_time(self):
        first, second = CycleLease(), CycleLease()

        self.assertTrue(first.acquire())
        self.assertFalse(second.acquire())

        first.release()
        self.assertTrue(second.acquire())

    def test_holder_cannot_reacquire_while_held(self):
        lease = CycleLease()
        self.assertTrue(lease.acquire())
        self.assertFalse(lease.acquire())

    def test_expired_lease_can_be_taken_over(self):
        crashed = CycleLease()
        crashed.acquire()
        SyncLease.objects.filter(name=SYNC_CYCLE_LEASE).update(
            expires_at=timezone.now() - timedelta(seconds=1)
        )

        successor = CycleLease()
        self.assertTrue(successor.acquire())
        self.assertTrue(successor.is_held())
        self.assertFalse(crashed.is_held())

    def test_stale_holder_cannot_release_successor(self):
        crashed = CycleLease()
        crashed.acquire()
        SyncLease.objects.filter(name=SYNC_CYCLE_LEASE).update(
            expires_at=timezone.now() - timedelta(seconds=1)
        )
        successor = CycleLease()
        successor.acquire()

        crashed.release()

        self.assertTrue(successor.is_held())
        self.assertFalse(CycleLease().acquire())

    def test_ttl_sets_expiry(self):
        lease = CycleLease(ttl_seconds=60)
        before = timezone.now()
        lease.acquire()

        row = SyncLease.objects.get(name=SYNC_CYCLE_LEASE)
        self.assertEqual(row.holder, lease.token)
        self.assertGreaterEqual(row.expires_at, before + timedelta(seconds=60))

    def test_separate_names_are_independent(self):
        self.assertTrue(CycleLease(name='a').acquire())
        self.assertTrue(CycleLease(name='b').acquire())
