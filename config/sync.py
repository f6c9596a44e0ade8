"""
Sync engine configuration for tasksync.

Every value can be overridden through the environment so the same build
can point at a local authority during development and a remote one in
production.
"""
import os


DEFAULT_AUTHORITY_URL = 'http://localhost:8000/api/authority'


def get_sync_settings() -> dict:
    """
    Returns sync-related settings to be merged into Django settings.

    SYNC_AUTHORITY_URL:        Base URL of the remote authority (no trailing slash)
    SYNC_MAX_RETRIES:          Failures before an entry is dead-lettered
    SYNC_CONNECTIVITY_TIMEOUT: Seconds allowed for the /health check
    SYNC_BATCH_TIMEOUT:        Seconds allowed for the batch POST
    SYNC_INTERVAL_MINUTES:     Period of the scheduled sync cycle
    SYNC_LOCK_TTL:             Seconds a cycle lease lives; must exceed the longest cycle
    """
    return {
        'SYNC_AUTHORITY_URL': os.getenv('SYNC_AUTHORITY_URL', DEFAULT_AUTHORITY_URL).rstrip('/'),
        'SYNC_MAX_RETRIES': int(os.getenv('SYNC_MAX_RETRIES', '3')),
        'SYNC_CONNECTIVITY_TIMEOUT': float(os.getenv('SYNC_CONNECTIVITY_TIMEOUT', '5')),
        'SYNC_BATCH_TIMEOUT': float(os.getenv('SYNC_BATCH_TIMEOUT', '30')),
        'SYNC_INTERVAL_MINUTES': int(os.getenv('SYNC_INTERVAL_MINUTES', '5')),
        'SYNC_LOCK_TTL': float(os.getenv('SYNC_LOCK_TTL', '300')),
    }
