"""Errors raised while talking to the remote authority."""


class SyncError(Exception):
    """Base class for sync engine errors."""


class TransportError(SyncError):
    """The batch got no usable response (network error, timeout, non-2xx)."""


class BatchIntegrityError(TransportError):
    """The authority rejected the batch because the checksum did not match."""
