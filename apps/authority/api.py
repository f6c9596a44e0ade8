"""
Authority API endpoints.

The batch endpoint is what AuthorityClient posts to; the health endpoint
is the connectivity check target.
"""
import logging

from django.http import HttpRequest
from django.utils import timezone
from ninja import Router

from apps.sync.integrity import verify_checksum
from apps.sync.schemas import BatchRequestIn, BatchResponseOut, ErrorOut, HealthOut
from .services import apply_batch

logger = logging.getLogger(__name__)

router = Router(tags=["Authority"])


@router.get("/health", response=HealthOut, auth=None)
def health(request: HttpRequest):
    return {"status": "ok", "timestamp": timezone.now()}


@router.post("/batch", response={200: BatchResponseOut, 400: ErrorOut}, auth=None)
def accept_batch(request: HttpRequest, payload: BatchRequestIn):
    """
    Accept a batch of queued mutations.

    The checksum is recomputed over `items` as received; a mismatch rejects
    the whole batch with 400 and nothing is applied.
    """
    if not verify_checksum(payload.items, payload.checksum):
        logger.warning(f"Rejected batch of {len(payload.items)} items: checksum mismatch")
        return 400, {"error": "Checksum mismatch", "processed_items": []}

    return 200, {"processed_items": apply_batch(payload.items)}
