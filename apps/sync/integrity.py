"""
Batch integrity digest.

The client serializes the batch body once, compactly and in insertion
order, with `items` as its first member; the checksum is SHA-256 over
exactly that `items` text. The authority re-serializes the parsed items
the same way (JSON parsing keeps member order), so an untouched body
reproduces the hashed bytes. This detects truncated or corrupted
batches; it is not a signature.
"""
import hmac
import json
from hashlib import sha256
from typing import Any, Dict, List

from django.core.serializers.json import DjangoJSONEncoder

JSON_CONTENT_TYPE = 'application/json'


def _dumps(value: Any) -> str:
    return json.dumps(value, cls=DjangoJSONEncoder, separators=(',', ':'), ensure_ascii=False)


def serialize_items(items: List[Any]) -> str:
    """The `items` array as it appears inside the request body."""
    return _dumps(items)


def compute_checksum(items: List[Any]) -> str:
    """Hex-encoded SHA-256 over the serialized items."""
    return sha256(serialize_items(items).encode('utf-8')).hexdigest()


def verify_checksum(items: List[Any], checksum: str) -> bool:
    if not isinstance(checksum, str):
        return False
    return hmac.compare_digest(compute_checksum(items), checksum.lower())


def encode_body(payload: Dict[str, Any]) -> bytes:
    """UTF-8 request body; its `items` member is byte-for-byte serialize_items(items)."""
    return _dumps(payload).encode('utf-8')
