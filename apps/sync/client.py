"""
HTTP client for the remote authority.

Both calls that cross the process boundary live here and both are
time-bounded: the connectivity check and the batch POST.
"""
import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings

from .exceptions import BatchIntegrityError, TransportError
from .integrity import JSON_CONTENT_TYPE, encode_body

logger = logging.getLogger(__name__)

CHECKSUM_MISMATCH = 'Checksum mismatch'


class AuthorityClient:
    """Talks to `{SYNC_AUTHORITY_URL}/health` and `{SYNC_AUTHORITY_URL}/batch`."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        connectivity_timeout: Optional[float] = None,
        batch_timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.SYNC_AUTHORITY_URL).rstrip('/')
        self.connectivity_timeout = connectivity_timeout or settings.SYNC_CONNECTIVITY_TIMEOUT
        self.batch_timeout = batch_timeout or settings.SYNC_BATCH_TIMEOUT
        self._session = session or requests.Session()

    def check_connectivity(self) -> bool:
        """
        Lightweight liveness check.
        Any transport error, timeout or non-2xx answer counts as offline.
        """
        try:
            response = self._session.get(
                f"{self.base_url}/health",
                timeout=self.connectivity_timeout,
            )
        except requests.RequestException as e:
            logger.info(f"Authority unreachable at {self.base_url}: {e}")
            return False
        return 200 <= response.status_code < 300

    def send_batch(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a batch and return the decoded response body.

        Raises:
            BatchIntegrityError: the authority reported a checksum mismatch
            TransportError:      no usable response for any other reason
        """
        try:
            response = self._session.post(
                f"{self.base_url}/batch",
                data=encode_body(payload),
                headers={'Content-Type': JSON_CONTENT_TYPE},
                timeout=self.batch_timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Batch request failed: {e}") from e

        if response.status_code == 400 and CHECKSUM_MISMATCH in _error_text(response):
            raise BatchIntegrityError(CHECKSUM_MISMATCH)

        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"Authority returned HTTP {response.status_code}: {_error_text(response) or 'no detail'}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError("Authority returned a non-JSON response") from e

        if not isinstance(body, dict) or not isinstance(body.get('processed_items'), list):
            raise TransportError("Authority response has no processed_items list")

        return body


def _error_text(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or ''
    if isinstance(body, dict):
        return str(body.get('error') or body.get('detail') or '')
    return ''
