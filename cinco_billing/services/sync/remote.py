"""
HTTP client for the shared-data endpoint.
GET returns the whole snapshot, POST replaces it.
"""

import logging
from typing import Optional

import requests
from pydantic import ValidationError

from cinco_billing.config import settings
from cinco_billing.core.exceptions import SyncError
from cinco_billing.models.billing import SharedData

logger = logging.getLogger(__name__)


class SharedDataClient:
    """Fetches and pushes SharedData snapshots. No retries: the sync timer retries."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.url = url or settings.shared_data_url
        self.timeout = timeout if timeout is not None else settings.sync_request_timeout
        self.session = session or requests.Session()

    def fetch(self) -> SharedData:
        """
        Downloads the shared snapshot.

        Raises:
            SyncError: endpoint unreachable, non-2xx status or malformed payload
        """
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise SyncError(f"Failed to fetch shared data: {e}") from e

        try:
            return SharedData.model_validate(payload)
        except ValidationError as e:
            raise SyncError(f"Malformed shared data payload: {e.error_count()} error(s)") from e

    def push(self, data: SharedData) -> None:
        """
        Replaces the shared snapshot on the endpoint.

        Raises:
            SyncError: endpoint unreachable or non-2xx status
        """
        try:
            response = self.session.post(
                self.url,
                json=data.model_dump(mode="json", by_alias=True),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise SyncError(f"Failed to push shared data: {e}") from e
        logger.debug("Pushed shared data to %s", self.url)

    def close(self):
        self.session.close()
