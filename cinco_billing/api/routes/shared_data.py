"""
Shared-data endpoint.
Holds one in-memory snapshot; every POST replaces it wholesale (last writer wins).
All endpoints have prefix /api/shared-data
"""

import logging
import threading

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from cinco_billing.models.billing import SharedData, utc_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shared-data", tags=["shared-data"])


class SharedSnapshot:
    """Process-wide snapshot held by the endpoint. No versioning or partial updates."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data = SharedData()

    def get(self) -> SharedData:
        with self._lock:
            return self._data

    def replace(self, data: SharedData) -> SharedData:
        with self._lock:
            self._data = data.model_copy(update={"last_updated": utc_timestamp()})
            return self._data


def _snapshot(request: Request) -> SharedSnapshot:
    return request.app.state.shared_snapshot


@router.get("")
def get_shared_data(request: Request):
    """Returns the whole shared snapshot."""
    return _snapshot(request).get().model_dump(mode="json", by_alias=True)


@router.post("")
async def replace_shared_data(request: Request):
    """Replaces the shared snapshot and stamps lastUpdated with the receive time."""
    try:
        payload = await request.json()
        data = SharedData.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.warning("Rejected shared data update: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to update shared data"})

    stored = _snapshot(request).replace(data)
    return {"success": True, "data": stored.model_dump(mode="json", by_alias=True)}
