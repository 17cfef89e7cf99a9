"""
Local persisted state on SQLAlchemy.
Each collection is stored as one JSON document and read/written wholesale.
"""

import json
import logging
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker

from cinco_billing.core.database import SessionLocal
from cinco_billing.models.billing import BillingData, BillingRecord, SharedData, Site, Tenant
from cinco_billing.models.storage import LocalState

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

SITES_KEY = "sites"
TENANTS_KEY = "tenants"
BILLING_RECORDS_KEY = "billingRecords"
BILLING_DATA_KEY = "billingData"
SHARED_DATA_KEY = "sharedData"
LAST_SYNC_TIME_KEY = "lastSyncTime"


class LocalStore:
    """Key/value JSON store for sites, tenants, billing records and the draft."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def get(self, key: str, default: Any = None) -> Any:
        db = self.session_factory()
        try:
            row = db.get(LocalState, key)
            if row is None:
                return default
            return json.loads(row.value)
        finally:
            db.close()

    def set(self, key: str, value: Any) -> None:
        db = self.session_factory()
        try:
            payload = json.dumps(value)
            row = db.get(LocalState, key)
            if row is None:
                db.add(LocalState(key=key, value=payload))
            else:
                row.value = payload
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _get_models(self, key: str, model: Type[M]) -> List[M]:
        return [model.model_validate(item) for item in self.get(key, [])]

    def _set_models(self, key: str, items: List[BaseModel]) -> None:
        self.set(key, [item.model_dump(mode="json", by_alias=True) for item in items])

    # ========== COLLECTIONS ==========

    def get_sites(self) -> List[Site]:
        return self._get_models(SITES_KEY, Site)

    def set_sites(self, sites: List[Site]) -> None:
        self._set_models(SITES_KEY, sites)

    def get_tenants(self) -> List[Tenant]:
        return self._get_models(TENANTS_KEY, Tenant)

    def set_tenants(self, tenants: List[Tenant]) -> None:
        self._set_models(TENANTS_KEY, tenants)

    def get_billing_records(self) -> List[BillingRecord]:
        return self._get_models(BILLING_RECORDS_KEY, BillingRecord)

    def set_billing_records(self, records: List[BillingRecord]) -> None:
        self._set_models(BILLING_RECORDS_KEY, records)

    def get_current_data(self) -> SharedData:
        """Reads the three local collections as one snapshot."""
        return SharedData(
            sites=self.get_sites(),
            tenants=self.get_tenants(),
            billing_records=self.get_billing_records(),
        )

    def update_collections(self, data: SharedData) -> None:
        """Overwrites the three local collections with the snapshot's."""
        self.set_sites(data.sites)
        self.set_tenants(data.tenants)
        self.set_billing_records(data.billing_records)

    # ========== DRAFT ==========

    def get_billing_data(self) -> Optional[BillingData]:
        raw = self.get(BILLING_DATA_KEY)
        return BillingData.model_validate(raw) if raw is not None else None

    def set_billing_data(self, data: BillingData) -> None:
        self.set(BILLING_DATA_KEY, data.model_dump(mode="json", by_alias=True))

    # ========== SHARED CACHE ==========

    def get_shared_data(self) -> Optional[SharedData]:
        raw = self.get(SHARED_DATA_KEY)
        return SharedData.model_validate(raw) if raw is not None else None

    def set_shared_data(self, data: SharedData) -> None:
        self.set(SHARED_DATA_KEY, data.model_dump(mode="json", by_alias=True))

    def get_last_sync_time(self) -> int:
        """Epoch milliseconds of the last cache sync by any session (0 when never)."""
        value = self.get(LAST_SYNC_TIME_KEY)
        try:
            return int(value) if value is not None else 0
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed lastSyncTime: %r", value)
            return 0

    def set_last_sync_time(self, value: int) -> None:
        self.set(LAST_SYNC_TIME_KEY, str(value))
