"""
Shared storage service - keeps the local collections in step with the shared-data endpoint.

Responsibilities:
- Public read/write access to sites, tenants, billing records and the draft
- Recurring sync job on APScheduler (explicit start/stop lifecycle)
- Single-flight ticks: a tick that finds another one in flight is skipped
- Fallback to the locally cached shared snapshot when the endpoint is unreachable
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from cinco_billing.config import settings
from cinco_billing.core.exceptions import SyncError
from cinco_billing.models.billing import BillingData, BillingRecord, SharedData, Site, Tenant, utc_timestamp
from cinco_billing.services.sync.local_store import LocalStore
from cinco_billing.services.sync.merge import merge_data
from cinco_billing.services.sync.remote import SharedDataClient

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "shared-storage-sync"
SYNC_NOW_JOB_ID = "shared-storage-sync-now"

STATUS_REMOTE = "remote"
STATUS_LOCAL_CACHE = "local-cache"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SyncResult:
    """Outcome of one sync tick."""
    status: str
    sites: int = 0
    tenants: int = 0
    billing_records: int = 0
    error: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.status == STATUS_SKIPPED

    @classmethod
    def from_data(cls, status: str, data: SharedData, error: Optional[str] = None) -> "SyncResult":
        return cls(
            status=status,
            sites=len(data.sites),
            tenants=len(data.tenants),
            billing_records=len(data.billing_records),
            error=error,
        )


class SharedStorage:
    """Local collections plus periodic union-by-id sync with the shared endpoint."""

    def __init__(
        self,
        store: Optional[LocalStore] = None,
        client: Optional[SharedDataClient] = None,
        interval_seconds: Optional[float] = None,
        clock: Callable[[], int] = _epoch_ms
    ):
        self.store = store or LocalStore()
        self.client = client or SharedDataClient()
        self.interval_seconds = interval_seconds if interval_seconds is not None else settings.sync_interval_seconds
        self.clock = clock

        self._scheduler: Optional[BackgroundScheduler] = None
        self._sync_lock = threading.Lock()   # single-flight for ticks
        self._state_lock = threading.RLock()  # local read-modify-write
        self._last_sync_time = 0
        self.last_result: Optional[SyncResult] = None

    # ========== LIFECYCLE ==========

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Starts the recurring sync job."""
        if self.running:
            logger.warning("Shared storage sync is already running")
            return

        self._scheduler = BackgroundScheduler(job_defaults={
            'coalesce': True,
            'max_instances': 1,
        })
        self._scheduler.add_job(
            self.sync_data,
            IntervalTrigger(seconds=self.interval_seconds),
            id=SYNC_JOB_ID,
            name="Shared storage sync",
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Shared storage sync started (every %ss, endpoint %s)",
                    self.interval_seconds, self.client.url)

    def stop(self) -> None:
        """Cancels the recurring sync job."""
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Shared storage sync stopped")

    def destroy(self) -> None:
        """Stops the sync job and releases the HTTP session."""
        self.stop()
        self.client.close()

    # ========== SYNC ==========

    def request_sync(self) -> Optional[SyncResult]:
        """
        Triggers a sync after a local mutation.
        Runs on the scheduler when it is running, otherwise inline.
        """
        if self.running:
            self._scheduler.add_job(self.sync_data, id=SYNC_NOW_JOB_ID, replace_existing=True)
            return None
        return self.sync_data()

    def sync_data(self) -> SyncResult:
        """
        One sync tick. Never raises.

        Fetches the remote snapshot, merges it into the local collections
        (local wins on shared ids), writes the result locally and pushes it
        back. Falls back to the local shared cache when the endpoint fails.
        """
        if not self._sync_lock.acquire(blocking=False):
            logger.debug("Sync already in flight, skipping tick")
            return SyncResult(status=STATUS_SKIPPED)
        try:
            result = self._sync_once()
        except Exception as e:
            logger.exception("Sync error: %s", e)
            result = SyncResult(status=STATUS_FAILED, error=str(e))
        finally:
            self._sync_lock.release()
        self.last_result = result
        return result

    def _sync_once(self) -> SyncResult:
        try:
            remote = self.client.fetch()
        except SyncError as e:
            logger.info("Shared endpoint not available, using local cache sync: %s", e)
            return self.sync_with_local_cache(error=str(e))

        with self._state_lock:
            merged = merge_data(remote, self.store.get_current_data())
            self.store.update_collections(merged)

        try:
            self.client.push(merged)
        except SyncError as e:
            logger.warning("Merged locally but push failed: %s", e)
            return SyncResult.from_data(STATUS_REMOTE, merged, error=str(e))

        return SyncResult.from_data(STATUS_REMOTE, merged)

    def sync_with_local_cache(self, error: Optional[str] = None) -> SyncResult:
        """
        Merges the cached shared snapshot when another session stamped it after
        this instance's last sync, then refreshes the cache from local data.
        """
        with self._state_lock:
            current = self.store.get_current_data()
            stored_sync_time = self.store.get_last_sync_time()

            if stored_sync_time > self._last_sync_time:
                cached = self.store.get_shared_data()
                if cached is not None:
                    current = merge_data(cached, current)
                    self.store.update_collections(current)
                    logger.info("Merged cached shared snapshot from %s", cached.last_updated)

            snapshot = current.model_copy(update={"last_updated": utc_timestamp()})
            self.store.set_shared_data(snapshot)

            now = self.clock()
            self.store.set_last_sync_time(now)
            self._last_sync_time = now

        return SyncResult.from_data(STATUS_LOCAL_CACHE, snapshot, error=error)

    # ========== PUBLIC ACCESS ==========

    def locked(self) -> threading.RLock:
        """
        Lock for read-modify-write sequences over the local collections.
        Save with sync=False while holding it and call request_sync() after release.
        """
        return self._state_lock

    def get_sites(self) -> List[Site]:
        return self.store.get_sites()

    def get_tenants(self) -> List[Tenant]:
        return self.store.get_tenants()

    def get_billing_records(self) -> List[BillingRecord]:
        return self.store.get_billing_records()

    def get_snapshot(self) -> SharedData:
        return self.store.get_current_data()

    def save_sites(self, sites: List[Site], sync: bool = True) -> None:
        with self._state_lock:
            self.store.set_sites(sites)
        if sync:
            self.request_sync()

    def save_tenants(self, tenants: List[Tenant], sync: bool = True) -> None:
        with self._state_lock:
            self.store.set_tenants(tenants)
        if sync:
            self.request_sync()

    def save_billing_records(self, records: List[BillingRecord], sync: bool = True) -> None:
        with self._state_lock:
            self.store.set_billing_records(records)
        if sync:
            self.request_sync()

    def add_billing_record(self, record: BillingRecord) -> None:
        """Appends a ledger entry and saves the collection."""
        with self._state_lock:
            records = self.store.get_billing_records()
            records.append(record)
            self.store.set_billing_records(records)
        self.request_sync()

    def get_billing_data(self) -> BillingData:
        """Current draft, or a fresh one with default rates."""
        return self.store.get_billing_data() or BillingData()

    def save_billing_data(self, data: BillingData) -> None:
        self.store.set_billing_data(data)
