"""
API endpoints for dashboard analytics and transaction history.
All endpoints have prefix /api/reports/
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from cinco_billing.api.deps import get_storage
from cinco_billing.services import reports
from cinco_billing.services.sync.shared_storage import SharedStorage

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/dashboard")
def dashboard(
    year: Optional[str] = None,
    site_id: Optional[str] = None,
    storage: SharedStorage = Depends(get_storage)
):
    """Key metrics for a year (current year by default), optionally for one site."""
    snapshot = storage.get_snapshot()
    return reports.dashboard_summary(
        snapshot.billing_records,
        snapshot.sites,
        snapshot.tenants,
        year=year or str(datetime.now().year),
        site_id=site_id,
    )


@router.get("/transactions")
def transactions(
    month: Optional[str] = None,
    year: Optional[str] = None,
    site_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    search: str = "",
    storage: SharedStorage = Depends(get_storage)
):
    """Filtered billing records grouped by period, newest period first, with totals."""
    snapshot = storage.get_snapshot()
    records = reports.filter_records(
        snapshot.billing_records, snapshot.sites, snapshot.tenants,
        month=month, year=year, site_id=site_id, tenant_id=tenant_id, search=search,
    )
    return {
        "totals": reports.totals(records),
        "groups": [
            {
                "period": period,
                "records": [r.model_dump(mode="json", by_alias=True) for r in group],
            }
            for period, group in reports.group_by_period(records)
        ],
    }
