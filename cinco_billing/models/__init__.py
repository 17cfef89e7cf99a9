"""
Data models - exports all models.
"""

from cinco_billing.models.storage import LocalState
from cinco_billing.models.billing import (
    MONTHS,
    Site,
    Tenant,
    WaterRates,
    BillingData,
    BillSummary,
    BillingRecord,
    SharedData,
)

__all__ = [
    "LocalState",
    "MONTHS",
    "Site",
    "Tenant",
    "WaterRates",
    "BillingData",
    "BillSummary",
    "BillingRecord",
    "SharedData",
]
