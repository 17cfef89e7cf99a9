"""
Billing ledger entries.
A BillingRecord is built from the live draft at save time and never changed afterwards.
"""

from typing import Optional
from uuid import uuid4

from cinco_billing.models.billing import BillingData, BillingRecord, BillSummary, utc_timestamp
from cinco_billing.services.billing.calculator import calculate_bill


def create_billing_record(
    data: BillingData,
    tenant_id: str,
    site_id: str,
    record_id: Optional[str] = None,
    created_at: Optional[str] = None
) -> BillingRecord:
    """
    Creates a ledger entry from the current draft.

    Consumption and total are recomputed from the draft; the full draft is
    stored in the record so the receipt can be reproduced later.

    Args:
        data: Billing draft
        tenant_id: Tenant the bill is for
        site_id: Site of the tenant
        record_id: Identifier (generated when omitted)
        created_at: ISO-8601 timestamp (now when omitted)

    Returns:
        New BillingRecord
    """
    summary = calculate_bill(data)
    return BillingRecord(
        id=record_id or uuid4().hex,
        tenant_id=tenant_id,
        site_id=site_id,
        month=data.billing_month,
        year=data.billing_year,
        electricity_consumption=summary.electricity_consumption,
        water_consumption=summary.water_consumption,
        total_amount=summary.grand_total,
        date=created_at or utc_timestamp(),
        billing_data=data.model_copy(deep=True),
    )


def reproduce_summary(record: BillingRecord) -> Optional[BillSummary]:
    """
    Recomputes the bill from the stored draft.
    Returns None for records saved without a snapshot; rates are never guessed.
    """
    if record.billing_data is None:
        return None
    return calculate_bill(record.billing_data)
