"""
API endpoints for bill calculation, the billing ledger and receipt export.
All endpoints have prefix /api/billing/
"""

import logging
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import Response

from cinco_billing.api.deps import get_storage
from cinco_billing.core.exceptions import ExportError
from cinco_billing.models.billing import BillingData, BillingRecord, BillSummary, CamelModel
from cinco_billing.services.billing import bill_generator
from cinco_billing.services.billing.calculator import calculate_bill, validate_billing_data
from cinco_billing.services.billing.ledger import create_billing_record, reproduce_summary
from cinco_billing.services.sync.shared_storage import SharedStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/billing", tags=["billing"])

MEDIA_TYPES = {"pdf": "application/pdf", "png": "image/png"}


class ReceiptLine(CamelModel):
    label: str
    value: str


class CalculationOut(CamelModel):
    summary: BillSummary
    warnings: List[str]
    receipt: List[ReceiptLine]


class SaveRecordIn(CamelModel):
    """Ledger save request; the stored draft is used when billingData is omitted."""
    tenant_id: str
    site_id: str
    billing_data: Optional[BillingData] = None


class SaveRecordOut(CamelModel):
    record: BillingRecord
    warnings: List[str]


def _calculation(data: BillingData) -> CalculationOut:
    summary = calculate_bill(data)
    return CalculationOut(
        summary=summary,
        warnings=validate_billing_data(data),
        receipt=[ReceiptLine(label=label, value=value)
                 for label, value in bill_generator.receipt_lines(data, summary)],
    )


def _find_record(storage: SharedStorage, record_id: str) -> BillingRecord:
    record = next((r for r in storage.get_billing_records() if r.id == record_id), None)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Billing record '{record_id}' not found")
    return record


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and the UTF-8 name (RFC 6266)."""
    fallback = filename.encode("ascii", "ignore").decode("ascii")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _export(data: BillingData, fmt: str) -> Response:
    if fmt not in MEDIA_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {fmt}")
    try:
        if fmt == "pdf":
            content = bill_generator.generate_receipt_pdf(data)
        else:
            content = bill_generator.generate_receipt_png(data)
    except ExportError as e:
        raise HTTPException(status_code=500, detail=str(e))

    filename = bill_generator.export_filename(data, fmt)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": _content_disposition(filename)},
    )


# ========== CALCULATION ==========

@router.post("/calculate", response_model=CalculationOut)
def calculate(data: BillingData):
    """Calculates all amounts for a draft. Warnings do not block the calculation."""
    return _calculation(data)


# ========== DRAFT ==========

@router.get("/draft", response_model=BillingData)
def get_draft(storage: SharedStorage = Depends(get_storage)):
    """Current billing draft (defaults when none was saved)."""
    return storage.get_billing_data()


@router.put("/draft", response_model=CalculationOut)
def save_draft(data: BillingData, storage: SharedStorage = Depends(get_storage)):
    """Stores the draft and returns its calculation."""
    storage.save_billing_data(data)
    return _calculation(data)


# ========== LEDGER ==========

@router.get("/records", response_model=List[BillingRecord])
def list_records(storage: SharedStorage = Depends(get_storage)):
    """All billing records, newest first."""
    return sorted(storage.get_billing_records(), key=lambda r: r.date, reverse=True)


@router.post("/records", response_model=SaveRecordOut, status_code=201)
def save_record(payload: SaveRecordIn, storage: SharedStorage = Depends(get_storage)):
    """
    Appends a billing record built from the draft.
    The total is recomputed from the draft; the draft is stored in the record.
    """
    data = payload.billing_data or storage.get_billing_data()
    record = create_billing_record(data, tenant_id=payload.tenant_id, site_id=payload.site_id)
    storage.add_billing_record(record)
    logger.info("Billing record %s saved for tenant %s (%s %s)",
                record.id, record.tenant_id, record.month, record.year)
    return SaveRecordOut(record=record, warnings=validate_billing_data(data))


@router.get("/records/{record_id}", response_model=BillingRecord)
def get_record(record_id: str, storage: SharedStorage = Depends(get_storage)):
    return _find_record(storage, record_id)


@router.get("/records/{record_id}/summary", response_model=BillSummary)
def get_record_summary(record_id: str, storage: SharedStorage = Depends(get_storage)):
    """Recomputes the bill from the record's stored draft."""
    summary = reproduce_summary(_find_record(storage, record_id))
    if summary is None:
        raise HTTPException(status_code=422, detail="Record was saved without billing data; cannot reproduce")
    return summary


# ========== EXPORT ==========

@router.post("/export/{fmt}")
def export_draft(fmt: str, data: Optional[BillingData] = Body(default=None),
                 storage: SharedStorage = Depends(get_storage)):
    """Exports the given draft (or the stored one) as PDF or PNG."""
    return _export(data or storage.get_billing_data(), fmt)


@router.get("/records/{record_id}/export/{fmt}")
def export_record(record_id: str, fmt: str, storage: SharedStorage = Depends(get_storage)):
    """Exports a saved record's receipt from its stored draft."""
    record = _find_record(storage, record_id)
    if record.billing_data is None:
        raise HTTPException(status_code=422, detail="Record was saved without billing data; cannot export")
    return _export(record.billing_data, fmt)
