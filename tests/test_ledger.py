"""
Tests for billing record creation and reproduction.
"""

import pytest
from pydantic import ValidationError

from cinco_billing.models.billing import BillingData, BillingRecord, WaterRates
from cinco_billing.services.billing.ledger import create_billing_record, reproduce_summary


def draft(**overrides) -> BillingData:
    values = dict(
        site_name="Laguna", unit="A-101", tenant_name="Juan Dela Cruz",
        billing_month="March", billing_year="2025",
        electricity_previous=100, electricity_current=175, electricity_price_per_kwh=12.5,
        water_previous=500, water_current=535,
        water_rates=WaterRates(first10=150, next10=25, next10_2=30, above30=35),
        base_rent=15000,
    )
    values.update(overrides)
    return BillingData(**values)


class TestCreateBillingRecord:

    def test_derived_fields(self):
        record = create_billing_record(draft(), tenant_id="t1", site_id="s1")
        assert record.tenant_id == "t1"
        assert record.site_id == "s1"
        assert record.month == "March"
        assert record.year == "2025"
        assert record.electricity_consumption == 75
        assert record.water_consumption == 35
        assert record.total_amount == 16812.5
        assert record.date.endswith("Z")

    def test_generated_ids_are_unique(self):
        first = create_billing_record(draft(), "t1", "s1")
        second = create_billing_record(draft(), "t1", "s1")
        assert first.id != second.id

    def test_explicit_id_and_timestamp(self):
        record = create_billing_record(draft(), "t1", "s1", record_id="r-1",
                                       created_at="2025-03-31T10:00:00.000Z")
        assert record.id == "r-1"
        assert record.date == "2025-03-31T10:00:00.000Z"

    def test_snapshot_cannot_be_changed(self):
        record = create_billing_record(draft(), "t1", "s1")
        with pytest.raises(ValidationError):
            record.billing_data.base_rent = 1
        with pytest.raises(ValidationError):
            record.billing_data.water_rates.first10 = 0
        assert reproduce_summary(record).grand_total == 16812.5

    def test_record_is_immutable(self):
        record = create_billing_record(draft(), "t1", "s1")
        with pytest.raises(ValidationError):
            record.total_amount = 0


class TestReproduceSummary:

    def test_matches_saved_total(self):
        record = create_billing_record(draft(parking_enabled=True, other_fee_amount=100), "t1", "s1")
        summary = reproduce_summary(record)
        assert summary.grand_total == record.total_amount
        assert summary.water_total == 875

    def test_survives_storage_round_trip(self):
        record = create_billing_record(draft(), "t1", "s1")
        restored = BillingRecord.model_validate(record.model_dump(mode="json", by_alias=True))
        assert reproduce_summary(restored).grand_total == record.total_amount

    def test_legacy_record_without_snapshot(self):
        record = BillingRecord(id="old", tenant_id="t1", site_id="s1", total_amount=1000)
        assert reproduce_summary(record) is None
