"""
Pydantic models for sites, tenants, billing records and the billing draft.

Wire and storage format uses camelCase keys (siteId, doorNumber, totalAmount);
snake_case field names are accepted as well.
"""

import math
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from cinco_billing.config import settings


MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def coerce_number(value) -> float:
    """
    Converts raw form input to a float.
    Anything non-numeric (None, empty string, text, NaN) becomes 0.0.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return result


def current_month() -> str:
    return MONTHS[datetime.now().month - 1]


def current_year() -> str:
    return str(datetime.now().year)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and 'Z' suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Site(CamelModel):
    """Apartment site (building)."""
    id: str
    name: str = ""
    address: str = ""
    total_units: int = 0


class Tenant(CamelModel):
    """
    Tenant occupying a door/unit at a site.
    Stored and synced as received; the non-negative rent rule lives on the tenant forms.
    """
    id: str
    name: str = ""
    site_id: str = ""
    door_number: str = ""
    phone: str = ""
    email: str = ""
    base_rent: float = 0.0
    status: Literal["active", "inactive"] = "active"


class WaterRates(BaseModel):
    """Four-tier water rate table; first10 is a flat fee, the rest are per m³."""
    model_config = ConfigDict(frozen=True)

    first10: float = Field(default_factory=lambda: settings.default_water_first10)
    next10: float = Field(default_factory=lambda: settings.default_water_next10)
    next10_2: float = Field(default_factory=lambda: settings.default_water_next10_2)
    above30: float = Field(default_factory=lambda: settings.default_water_above30)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_rates(cls, value):
        return coerce_number(value)


class BillingData(CamelModel):
    """
    Bill draft. Numeric input that is not a number is coerced to 0.
    Immutable: the draft is replaced wholesale and ledger snapshots cannot change.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    # Basic information
    site_name: str = ""
    unit: str = ""
    tenant_name: str = ""
    billing_month: str = Field(default_factory=current_month)
    billing_year: str = Field(default_factory=current_year)

    # Electricity
    electricity_previous: float = 0.0
    electricity_current: float = 0.0
    electricity_price_per_kwh: float = Field(
        default_factory=lambda: settings.default_electricity_price_per_kwh
    )
    electricity_photo: Optional[str] = None  # base64 data URI

    # Water
    water_previous: float = 0.0
    water_current: float = 0.0
    water_rates: WaterRates = Field(default_factory=WaterRates)
    water_photo: Optional[str] = None  # base64 data URI

    # Rent and fees
    base_rent: float = 0.0
    parking_fee: float = Field(default_factory=lambda: settings.default_parking_fee)
    parking_enabled: bool = False
    damage_description: str = ""
    other_fee_description: str = ""
    other_fee_amount: float = 0.0

    @field_validator(
        "electricity_previous", "electricity_current", "electricity_price_per_kwh",
        "water_previous", "water_current", "base_rent", "parking_fee", "other_fee_amount",
        mode="before",
    )
    @classmethod
    def coerce_numbers(cls, value):
        return coerce_number(value)

    @field_validator("billing_year", mode="before")
    @classmethod
    def year_as_string(cls, value):
        return str(value)


class BillSummary(CamelModel):
    """Derived amounts for one bill. Values are unrounded."""
    electricity_consumption: float
    electricity_total: float
    water_consumption: float
    water_total: float
    parking_total: float
    other_fee_amount: float
    base_rent: float
    grand_total: float


class BillingRecord(CamelModel):
    """Append-only ledger entry; frozen once created."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    tenant_id: str = ""
    site_id: str = ""
    month: str = ""
    year: str = ""
    electricity_consumption: float = 0.0
    water_consumption: float = 0.0
    total_amount: float = 0.0
    date: str = Field(default_factory=utc_timestamp)
    billing_data: Optional[BillingData] = None


class SharedData(CamelModel):
    """Snapshot exchanged with the shared-data endpoint."""
    sites: List[Site] = Field(default_factory=list)
    tenants: List[Tenant] = Field(default_factory=list)
    billing_records: List[BillingRecord] = Field(default_factory=list)
    last_updated: str = Field(default_factory=utc_timestamp)
