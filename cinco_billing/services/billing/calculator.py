"""
Bill calculation for a single unit.

Handles:
- Electricity: consumption (current - previous) times price per kWh
- Water: four-tier stepped schedule (flat fee for the first 10 m³)
- Aggregate total: rent + electricity + water + parking + other fee

All functions are pure. Amounts are not rounded here; rounding happens
only when values are formatted for display or export.
"""

from typing import List, Optional

from cinco_billing.config import settings
from cinco_billing.models.billing import BillingData, BillSummary, WaterRates

TIER_SIZE = 10.0


def electricity_consumption(previous: float, current: float) -> float:
    """Consumption in kWh; negative when current < previous."""
    return current - previous


def calculate_electricity_total(previous: float, current: float, price_per_kwh: float) -> float:
    """
    Calculates the electricity charge.

    Args:
        previous: Previous meter reading (kWh)
        current: Current meter reading (kWh)
        price_per_kwh: Price per kWh

    Returns:
        Charge; negative when the readings are reversed (no clamping)
    """
    return electricity_consumption(previous, current) * price_per_kwh


def water_consumption(previous: float, current: float) -> float:
    """Consumption in m³; negative when current < previous."""
    return current - previous


def calculate_water_total(consumption: float, rates: WaterRates) -> float:
    """
    Calculates the water charge with progressive banding.

    Tiers:
    - 0-10 m³: flat fee first10 (the same for 1 m³ and for 10 m³)
    - 10-20 m³: next10 per m³
    - 20-30 m³: next10_2 per m³
    - above 30 m³: above30 per m³

    Zero or negative consumption falls into the first branch and is charged
    the flat fee. Rates are not validated.

    Args:
        consumption: Water consumption in m³
        rates: Rate table

    Returns:
        Water charge
    """
    remaining = consumption
    if remaining <= TIER_SIZE:
        return rates.first10

    total = rates.first10
    remaining -= TIER_SIZE
    if remaining <= TIER_SIZE:
        return total + remaining * rates.next10

    total += TIER_SIZE * rates.next10
    remaining -= TIER_SIZE
    if remaining <= TIER_SIZE:
        return total + remaining * rates.next10_2

    total += TIER_SIZE * rates.next10_2
    remaining -= TIER_SIZE
    return total + remaining * rates.above30


def calculate_parking_total(parking_enabled: bool, parking_fee: float) -> float:
    return parking_fee if parking_enabled else 0.0


def calculate_grand_total(
    base_rent: float,
    electricity_total: float,
    water_total: float,
    parking_total: float,
    other_fee_amount: float
) -> float:
    return base_rent + electricity_total + water_total + parking_total + other_fee_amount


def calculate_bill(data: BillingData) -> BillSummary:
    """
    Derives every amount shown on the receipt from a billing draft.

    Args:
        data: Billing draft (numeric fields already coerced)

    Returns:
        BillSummary with unrounded values
    """
    elec_usage = electricity_consumption(data.electricity_previous, data.electricity_current)
    elec_total = elec_usage * data.electricity_price_per_kwh

    water_usage = water_consumption(data.water_previous, data.water_current)
    water_total = calculate_water_total(water_usage, data.water_rates)

    parking_total = calculate_parking_total(data.parking_enabled, data.parking_fee)
    grand_total = calculate_grand_total(
        data.base_rent, elec_total, water_total, parking_total, data.other_fee_amount
    )

    return BillSummary(
        electricity_consumption=elec_usage,
        electricity_total=elec_total,
        water_consumption=water_usage,
        water_total=water_total,
        parking_total=parking_total,
        other_fee_amount=data.other_fee_amount,
        base_rent=data.base_rent,
        grand_total=grand_total,
    )


def validate_billing_data(data: BillingData) -> List[str]:
    """
    Returns advisory warnings for the operator. Warnings never block the
    calculation; they only discourage saving.
    """
    warnings = []
    if data.electricity_current < data.electricity_previous:
        warnings.append("Current electricity reading is lower than the previous reading")
    if data.water_current < data.water_previous:
        warnings.append("Current water reading is lower than the previous reading")
    if not data.site_name.strip():
        warnings.append("Site is not selected")
    if not data.unit.strip():
        warnings.append("Unit is not selected")
    if not data.tenant_name.strip():
        warnings.append("Tenant is not selected")
    return warnings


def format_money(value: float, currency: Optional[str] = None) -> str:
    """Formats an amount for display (2 decimals, currency prefix)."""
    symbol = settings.currency_symbol if currency is None else currency
    return f"{symbol}{value:,.2f}"
