"""
Dashboard analytics and transaction history over billing records.
"""

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

from cinco_billing.models.billing import MONTHS, BillingRecord, Site, Tenant
from cinco_billing.services.management import find_site, find_tenant

ALL = "all"


def _matches(selected: Optional[str], value: str) -> bool:
    return selected in (None, "", ALL) or selected == value


def _month_index(month: str) -> int:
    return MONTHS.index(month) if month in MONTHS else -1


def _year_number(year: str) -> int:
    try:
        return int(year)
    except (TypeError, ValueError):
        return 0


def filter_records(
    records: List[BillingRecord],
    sites: List[Site],
    tenants: List[Tenant],
    month: Optional[str] = None,
    year: Optional[str] = None,
    site_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    search: str = ""
) -> List[BillingRecord]:
    """
    Filters the transaction history.

    Records whose tenant or site no longer exists are left out. 'all' or an
    empty value disables a filter. The search term matches tenant name, site
    name or door number, case-insensitively.
    """
    term = (search or "").strip().lower()
    result = []
    for record in records:
        tenant = find_tenant(tenants, record.tenant_id)
        site = find_site(sites, record.site_id)
        if tenant is None or site is None:
            continue
        if not (_matches(month, record.month) and _matches(year, record.year)
                and _matches(site_id, site.id) and _matches(tenant_id, tenant.id)):
            continue
        if term and not (term in tenant.name.lower() or term in site.name.lower()
                         or term in tenant.door_number.lower()):
            continue
        result.append(record)
    return result


def group_by_period(records: List[BillingRecord]) -> List[Tuple[str, List[BillingRecord]]]:
    """Groups records by 'Month Year', newest period first."""
    groups: Dict[str, List[BillingRecord]] = OrderedDict()
    for record in records:
        groups.setdefault(f"{record.month} {record.year}", []).append(record)

    def sort_key(item):
        month, _, year = item[0].rpartition(" ")
        return (_year_number(year), _month_index(month))

    return sorted(groups.items(), key=sort_key, reverse=True)


def totals(records: List[BillingRecord]) -> Dict[str, float]:
    return {
        "revenue": sum(r.total_amount for r in records),
        "electricity": sum(r.electricity_consumption for r in records),
        "water": sum(r.water_consumption for r in records),
        "count": len(records),
    }


def dashboard_summary(
    records: List[BillingRecord],
    sites: List[Site],
    tenants: List[Tenant],
    year: str,
    site_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Key metrics for a year, optionally limited to one site.

    Returns:
        Dictionary with monthly data, totals, average revenue per record,
        occupancy rate (%), revenue growth vs the previous year (%),
        site performance and top 5 tenants by revenue
    """
    def in_scope(record: BillingRecord, for_year: str) -> bool:
        return record.year == for_year and _matches(site_id, record.site_id)

    selected = [r for r in records if in_scope(r, year)]
    previous_year = str(_year_number(year) - 1)
    previous = [r for r in records if in_scope(r, previous_year)]

    monthly = []
    for month in MONTHS:
        month_totals = totals([r for r in selected if r.month == month])
        monthly.append({"month": month, **month_totals})

    summary = totals(selected)
    average = summary["revenue"] / summary["count"] if summary["count"] else 0.0

    active_tenants = [t for t in tenants if t.status == "active"]
    total_units = sum(s.total_units for s in sites)
    occupancy = len(active_tenants) / total_units * 100 if total_units > 0 else 0.0

    previous_revenue = sum(r.total_amount for r in previous)
    growth = (summary["revenue"] - previous_revenue) / previous_revenue * 100 if previous_revenue > 0 else 0.0

    site_performance = []
    for site in sites:
        site_records = [r for r in selected if r.site_id == site.id]
        revenue = sum(r.total_amount for r in site_records)
        site_performance.append({
            "siteId": site.id,
            "name": site.name,
            "revenue": revenue,
            "count": len(site_records),
            "avgRevenue": revenue / len(site_records) if site_records else 0.0,
        })
    site_performance.sort(key=lambda s: s["revenue"], reverse=True)

    tenant_performance = []
    for tenant in tenants:
        tenant_records = [r for r in selected if r.tenant_id == tenant.id]
        site = find_site(sites, tenant.site_id)
        tenant_performance.append({
            "tenantId": tenant.id,
            "name": tenant.name,
            "doorNumber": tenant.door_number,
            "site": site.name if site else "",
            "revenue": sum(r.total_amount for r in tenant_records),
            "count": len(tenant_records),
        })
    tenant_performance.sort(key=lambda t: t["revenue"], reverse=True)

    return {
        "year": year,
        "monthly": monthly,
        "totalRevenue": summary["revenue"],
        "totalElectricity": summary["electricity"],
        "totalWater": summary["water"],
        "recordCount": summary["count"],
        "avgRevenuePerRecord": average,
        "activeTenants": len(active_tenants),
        "totalUnits": total_units,
        "occupancyRate": occupancy,
        "previousYearRevenue": previous_revenue,
        "revenueGrowth": growth,
        "sitePerformance": site_performance,
        "topTenants": tenant_performance[:5],
    }
