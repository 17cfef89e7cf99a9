"""
API endpoints for sites and tenants.
Endpoints have prefixes /api/sites and /api/tenants
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from cinco_billing.api.deps import get_management
from cinco_billing.core.exceptions import DependentTenantsError, EntityNotFoundError
from cinco_billing.models.billing import CamelModel, Site, Tenant
from cinco_billing.services.management import ManagementService, site_name_for

router = APIRouter(prefix="/api", tags=["management"])


class SiteIn(CamelModel):
    """Site form."""
    name: str
    address: str = ""
    total_units: int = Field(default=0, ge=0)


class SiteUpdate(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    total_units: Optional[int] = Field(default=None, ge=0)


class TenantIn(CamelModel):
    """Tenant form."""
    name: str
    site_id: str
    door_number: str = ""
    phone: str = ""
    email: str = ""
    base_rent: float = Field(default=0.0, ge=0)
    status: Literal["active", "inactive"] = "active"


class TenantUpdate(CamelModel):
    name: Optional[str] = None
    site_id: Optional[str] = None
    door_number: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    base_rent: Optional[float] = Field(default=None, ge=0)
    status: Optional[Literal["active", "inactive"]] = None


class TenantOut(Tenant):
    """Tenant with the resolved site name ('N/A' when the site is gone)."""
    site_name: str = "N/A"


def _not_found(e: EntityNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


def _with_site_name(tenant: Tenant, sites: List[Site]) -> TenantOut:
    return TenantOut(**tenant.model_dump(), site_name=site_name_for(tenant, sites))


# ========== SITE ENDPOINTS ==========

@router.get("/sites", response_model=List[Site])
def list_sites(service: ManagementService = Depends(get_management)):
    """Gets list of all sites."""
    return service.list_sites()


@router.post("/sites", response_model=Site, status_code=201)
def create_site(payload: SiteIn, service: ManagementService = Depends(get_management)):
    """Creates a new site."""
    return service.create_site(payload.name, payload.address, payload.total_units)


@router.put("/sites/{site_id}", response_model=Site)
def update_site(site_id: str, payload: SiteUpdate, service: ManagementService = Depends(get_management)):
    try:
        return service.update_site(site_id, **payload.model_dump())
    except EntityNotFoundError as e:
        raise _not_found(e)


@router.delete("/sites/{site_id}")
def delete_site(site_id: str, cascade: bool = False, service: ManagementService = Depends(get_management)):
    """
    Deletes a site. Sites with tenants need cascade=true (tenants are deleted too).
    """
    try:
        removed = service.delete_site(site_id, cascade=cascade)
    except EntityNotFoundError as e:
        raise _not_found(e)
    except DependentTenantsError as e:
        raise HTTPException(status_code=409, detail={"message": str(e), "tenantIds": e.tenant_ids})
    return {"message": "Site deleted", "removedTenantIds": removed}


# ========== TENANT ENDPOINTS ==========

@router.get("/tenants", response_model=List[TenantOut])
def list_tenants(site_id: Optional[str] = None, service: ManagementService = Depends(get_management)):
    """Gets tenants, optionally for one site."""
    sites = service.list_sites()
    return [_with_site_name(t, sites) for t in service.list_tenants(site_id)]


@router.post("/tenants", response_model=TenantOut, status_code=201)
def create_tenant(payload: TenantIn, service: ManagementService = Depends(get_management)):
    """Creates a new tenant. The site reference is not checked here; dangling references show as N/A."""
    tenant = service.create_tenant(**payload.model_dump())
    return _with_site_name(tenant, service.list_sites())


@router.put("/tenants/{tenant_id}", response_model=TenantOut)
def update_tenant(tenant_id: str, payload: TenantUpdate, service: ManagementService = Depends(get_management)):
    try:
        tenant = service.update_tenant(tenant_id, **payload.model_dump())
    except EntityNotFoundError as e:
        raise _not_found(e)
    return _with_site_name(tenant, service.list_sites())


@router.post("/tenants/{tenant_id}/toggle-status", response_model=TenantOut)
def toggle_tenant_status(tenant_id: str, service: ManagementService = Depends(get_management)):
    """Switches tenant status between active and inactive."""
    try:
        tenant = service.toggle_tenant_status(tenant_id)
    except EntityNotFoundError as e:
        raise _not_found(e)
    return _with_site_name(tenant, service.list_sites())


@router.delete("/tenants/{tenant_id}")
def delete_tenant(tenant_id: str, service: ManagementService = Depends(get_management)):
    try:
        service.delete_tenant(tenant_id)
    except EntityNotFoundError as e:
        raise _not_found(e)
    return {"message": "Tenant deleted"}
