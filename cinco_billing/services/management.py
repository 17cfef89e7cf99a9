"""
Site and tenant management on top of the shared storage collections.
"""

import logging
from typing import List, Optional
from uuid import uuid4

from cinco_billing.core.exceptions import DependentTenantsError, EntityNotFoundError
from cinco_billing.models.billing import Site, Tenant
from cinco_billing.services.sync.shared_storage import SharedStorage

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


def _new_id() -> str:
    return uuid4().hex


def find_site(sites: List[Site], site_id: str) -> Optional[Site]:
    return next((s for s in sites if s.id == site_id), None)


def find_tenant(tenants: List[Tenant], tenant_id: str) -> Optional[Tenant]:
    return next((t for t in tenants if t.id == tenant_id), None)


def site_name_for(tenant: Tenant, sites: List[Site]) -> str:
    """Site name of a tenant, 'N/A' when the reference dangles."""
    site = find_site(sites, tenant.site_id)
    return site.name if site else NOT_AVAILABLE


class ManagementService:
    """CRUD for sites and tenants. Every change overwrites the collection and triggers a sync."""

    def __init__(self, storage: SharedStorage):
        self.storage = storage

    # ========== SITES ==========

    def list_sites(self) -> List[Site]:
        return self.storage.get_sites()

    def get_site(self, site_id: str) -> Site:
        site = find_site(self.storage.get_sites(), site_id)
        if site is None:
            raise EntityNotFoundError("Site", site_id)
        return site

    def create_site(self, name: str, address: str = "", total_units: int = 0) -> Site:
        with self.storage.locked():
            site = Site(id=_new_id(), name=name, address=address, total_units=total_units)
            self.storage.save_sites(self.storage.get_sites() + [site], sync=False)
        self.storage.request_sync()
        logger.info("Site created: %s (%s)", site.name, site.id)
        return site

    def update_site(self, site_id: str, **changes) -> Site:
        with self.storage.locked():
            sites = self.storage.get_sites()
            site = find_site(sites, site_id)
            if site is None:
                raise EntityNotFoundError("Site", site_id)
            data = site.model_dump()
            data.update({k: v for k, v in changes.items() if v is not None})
            updated = Site.model_validate(data)
            self.storage.save_sites([updated if s.id == site_id else s for s in sites], sync=False)
        self.storage.request_sync()
        return updated

    def delete_site(self, site_id: str, cascade: bool = False) -> List[str]:
        """
        Deletes a site.

        Args:
            site_id: Site to delete
            cascade: Operator confirmed removal of the site's tenants

        Returns:
            Ids of tenants removed together with the site

        Raises:
            EntityNotFoundError: unknown site
            DependentTenantsError: the site has tenants and cascade is False
        """
        with self.storage.locked():
            sites = self.storage.get_sites()
            if find_site(sites, site_id) is None:
                raise EntityNotFoundError("Site", site_id)

            tenants = self.storage.get_tenants()
            dependents = [t.id for t in tenants if t.site_id == site_id]
            if dependents and not cascade:
                raise DependentTenantsError(site_id, dependents)

            if dependents:
                self.storage.save_tenants([t for t in tenants if t.site_id != site_id], sync=False)
            self.storage.save_sites([s for s in sites if s.id != site_id], sync=False)
        self.storage.request_sync()
        logger.info("Site %s deleted with %d tenant(s)", site_id, len(dependents))
        return dependents

    # ========== TENANTS ==========

    def list_tenants(self, site_id: Optional[str] = None) -> List[Tenant]:
        tenants = self.storage.get_tenants()
        if site_id:
            tenants = [t for t in tenants if t.site_id == site_id]
        return tenants

    def get_tenant(self, tenant_id: str) -> Tenant:
        tenant = find_tenant(self.storage.get_tenants(), tenant_id)
        if tenant is None:
            raise EntityNotFoundError("Tenant", tenant_id)
        return tenant

    def create_tenant(self, **fields) -> Tenant:
        with self.storage.locked():
            tenant = Tenant(id=_new_id(), **fields)
            self.storage.save_tenants(self.storage.get_tenants() + [tenant], sync=False)
        self.storage.request_sync()
        logger.info("Tenant created: %s (%s)", tenant.name, tenant.id)
        return tenant

    def update_tenant(self, tenant_id: str, **changes) -> Tenant:
        with self.storage.locked():
            tenants = self.storage.get_tenants()
            tenant = find_tenant(tenants, tenant_id)
            if tenant is None:
                raise EntityNotFoundError("Tenant", tenant_id)
            data = tenant.model_dump()
            data.update({k: v for k, v in changes.items() if v is not None})
            updated = Tenant.model_validate(data)
            self.storage.save_tenants([updated if t.id == tenant_id else t for t in tenants], sync=False)
        self.storage.request_sync()
        return updated

    def delete_tenant(self, tenant_id: str) -> None:
        with self.storage.locked():
            tenants = self.storage.get_tenants()
            if find_tenant(tenants, tenant_id) is None:
                raise EntityNotFoundError("Tenant", tenant_id)
            self.storage.save_tenants([t for t in tenants if t.id != tenant_id], sync=False)
        self.storage.request_sync()

    def toggle_tenant_status(self, tenant_id: str) -> Tenant:
        """Switches a tenant between active and inactive."""
        tenant = self.get_tenant(tenant_id)
        new_status = "inactive" if tenant.status == "active" else "active"
        return self.update_tenant(tenant_id, status=new_status)
