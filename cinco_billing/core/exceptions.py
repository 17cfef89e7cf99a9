"""
Domain exceptions raised by the billing services.
"""


class BillingError(Exception):
    """Base class for all billing application errors."""


class SyncError(BillingError):
    """Remote shared-data endpoint unreachable or returned an unusable payload."""


class ExportError(BillingError):
    """Receipt could not be rendered to PDF or PNG."""


class EntityNotFoundError(BillingError):
    """A site, tenant or billing record with the given id does not exist."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} '{entity_id}' not found")
        self.kind = kind
        self.entity_id = entity_id


class DependentTenantsError(BillingError):
    """Site still has tenants and the cascade was not confirmed."""

    def __init__(self, site_id: str, tenant_ids):
        self.site_id = site_id
        self.tenant_ids = list(tenant_ids)
        super().__init__(
            f"Site '{site_id}' has {len(self.tenant_ids)} tenant(s); "
            "remove or reassign them, or confirm the cascade delete"
        )
