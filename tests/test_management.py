"""
Tests for site and tenant management.
"""

import threading

import pytest

from cinco_billing.core.exceptions import DependentTenantsError, EntityNotFoundError, SyncError
from cinco_billing.models.billing import Site, Tenant
from cinco_billing.services.management import ManagementService, site_name_for


@pytest.fixture
def service(storage, fake_client):
    # offline, so deletions are not merged back from the endpoint
    fake_client.fail = True
    return ManagementService(storage)


class TestSites:

    def test_create_and_list(self, service):
        site = service.create_site("Laguna", "Laguna Street 5", total_units=6)
        assert site.id
        assert service.list_sites() == [site]
        assert service.get_site(site.id).total_units == 6

    def test_update_ignores_missing_fields(self, service):
        site = service.create_site("Laguna", "Laguna Street 5", total_units=6)
        updated = service.update_site(site.id, name="Laguna Heights", address=None)
        assert updated.name == "Laguna Heights"
        assert updated.address == "Laguna Street 5"
        assert service.get_site(site.id).name == "Laguna Heights"

    def test_unknown_site(self, service):
        with pytest.raises(EntityNotFoundError):
            service.get_site("missing")
        with pytest.raises(EntityNotFoundError):
            service.update_site("missing", name="x")
        with pytest.raises(EntityNotFoundError):
            service.delete_site("missing")

    def test_delete_empty_site(self, service):
        site = service.create_site("Pidanna")
        assert service.delete_site(site.id) == []
        assert service.list_sites() == []

    def test_delete_with_tenants_requires_cascade(self, service):
        site = service.create_site("Laguna")
        tenant = service.create_tenant(name="Juan", site_id=site.id)

        with pytest.raises(DependentTenantsError) as exc_info:
            service.delete_site(site.id)

        assert exc_info.value.tenant_ids == [tenant.id]
        assert len(service.list_sites()) == 1
        assert len(service.list_tenants()) == 1

    def test_cascade_delete_removes_tenants(self, service):
        laguna = service.create_site("Laguna")
        pidanna = service.create_site("Pidanna")
        juan = service.create_tenant(name="Juan", site_id=laguna.id)
        jose = service.create_tenant(name="Jose", site_id=pidanna.id)

        removed = service.delete_site(laguna.id, cascade=True)

        assert removed == [juan.id]
        assert [s.id for s in service.list_sites()] == [pidanna.id]
        assert [t.id for t in service.list_tenants()] == [jose.id]

    def test_sync_runs_after_state_lock_is_released(self, service, storage, fake_client):
        """Another writer can take the lock while the post-save sync is fetching."""
        lock_free_during_fetch = []

        def fetch():
            def try_lock():
                lock = storage.locked()
                acquired = lock.acquire(blocking=False)
                lock_free_during_fetch.append(acquired)
                if acquired:
                    lock.release()

            worker = threading.Thread(target=try_lock)
            worker.start()
            worker.join(timeout=5)
            raise SyncError("endpoint unreachable")

        fake_client.fetch = fetch
        site = service.create_site("Laguna")
        service.create_tenant(name="Juan", site_id=site.id)
        service.delete_site(site.id, cascade=True)

        assert lock_free_during_fetch == [True, True, True]


class TestTenants:

    def test_create_and_filter_by_site(self, service):
        laguna = service.create_site("Laguna")
        pidanna = service.create_site("Pidanna")
        service.create_tenant(name="Juan", site_id=laguna.id, door_number="A-101", base_rent=15000)
        service.create_tenant(name="Jose", site_id=pidanna.id, door_number="B-201")

        assert [t.name for t in service.list_tenants(laguna.id)] == ["Juan"]
        assert len(service.list_tenants()) == 2

    def test_stored_tenant_keeps_negative_rent(self, service):
        tenant = service.create_tenant(name="Maria", site_id="s1", base_rent=-1)
        assert service.get_tenant(tenant.id).base_rent == -1

    def test_new_tenant_is_active(self, service):
        tenant = service.create_tenant(name="Maria", site_id="s1")
        assert tenant.status == "active"

    def test_toggle_status_twice(self, service):
        tenant = service.create_tenant(name="Maria", site_id="s1")
        assert service.toggle_tenant_status(tenant.id).status == "inactive"
        assert service.get_tenant(tenant.id).status == "inactive"
        assert service.toggle_tenant_status(tenant.id).status == "active"

    def test_update_and_delete(self, service):
        tenant = service.create_tenant(name="Maria", site_id="s1")
        updated = service.update_tenant(tenant.id, phone="0917", base_rent=9000)
        assert updated.phone == "0917"
        assert updated.base_rent == 9000

        service.delete_tenant(tenant.id)
        assert service.list_tenants() == []
        with pytest.raises(EntityNotFoundError):
            service.delete_tenant(tenant.id)


class TestSiteNameLookup:

    def test_known_site(self):
        sites = [Site(id="s1", name="Laguna")]
        assert site_name_for(Tenant(id="t1", site_id="s1"), sites) == "Laguna"

    def test_dangling_reference_shows_na(self):
        assert site_name_for(Tenant(id="t1", site_id="gone"), []) == "N/A"
