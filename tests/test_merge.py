"""
Tests for the union-by-id merge.
"""

from cinco_billing.models.billing import BillingRecord, SharedData, Site, Tenant
from cinco_billing.services.sync.merge import merge_collection, merge_data


def site(site_id: str, name: str = "Site") -> Site:
    return Site(id=site_id, name=name, address="", total_units=4)


def ids(items):
    return [item.id for item in items]


class TestMergeCollection:

    def test_union_of_disjoint_sets(self):
        merged = merge_collection([site("a"), site("b")], [site("c")])
        assert ids(merged) == ["a", "b", "c"]

    def test_completeness(self):
        """Merged ids equal ids(L) ∪ ids(R)."""
        local = [site("a"), site("b"), site("d")]
        remote = [site("b"), site("c"), site("e"), site("a")]
        merged = merge_collection(local, remote)
        assert set(ids(merged)) == {"a", "b", "c", "d", "e"}
        assert len(merged) == len(set(ids(merged)))

    def test_local_wins_on_shared_id(self):
        merged = merge_collection([site("a", "Local name")], [site("a", "Remote name")])
        assert len(merged) == 1
        assert merged[0].name == "Local name"

    def test_idempotent_with_itself(self):
        local = [site("a", "One"), site("b", "Two")]
        merged = merge_collection(local, local)
        assert merged == local

    def test_merging_again_is_a_no_op(self):
        local = [site("a")]
        remote = [site("b")]
        once = merge_collection(local, remote)
        assert merge_collection(once, remote) == once

    def test_duplicate_remote_ids_appear_once(self):
        merged = merge_collection([], [site("x", "first"), site("x", "second")])
        assert len(merged) == 1
        assert merged[0].name == "first"

    def test_empty_sides(self):
        assert merge_collection([], []) == []
        assert ids(merge_collection([], [site("a")])) == ["a"]
        assert ids(merge_collection([site("a")], [])) == ["a"]


class TestMergeData:

    def test_merges_all_three_collections(self):
        current = SharedData(
            sites=[site("s1")],
            tenants=[Tenant(id="t1", name="Local", site_id="s1")],
            billing_records=[BillingRecord(id="r1", tenant_id="t1", site_id="s1")],
            last_updated="2025-01-01T00:00:00.000Z",
        )
        shared = SharedData(
            sites=[site("s2")],
            tenants=[Tenant(id="t1", name="Remote", site_id="s1"), Tenant(id="t2", site_id="s2")],
            billing_records=[BillingRecord(id="r2", tenant_id="t2", site_id="s2")],
            last_updated="2025-02-01T00:00:00.000Z",
        )
        merged = merge_data(shared, current)

        assert ids(merged.sites) == ["s1", "s2"]
        assert ids(merged.tenants) == ["t1", "t2"]
        assert merged.tenants[0].name == "Local"
        assert ids(merged.billing_records) == ["r1", "r2"]
        assert merged.last_updated == current.last_updated
