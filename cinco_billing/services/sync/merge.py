"""
Union-by-id merge of entity collections.

Only additions are reconciled: an entity missing on one side is added, an
entity present on both sides keeps the local copy. Field-level conflicts
and deletions are not resolved.
"""

from typing import List, Sequence, TypeVar

from cinco_billing.models.billing import SharedData

T = TypeVar("T")

COLLECTIONS = ("sites", "tenants", "billing_records")


def merge_collection(local: Sequence[T], remote: Sequence[T]) -> List[T]:
    """
    Merges two collections by the entities' `id`.

    Args:
        local: Local entities (win on shared ids, keep their order)
        remote: Remote entities

    Returns:
        Local entities followed by remote entities whose id is not local;
        no id appears twice
    """
    merged = []
    seen = set()
    for item in list(local) + list(remote):
        if item.id in seen:
            continue
        seen.add(item.id)
        merged.append(item)
    return merged


def merge_data(shared: SharedData, current: SharedData) -> SharedData:
    """
    Merges a shared snapshot into the current local collections.

    Args:
        shared: Snapshot from the remote endpoint or the local cache
        current: Local collections

    Returns:
        New snapshot with merged collections and the current lastUpdated
    """
    merged = {
        name: merge_collection(getattr(current, name), getattr(shared, name))
        for name in COLLECTIONS
    }
    return SharedData(last_updated=current.last_updated, **merged)
