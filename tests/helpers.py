from calcflow.domain.relations import Relation
from calcflow.ordering.engine import OrderedList
from calcflow.stores.base import Storage


def child_order(ordered_list: OrderedList, parent_id: str) -> list[str]:
    """Child IDs of a parent in chain order."""
    return [entry.child_id for entry in ordered_list.read(parent_id, expand=False)]


def snapshot(storage: Storage, relation: Relation, parent_id: str) -> list[dict]:
    """Every stored field of a parent's associations, sorted by ID."""
    with storage.transaction() as session:
        records = session.associations(relation).list_by_parent(parent_id)
    return [record.model_dump() for record in sorted(records, key=lambda r: r.id)]
