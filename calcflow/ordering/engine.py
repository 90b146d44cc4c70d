"""Attach, detach and reorder children of a parent, keeping its chain a simple path.

The functions taking an AssociationStore run inside the caller's transaction.
Pointer updates are sequenced so that no two associations ever share a
successor, not even between two writes of the same operation: the slot a
record is about to take is always freed first.
"""

from collections import Counter
from typing import List, Sequence

from loguru import logger

from calcflow.domain.associations import Association, ChainEntry
from calcflow.domain.entities import EntityKind
from calcflow.domain.relations import RELATIONS, Relation
from calcflow.errors import InvalidOrderError, InvalidReferenceError, NotFoundError
from calcflow.ordering.reader import find_predecessor, order_chain
from calcflow.stores.base import AssociationStore, Storage, StoreSession


def attach_child(
    store: AssociationStore, parent_id: str, child_id: str, next_id: str | None = None
) -> Association:
    """Insert a child into a parent's chain.

    Args:
        store: Associations of the relation, inside an open transaction
        parent_id: ID of the parent
        child_id: ID of the child to attach
        next_id: ID of an association of the same parent the new one is placed
            right before. Without it the child is appended after the current tail.

    Returns:
        The created association

    Raises:
        InvalidReferenceError: If the parent or the child does not exist
        InvalidOrderError: If the child is already attached or next_id is not an
            association of this parent
    """
    relation = store.relation
    if not store.lock_parent(parent_id):
        raise InvalidReferenceError(f"{relation.parent_kind} {parent_id} does not exist")
    if store.find_by_parent_and_child(parent_id, child_id) is not None:
        raise InvalidOrderError(
            f"{relation.child_kind} {child_id} is already attached to "
            f"{relation.parent_kind} {parent_id}"
        )

    chain = order_chain(store.list_by_parent(parent_id))
    if next_id is None:
        predecessor = chain[-1] if chain else None
    else:
        if next_id not in {record.id for record in chain}:
            raise InvalidOrderError(
                f"Association {next_id} does not belong to {relation.parent_kind} {parent_id}"
            )
        predecessor = find_predecessor(chain, next_id)

    record = store.create(parent_id, child_id)
    if next_id is not None:
        if predecessor is not None:
            # Free the slot first, next_id is unique
            store.set_next(predecessor.id, None)
        record = store.set_next(record.id, next_id)
    if predecessor is not None:
        store.set_next(predecessor.id, record.id)
    return record


def _unlink(store: AssociationStore, record: Association) -> None:
    predecessor = find_predecessor(store.list_by_parent(record.parent_id), record.id)
    if record.next_id is not None:
        store.set_next(record.id, None)
    if predecessor is not None:
        store.set_next(predecessor.id, record.next_id)
    store.delete(record.id)


def detach_child(store: AssociationStore, parent_id: str, child_id: str) -> Association:
    """Remove a child from a parent's chain, joining its neighbours.

    Returns:
        The deleted association

    Raises:
        NotFoundError: If the parent does not exist or the child is not attached to it
    """
    relation = store.relation
    if not store.lock_parent(parent_id):
        raise NotFoundError(f"{relation.parent_kind} {parent_id} not found")
    record = store.find_by_parent_and_child(parent_id, child_id)
    if record is None:
        raise NotFoundError(
            f"{relation.child_kind} {child_id} is not attached to "
            f"{relation.parent_kind} {parent_id}"
        )
    _unlink(store, record)
    return record


def detach_everywhere(session: StoreSession, kind: EntityKind, entity_id: str) -> int:
    """Remove an entity from every chain it is a child in.

    Returns:
        Number of associations removed
    """
    removed = 0
    for relation in RELATIONS:
        if relation.child_kind != kind:
            continue
        store = session.associations(relation)
        # Parents are locked in ID order
        for record in sorted(store.list_by_child(entity_id), key=lambda r: r.parent_id):
            store.lock_parent(record.parent_id)
            _unlink(store, record)
            removed += 1
    return removed


def _check_permutation(attached: set[str], ordered_child_ids: Sequence[str]) -> None:
    duplicates = sorted(cid for cid, count in Counter(ordered_child_ids).items() if count > 1)
    unknown = sorted(set(ordered_child_ids) - attached)
    missing = sorted(attached - set(ordered_child_ids))

    problems = []
    if duplicates:
        problems.append(f"duplicates {duplicates}")
    if unknown:
        problems.append(f"not attached {unknown}")
    if missing:
        problems.append(f"missing {missing}")
    if problems:
        raise InvalidOrderError(
            "Order must list every attached child exactly once: " + ", ".join(problems)
        )


def reorder_children(
    store: AssociationStore, parent_id: str, ordered_child_ids: Sequence[str]
) -> List[Association]:
    """Rewrite a parent's chain to follow the given child order.

    The order is validated completely before anything is written. Associations
    keep their identity, only next_id changes.

    Args:
        store: Associations of the relation, inside an open transaction
        parent_id: ID of the parent
        ordered_child_ids: Every child currently attached to the parent, in the
            desired order

    Returns:
        The associations in their new order

    Raises:
        NotFoundError: If the parent does not exist
        InvalidOrderError: If the order is not a permutation of the attached children
    """
    if not store.lock_parent(parent_id):
        raise NotFoundError(f"{store.relation.parent_kind} {parent_id} not found")

    records = store.list_by_parent(parent_id)
    by_child = {record.child_id: record for record in records}
    _check_permutation(set(by_child), ordered_child_ids)

    for record in records:
        if record.next_id is not None:
            store.set_next(record.id, None)
    for current, following in zip(ordered_child_ids, ordered_child_ids[1:]):
        store.set_next(by_child[current].id, by_child[following].id)

    return order_chain(store.list_by_parent(parent_id))


class OrderedList:
    """The ordered children of one relation, one transaction per operation."""

    def __init__(self, storage: Storage, relation: Relation) -> None:
        self._storage = storage
        self.relation = relation

    def attach(self, parent_id: str, child_id: str, next_id: str | None = None) -> Association:
        with self._storage.transaction() as session:
            record = attach_child(session.associations(self.relation), parent_id, child_id, next_id)
        logger.info(
            f"Attached {self.relation.child_kind} {child_id} to "
            f"{self.relation.parent_kind} {parent_id} as {record.id}"
        )
        return record

    def detach(self, parent_id: str, child_id: str) -> None:
        with self._storage.transaction() as session:
            record = detach_child(session.associations(self.relation), parent_id, child_id)
        logger.info(
            f"Detached {self.relation.child_kind} {child_id} from "
            f"{self.relation.parent_kind} {parent_id} ({record.id})"
        )

    def reorder(
        self, parent_id: str, ordered_child_ids: Sequence[str], expand: bool = True
    ) -> List[ChainEntry]:
        with self._storage.transaction() as session:
            chain = reorder_children(
                session.associations(self.relation), parent_id, list(ordered_child_ids)
            )
            entries = self._entries(session, chain, expand)
        logger.info(
            f"Reordered {len(entries)} {self.relation.child_kind}s of "
            f"{self.relation.parent_kind} {parent_id}"
        )
        return entries

    def read(self, parent_id: str, expand: bool = True) -> List[ChainEntry]:
        """Get a parent's children in chain order.

        Raises:
            NotFoundError: If the parent does not exist
            ChainIntegrityError: If the stored chain is not a simple path
        """
        with self._storage.transaction() as session:
            if session.entities(self.relation.parent_kind).get(parent_id) is None:
                raise NotFoundError(f"{self.relation.parent_kind} {parent_id} not found")
            chain = order_chain(session.associations(self.relation).list_by_parent(parent_id))
            entries = self._entries(session, chain, expand)
        logger.debug(
            f"Read {len(entries)} {self.relation.child_kind}s of "
            f"{self.relation.parent_kind} {parent_id}"
        )
        return entries

    def _entries(
        self, session: StoreSession, chain: List[Association], expand: bool
    ) -> List[ChainEntry]:
        children = {}
        if expand:
            children = session.entities(self.relation.child_kind).get_many(
                [record.child_id for record in chain]
            )
        return [
            ChainEntry(**record.model_dump(), child=children.get(record.child_id))
            for record in chain
        ]
