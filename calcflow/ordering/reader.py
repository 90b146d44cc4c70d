from collections import Counter
from typing import Iterable, List

from calcflow.domain.associations import Association
from calcflow.errors import ChainIntegrityError


def order_chain(records: Iterable[Association]) -> List[Association]:
    """Return a parent's associations in chain order.

    Starts from the single association no other one points to and follows
    next_id until it is None. Every association must be visited exactly once.

    Args:
        records: All associations of one parent, in any order

    Returns:
        The associations from head to tail, empty if there are none

    Raises:
        ChainIntegrityError: If the chain is forked, dangling, cyclic or fragmented
    """
    by_id = {record.id: record for record in records}
    if not by_id:
        return []

    pointed_at = Counter(r.next_id for r in by_id.values() if r.next_id is not None)
    for target_id, count in pointed_at.items():
        if target_id not in by_id:
            raise ChainIntegrityError(f"Association {target_id} is referenced but does not exist")
        if count > 1:
            raise ChainIntegrityError(f"Association {target_id} has {count} predecessors")

    heads = [record for record in by_id.values() if record.id not in pointed_at]
    if len(heads) != 1:
        raise ChainIntegrityError(f"Expected exactly one head, found {len(heads)}")

    ordered: List[Association] = []
    visited: set[str] = set()
    current: Association | None = heads[0]
    while current is not None:
        if current.id in visited:
            raise ChainIntegrityError(f"Cycle detected at association {current.id}")
        visited.add(current.id)
        ordered.append(current)
        current = by_id[current.next_id] if current.next_id is not None else None

    if len(ordered) != len(by_id):
        raise ChainIntegrityError(
            f"Chain visits {len(ordered)} of {len(by_id)} associations"
        )
    return ordered


def find_predecessor(records: Iterable[Association], association_id: str) -> Association | None:
    """Get the association whose successor is association_id, if any."""
    for record in records:
        if record.next_id == association_id:
            return record
    return None
