from typing import Any, ContextManager, List, Protocol

from calcflow.domain.associations import Association
from calcflow.domain.entities import Entity, EntityKind
from calcflow.domain.relations import Relation


class AssociationStore(Protocol):
    """Association records of one relation, bound to an open transaction."""

    relation: Relation

    def lock_parent(self, parent_id: str) -> bool:
        """Take the write lock on a parent's association set.

        Returns:
            True if the parent exists, False otherwise
        """
        ...

    def create(self, parent_id: str, child_id: str) -> Association:
        """Create an association with no successor.

        Raises:
            InvalidReferenceError: If the parent or the child does not exist
        """
        ...

    def find_by_parent_and_child(self, parent_id: str, child_id: str) -> Association | None:
        """Get the association binding a child to a parent."""
        ...

    def find_by_id(self, association_id: str) -> Association | None:
        """Get an association by its ID."""
        ...

    def list_by_parent(self, parent_id: str) -> List[Association]:
        """Get all associations of a parent, in no particular order."""
        ...

    def list_by_child(self, child_id: str) -> List[Association]:
        """Get all associations referencing a child, across parents."""
        ...

    def set_next(self, association_id: str, next_id: str | None) -> Association:
        """Point an association at its successor, or mark it as last.

        Raises:
            NotFoundError: If the association does not exist
            InvalidReferenceError: If next_id is not an association of the same parent
        """
        ...

    def delete(self, association_id: str) -> None:
        """Delete an association. Deleting a missing association is a no-op."""
        ...


class EntityStore(Protocol):
    """Entities of one kind, bound to an open transaction."""

    kind: EntityKind

    def create(self, **fields: Any) -> Entity:
        """Create an entity from its field values."""
        ...

    def get(self, entity_id: str) -> Entity | None:
        """Get an entity by its ID."""
        ...

    def get_many(self, entity_ids: list[str]) -> dict[str, Entity]:
        """Get multiple entities by their IDs, returning a dictionary mapping ID to entity.

        Args:
            entity_ids: List of entity IDs to retrieve

        Returns:
            Dictionary mapping entity_id to entity for all found entities
        """
        ...

    def list(self) -> List[Entity]:
        """Get all entities of this kind, oldest first."""
        ...

    def update(self, entity_id: str, **fields: Any) -> Entity | None:
        """Update the given fields of an entity. Returns None if it does not exist."""
        ...

    def delete(self, entity_id: str) -> bool:
        """Delete an entity and the associations it owns as a parent.

        Returns:
            True if the entity existed
        """
        ...


class StoreSession(Protocol):
    """Stores sharing one transaction."""

    def associations(self, relation: Relation) -> AssociationStore: ...

    def entities(self, kind: EntityKind) -> EntityStore: ...


class Storage(Protocol):
    """Persistence handle opened at startup and closed at shutdown."""

    def transaction(self) -> ContextManager[StoreSession]:
        """Open an atomic unit of work.

        Everything done through the yielded session is committed when the block
        exits normally and rolled back entirely when it raises.
        """
        ...

    def close(self) -> None:
        """Release every resource held by the storage."""
        ...
