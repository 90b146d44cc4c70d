from typing import Any, List

from loguru import logger

from calcflow.domain.entities import Entity, EntityKind
from calcflow.errors import NotFoundError
from calcflow.ordering.engine import detach_everywhere
from calcflow.stores.base import Storage


class EntityService:
    """CRUD for one entity kind."""

    def __init__(self, storage: Storage, kind: EntityKind) -> None:
        self._storage = storage
        self.kind = kind

    def list(self) -> List[Entity]:
        with self._storage.transaction() as session:
            return session.entities(self.kind).list()

    def get(self, entity_id: str) -> Entity:
        with self._storage.transaction() as session:
            entity = session.entities(self.kind).get(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.kind} {entity_id} not found")
        return entity

    def create(self, **fields: Any) -> Entity:
        with self._storage.transaction() as session:
            entity = session.entities(self.kind).create(**fields)
        logger.info(f"Created {self.kind} {entity.id}")
        return entity

    def update(self, entity_id: str, **fields: Any) -> Entity:
        with self._storage.transaction() as session:
            entity = session.entities(self.kind).update(entity_id, **fields)
        if entity is None:
            raise NotFoundError(f"{self.kind} {entity_id} not found")
        logger.info(f"Updated {self.kind} {entity_id}: {sorted(fields)}")
        return entity

    def delete(self, entity_id: str) -> None:
        """Delete an entity.

        The entity is first detached from every chain it is a child in, so the
        neighbours it leaves behind are joined. Chains it owns as a parent are
        deleted with it.
        """
        with self._storage.transaction() as session:
            entities = session.entities(self.kind)
            if entities.get(entity_id) is None:
                raise NotFoundError(f"{self.kind} {entity_id} not found")
            detached = detach_everywhere(session, self.kind, entity_id)
            entities.delete(entity_id)
        logger.info(f"Deleted {self.kind} {entity_id}, detached from {detached} parent(s)")
