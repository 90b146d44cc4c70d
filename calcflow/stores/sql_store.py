"""SQL implementations of the stores, bound to one SQLAlchemy session."""

from typing import Any, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from calcflow.domain.associations import Association
from calcflow.domain.entities import ENTITY_MODELS, Entity, EntityKind
from calcflow.domain.relations import Relation
from calcflow.errors import InvalidReferenceError, NotFoundError
from calcflow.stores.base import AssociationStore, EntityStore, StoreSession
from calcflow.stores.sql_models import ASSOCIATION_TABLES, ENTITY_TABLES


def _columns(row) -> dict[str, Any]:
    return {attr.key: getattr(row, attr.key) for attr in row.__mapper__.column_attrs}


def _to_association(row) -> Association:
    return Association(**_columns(row))


def _to_entity(kind: EntityKind, row) -> Entity:
    return ENTITY_MODELS[kind](**_columns(row))


class SqlAssociationStore(AssociationStore):
    """Association records of one relation, read and written through a session."""

    def __init__(self, session: Session, relation: Relation) -> None:
        self.session = session
        self.relation = relation
        self._table = ASSOCIATION_TABLES[relation.name]
        self._parent_table = ENTITY_TABLES[relation.parent_kind]
        self._child_table = ENTITY_TABLES[relation.child_kind]

    def lock_parent(self, parent_id: str) -> bool:
        """Lock the parent row for the rest of the transaction.

        On SQLite the whole database is already locked by BEGIN IMMEDIATE and
        FOR UPDATE is not rendered.
        """
        stmt = (
            select(self._parent_table.id)
            .where(self._parent_table.id == parent_id)
            .with_for_update()
        )
        return self.session.execute(stmt).first() is not None

    def create(self, parent_id: str, child_id: str) -> Association:
        if self.session.get(self._parent_table, parent_id) is None:
            raise InvalidReferenceError(f"{self.relation.parent_kind} {parent_id} does not exist")
        if self.session.get(self._child_table, child_id) is None:
            raise InvalidReferenceError(f"{self.relation.child_kind} {child_id} does not exist")

        row = self._table(parent_id=parent_id, child_id=child_id, next_id=None)
        self.session.add(row)
        self.session.flush()
        return _to_association(row)

    def find_by_parent_and_child(self, parent_id: str, child_id: str) -> Association | None:
        stmt = select(self._table).where(
            self._table.parent_id == parent_id, self._table.child_id == child_id
        )
        row = self.session.execute(stmt).scalars().first()
        return _to_association(row) if row else None

    def find_by_id(self, association_id: str) -> Association | None:
        row = self.session.get(self._table, association_id)
        return _to_association(row) if row else None

    def list_by_parent(self, parent_id: str) -> List[Association]:
        stmt = (
            select(self._table)
            .where(self._table.parent_id == parent_id)
            .order_by(self._table.created_at)
        )
        return [_to_association(row) for row in self.session.execute(stmt).scalars()]

    def list_by_child(self, child_id: str) -> List[Association]:
        stmt = select(self._table).where(self._table.child_id == child_id)
        return [_to_association(row) for row in self.session.execute(stmt).scalars()]

    def set_next(self, association_id: str, next_id: str | None) -> Association:
        row = self.session.get(self._table, association_id)
        if row is None:
            raise NotFoundError(f"Association {association_id} not found")

        if next_id is not None:
            target = self.session.get(self._table, next_id)
            if target is None or target.parent_id != row.parent_id:
                raise InvalidReferenceError(
                    f"Association {next_id} does not belong to "
                    f"{self.relation.parent_kind} {row.parent_id}"
                )
            if target.id == row.id:
                raise InvalidReferenceError(f"Association {association_id} cannot follow itself")

        row.next_id = next_id
        self.session.flush()
        return _to_association(row)

    def delete(self, association_id: str) -> None:
        row = self.session.get(self._table, association_id)
        if row is not None:
            self.session.delete(row)
            self.session.flush()


class SqlEntityStore(EntityStore):
    """Entities of one kind, read and written through a session."""

    def __init__(self, session: Session, kind: EntityKind) -> None:
        self.session = session
        self.kind = kind
        self._table = ENTITY_TABLES[kind]

    def create(self, **fields: Any) -> Entity:
        row = self._table(**fields)
        self.session.add(row)
        self.session.flush()
        return _to_entity(self.kind, row)

    def get(self, entity_id: str) -> Entity | None:
        row = self.session.get(self._table, entity_id)
        return _to_entity(self.kind, row) if row else None

    def get_many(self, entity_ids: list[str]) -> dict[str, Entity]:
        if not entity_ids:
            return {}
        stmt = select(self._table).where(self._table.id.in_(entity_ids))
        return {row.id: _to_entity(self.kind, row) for row in self.session.execute(stmt).scalars()}

    def list(self) -> List[Entity]:
        stmt = select(self._table).order_by(self._table.created_at)
        return [_to_entity(self.kind, row) for row in self.session.execute(stmt).scalars()]

    def update(self, entity_id: str, **fields: Any) -> Entity | None:
        row = self.session.get(self._table, entity_id)
        if row is None:
            return None
        for key, value in fields.items():
            setattr(row, key, value)
        self.session.flush()
        return _to_entity(self.kind, row)

    def delete(self, entity_id: str) -> bool:
        row = self.session.get(self._table, entity_id)
        if row is None:
            return False
        # Owned associations go with the row (ON DELETE CASCADE)
        self.session.delete(row)
        self.session.flush()
        return True


class SqlStoreSession(StoreSession):
    """Stores sharing one SQLAlchemy session, and therefore one transaction."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def associations(self, relation: Relation) -> AssociationStore:
        return SqlAssociationStore(self.session, relation)

    def entities(self, kind: EntityKind) -> EntityStore:
        return SqlEntityStore(self.session, kind)
