"""SQLAlchemy tables for entities and their ordered associations.

Association tables share one layout: a parent foreign key, a child foreign key
and a nullable, unique self reference to the next association of the same
parent. Python attribute names are the same across tables (parent_id, child_id)
so one store implementation serves both relationships.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _new_id():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


class _Timestamps:
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class CalculationRow(_Timestamps, Base):
    __tablename__ = "calculations"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Calculation {self.id}: {self.name}>"


class FormularRow(_Timestamps, Base):
    __tablename__ = "formulars"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Formular {self.id}: {self.name}>"


class NodeRow(_Timestamps, Base):
    __tablename__ = "nodes"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    node_data = Column(Text, nullable=False, default="")

    def __repr__(self):
        return f"<Node {self.id}: {self.name}>"


class CalculationFormularRow(_Timestamps, Base):
    """Calculation -> Formular association"""
    __tablename__ = "calculation_formulars"

    id = Column(String(36), primary_key=True, default=_new_id)
    parent_id = Column(
        "calculation_id",
        String(36),
        ForeignKey("calculations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    child_id = Column(
        "formular_id",
        String(36),
        ForeignKey("formulars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    next_id = Column(
        String(36),
        ForeignKey("calculation_formulars.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )

    __table_args__ = (
        UniqueConstraint("calculation_id", "formular_id", name="uq_calculation_formular"),
    )

    def __repr__(self):
        return f"<CalculationFormular {self.parent_id} -> {self.child_id} next={self.next_id}>"


class FormularNodeRow(_Timestamps, Base):
    """Formular -> Node association"""
    __tablename__ = "formular_nodes"

    id = Column(String(36), primary_key=True, default=_new_id)
    parent_id = Column(
        "formular_id",
        String(36),
        ForeignKey("formulars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    child_id = Column(
        "node_id",
        String(36),
        ForeignKey("nodes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    next_id = Column(
        String(36),
        ForeignKey("formular_nodes.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )

    __table_args__ = (
        UniqueConstraint("formular_id", "node_id", name="uq_formular_node"),
    )

    def __repr__(self):
        return f"<FormularNode {self.parent_id} -> {self.child_id} next={self.next_id}>"


ENTITY_TABLES = {
    "calculation": CalculationRow,
    "formular": FormularRow,
    "node": NodeRow,
}

ASSOCIATION_TABLES = {
    "calculation_formulars": CalculationFormularRow,
    "formular_nodes": FormularNodeRow,
}
