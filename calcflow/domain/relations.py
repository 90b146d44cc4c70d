"""The parent/child relationships carrying an ordered child list."""

from pydantic import BaseModel, ConfigDict

from calcflow.domain.entities import EntityKind


class Relation(BaseModel):
    """Describes one ordered parent -> child relationship."""

    model_config = ConfigDict(frozen=True)

    name: str
    parent_kind: EntityKind
    child_kind: EntityKind


CALCULATION_FORMULARS = Relation(
    name="calculation_formulars", parent_kind="calculation", child_kind="formular"
)
FORMULAR_NODES = Relation(name="formular_nodes", parent_kind="formular", child_kind="node")

RELATIONS = (CALCULATION_FORMULARS, FORMULAR_NODES)
