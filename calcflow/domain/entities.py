"""Entity domain models."""

from datetime import datetime
from typing import Literal, Union

from calcflow.domain.base import CamelModel

EntityKind = Literal["calculation", "formular", "node"]


class Calculation(CamelModel):
    """A calculation, owning an ordered sequence of formulars."""

    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class Formular(CamelModel):
    """A formular, child of calculations and owner of an ordered sequence of nodes."""

    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class Node(CamelModel):
    """A node with its raw data payload.

    Attributes:
        id: Unique identifier (uuid4 string)
        name: Display name
        node_data: Opaque data attached to the node
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    id: str
    name: str
    node_data: str
    created_at: datetime
    updated_at: datetime


# Node first: its extra required field keeps node payloads from validating as the others
Entity = Union[Node, Calculation, Formular]

ENTITY_MODELS: dict[str, type[Entity]] = {
    "calculation": Calculation,
    "formular": Formular,
    "node": Node,
}
