"""Association domain models."""

from datetime import datetime

from calcflow.domain.base import CamelModel
from calcflow.domain.entities import Entity


class Association(CamelModel):
    """Binds one child to one parent and points at the next association of that parent.

    Attributes:
        id: Unique identifier, generated at creation
        parent_id: Identity of the owning parent
        child_id: Identity of the referenced child
        next_id: Id of the association that comes immediately after this one
            under the same parent, None for the last one
        created_at: Creation timestamp (UTC)
        updated_at: Last pointer change timestamp (UTC)
    """

    id: str
    parent_id: str
    child_id: str
    next_id: str | None = None
    created_at: datetime
    updated_at: datetime


class ChainEntry(Association):
    """An association in traversal order, optionally expanded with its child."""

    child: Entity | None = None
