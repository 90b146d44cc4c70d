"""Request bodies accepted by the API."""

from pydantic import AliasChoices, BaseModel, Field

from calcflow.domain.base import CamelModel


class CreateCalculationInput(CamelModel):
    name: str


class UpdateCalculationInput(CamelModel):
    name: str | None = None


class CreateFormularInput(CamelModel):
    name: str


class UpdateFormularInput(CamelModel):
    name: str | None = None


class CreateNodeInput(CamelModel):
    name: str
    node_data: str = ""


class UpdateNodeInput(CamelModel):
    name: str | None = None
    node_data: str | None = None


class AttachInput(BaseModel):
    """Child to attach, optionally placed right before an existing association."""

    child_id: str = Field(validation_alias=AliasChoices("childId", "formularId", "nodeId"))
    next_id: str | None = Field(default=None, validation_alias=AliasChoices("nextId", "next_id"))


class ReorderInput(BaseModel):
    """Every attached child, in the desired order."""

    order: list[str] = Field(validation_alias=AliasChoices("order", "formularOrder", "nodeOrder"))
