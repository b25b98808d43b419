import uuid
from typing import Any

from pydantic import BaseModel, Field, model_validator

from app.schemas.fields import FieldBase


class PlacementOut(BaseModel):
    id: str
    field_id: str
    container: str
    key: str
    label: str
    field_type: str
    write_to: str
    order_index: int
    visible: bool
    required: bool
    help_text: str | None
    options: list[str] | None
    validation_regex: str | None
    min_length: int | None
    max_length: int | None
    system: bool


class PlacementUpdate(BaseModel):
    visible: bool | None = None
    required: bool | None = None
    help_text: str | None = None
    order_index: int | None = None
    # edits the shared definition, i.e. every placement of the field
    base: FieldBase | None = None


class ReorderItem(BaseModel):
    id: uuid.UUID
    order_index: int


class ReorderRequest(BaseModel):
    """
    Either explicit indices:   {"items": [{"id": ..., "order_index": 15}]}
    or legacy sequential ids:  {"ids": [...]}  -> 0, 10, 20, ...
    """
    items: list[ReorderItem] | None = None
    ids: list[uuid.UUID] | None = None

    @model_validator(mode="after")
    def _one_mode(self):
        if (self.items is None) == (self.ids is None):
            raise ValueError("send exactly one of items or ids")
        return self


class PublicField(BaseModel):
    key: str
    label: str
    type: str
    required: bool
    visible: bool = True
    options: list[str] | None
    help_text: str | None
    order_index: int


class CompiledFieldsOut(BaseModel):
    fields: list[PublicField]
    defaults: dict[str, Any] = Field(default_factory=dict)


class ValidateOut(BaseModel):
    ok: bool
    issues: list[str]
    core: dict[str, Any] = Field(default_factory=dict)
    attributes: dict[str, Any] = Field(default_factory=dict)
