import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class FieldBase(BaseModel):
    """Shared definition attributes; only the ones sent are applied."""
    label: str | None = Field(default=None, max_length=200)
    field_type: str | None = None  # text|password|email|number|date|textarea|checkbox|select
    write_to: str | None = None  # core|attributes
    validation_regex: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    options: list[str] | None = None


class FieldDefinitionCreate(FieldBase):
    # derived from label when omitted
    key: str | None = Field(default=None, max_length=120)
    system: bool = False


class FieldDefinitionPatch(FieldBase):
    key: str | None = Field(default=None, max_length=120)
    system: bool | None = None


class FieldDefinitionOut(BaseModel):
    id: str
    key: str
    label: str
    field_type: str
    write_to: str
    validation_regex: str | None
    min_length: int | None
    max_length: int | None
    options: list[str] | None
    system: bool
    containers: list[str]
    created_at: datetime
    updated_at: datetime


class PlacementOverride(BaseModel):
    visible: bool | None = None
    required: bool | None = None
    help_text: str | None = None
    order_index: int | None = None


class ScopeSyncRequest(BaseModel):
    scopes: list[str]
    base: FieldBase | None = None
    overrides: dict[str, PlacementOverride] = Field(default_factory=dict)


class FormSyncRequest(BaseModel):
    form_ids: list[uuid.UUID]
    base: FieldBase | None = None
    overrides: dict[uuid.UUID, PlacementOverride] = Field(default_factory=dict)


class SyncOut(BaseModel):
    field_id: str
    key: str
    added: list[str]
    removed: list[str]
    updated: list[str]
