from datetime import datetime
from typing import Any
import uuid

from pydantic import BaseModel, Field

from app.schemas.fields import FieldBase
from app.schemas.placements import PlacementOut, PublicField


class FormCreate(BaseModel):
    slug: str = Field(min_length=1, max_length=120)
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool = True
    is_published: bool = True


class FormUpdate(BaseModel):
    slug: str | None = Field(default=None, min_length=1, max_length=120)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
    is_published: bool | None = None


class FormOut(BaseModel):
    id: str
    slug: str
    title: str
    description: str | None
    is_active: bool
    is_published: bool
    created_at: datetime
    updated_at: datetime


class FormWithFieldsOut(FormOut):
    fields: list[PlacementOut]


class FormFieldAttach(BaseModel):
    # one of field_id / key; an unknown key creates the definition
    field_id: uuid.UUID | None = None
    key: str | None = Field(default=None, max_length=120)
    required: bool | None = None
    visible: bool | None = None
    help_text: str | None = None
    order_index: int | None = None
    base: FieldBase | None = None


class PublicFormInfo(BaseModel):
    slug: str
    title: str
    description: str | None


class PublicFormOut(BaseModel):
    form: PublicFormInfo
    fields: list[PublicField]


class SubmitOut(BaseModel):
    ok: bool


class SubmissionOut(BaseModel):
    id: str
    form_id: str
    user_id: str | None
    payload: dict[str, Any]
    created_at: datetime


class FormPreviewOut(BaseModel):
    form: FormOut
    fields: list[PublicField]
