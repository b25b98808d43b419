import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.types import JSONType

FIELD_TYPES = ("text", "password", "email", "number", "date", "textarea", "checkbox", "select")
WRITE_TARGETS = ("core", "attributes")


class FieldDefinition(Base):
    __tablename__ = "field_definitions"
    __table_args__ = (
        CheckConstraint(
            "field_type IN ('text','password','email','number','date','textarea','checkbox','select')",
            name="ck_field_definitions_type",
        ),
        CheckConstraint(
            "write_to IN ('core','attributes')",
            name="ck_field_definitions_write_to",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # normalized [a-z0-9_]+, shared by every placement of the field
    key: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)

    label: Mapped[str] = mapped_column(String(200), nullable=False)
    field_type: Mapped[str] = mapped_column(String(40), nullable=False, default="text")

    # core -> fixed profile column, attributes -> free-form profile bag
    write_to: Mapped[str] = mapped_column(String(20), nullable=False, default="attributes")

    validation_regex: Mapped[str | None] = mapped_column(Text, nullable=True)
    min_length: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_length: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # select only: ["Red", "Green"]
    options: Mapped[list | None] = mapped_column(JSONType, nullable=True)

    # system fields (email, password) cannot be deleted by operators
    system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
