import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

SCOPES = ("registration", "login", "profile")


class FieldPlacement(Base):
    """
    Where a field appears: either a built-in scope or a custom form.
    Only per-container state lives here; base attributes stay on FieldDefinition.
    """

    __tablename__ = "field_placements"
    __table_args__ = (
        UniqueConstraint("field_id", "scope", name="uq_field_placements_field_scope"),
        UniqueConstraint("field_id", "form_id", name="uq_field_placements_field_form"),
        CheckConstraint(
            "(scope IS NULL) <> (form_id IS NULL)",
            name="ck_field_placements_one_container",
        ),
        CheckConstraint(
            "scope IS NULL OR scope IN ('registration','login','profile')",
            name="ck_field_placements_scope",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    field_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("field_definitions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    scope: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    form_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("forms.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # gap-10 ordering, ties broken by field key on read
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    help_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    field = relationship("FieldDefinition", lazy="selectin")
    form = relationship("Form", back_populates="placements")
