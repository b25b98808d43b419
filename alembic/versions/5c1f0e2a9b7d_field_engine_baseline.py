"""field engine baseline

Revision ID: 5c1f0e2a9b7d
Revises:
Create Date: 2026-10-19 09:12:44.208131
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "5c1f0e2a9b7d"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("display_name", sa.String(length=200), nullable=True),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="member"),
        sa.Column("attributes", JSONType, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "field_definitions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("key", sa.String(length=120), nullable=False, unique=True),
        sa.Column("label", sa.String(length=200), nullable=False),
        sa.Column("field_type", sa.String(length=40), nullable=False),
        sa.Column("write_to", sa.String(length=20), nullable=False),
        sa.Column("validation_regex", sa.Text(), nullable=True),
        sa.Column("min_length", sa.Integer(), nullable=True),
        sa.Column("max_length", sa.Integer(), nullable=True),
        sa.Column("options", JSONType, nullable=True),
        sa.Column("system", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint(
            "field_type IN ('text','password','email','number','date','textarea','checkbox','select')",
            name="ck_field_definitions_type",
        ),
        sa.CheckConstraint("write_to IN ('core','attributes')", name="ck_field_definitions_write_to"),
    )

    op.create_table(
        "forms",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("slug", sa.String(length=120), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_forms_slug", "forms", ["slug"], unique=True)

    op.create_table(
        "field_placements",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("field_id", sa.Uuid(), sa.ForeignKey("field_definitions.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("scope", sa.String(length=20), nullable=True),
        sa.Column("form_id", sa.Uuid(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("help_text", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("field_id", "scope", name="uq_field_placements_field_scope"),
        sa.UniqueConstraint("field_id", "form_id", name="uq_field_placements_field_form"),
        sa.CheckConstraint("(scope IS NULL) <> (form_id IS NULL)", name="ck_field_placements_one_container"),
        sa.CheckConstraint(
            "scope IS NULL OR scope IN ('registration','login','profile')",
            name="ck_field_placements_scope",
        ),
    )
    op.create_index("ix_field_placements_field_id", "field_placements", ["field_id"])
    op.create_index("ix_field_placements_scope", "field_placements", ["scope"])
    op.create_index("ix_field_placements_form_id", "field_placements", ["form_id"])

    op.create_table(
        "form_submissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("form_id", sa.Uuid(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("payload", JSONType, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_form_submissions_form_id", "form_submissions", ["form_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("metadata", JSONType, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_index("ix_form_submissions_form_id", table_name="form_submissions")
    op.drop_table("form_submissions")
    op.drop_index("ix_field_placements_form_id", table_name="field_placements")
    op.drop_index("ix_field_placements_scope", table_name="field_placements")
    op.drop_index("ix_field_placements_field_id", table_name="field_placements")
    op.drop_table("field_placements")
    op.drop_index("ix_forms_slug", table_name="forms")
    op.drop_table("forms")
    op.drop_table("field_definitions")
    op.drop_table("profiles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
