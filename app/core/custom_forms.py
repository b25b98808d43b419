from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.containers import Container
from app.core.errors import Conflict, NotFound, ValidationError
from app.core.field_catalog import get_field, resolve_or_create
from app.core.field_validation import FieldRule, compile_container, load_rules, partition_rules, validate_rules
from app.core.placements import upsert_placement
from app.core.profiles import record_submission, upsert_profile
from app.models.field_placement import FieldPlacement
from app.models.form import Form
from app.models.form_submission import FormSubmission

logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
FORM_ATTRS = ("slug", "title", "description", "is_active", "is_published")


@dataclass
class FormView:
    form: Form
    fields: list[FieldRule]


def _check_form_attrs(attrs: dict[str, Any], creating: bool) -> dict[str, Any]:
    issues: list[str] = []
    clean: dict[str, Any] = {}

    for name in attrs:
        if name not in FORM_ATTRS:
            issues.append(f"unknown attribute: {name}")

    if creating:
        for name in ("slug", "title"):
            if attrs.get(name) is None:
                issues.append(f"{name} is required")

    if attrs.get("slug") is not None:
        slug = str(attrs["slug"]).strip().lower()
        if not SLUG_RE.match(slug) or len(slug) > 120:
            issues.append("slug must be lowercase letters, digits and single dashes")
        else:
            clean["slug"] = slug

    if attrs.get("title") is not None:
        title = attrs["title"]
        if not isinstance(title, str) or not title.strip():
            issues.append("title must be a non-empty string")
        elif len(title) > 200:
            issues.append("title must be at most 200 characters")
        else:
            clean["title"] = title.strip()

    if "description" in attrs:
        desc = attrs["description"]
        if desc is not None and (not isinstance(desc, str) or len(desc) > 500):
            issues.append("description must be a string of at most 500 characters")
        else:
            clean["description"] = desc

    for flag in ("is_active", "is_published"):
        if flag in attrs:
            if not isinstance(attrs[flag], bool):
                issues.append(f"{flag} must be true/false")
            else:
                clean[flag] = attrs[flag]

    if issues:
        raise ValidationError(issues)
    return clean


def list_forms(db: Session) -> list[Form]:
    return db.query(Form).order_by(Form.created_at.desc()).all()


def get_form(db: Session, form_id: uuid.UUID) -> Form:
    form = db.get(Form, form_id)
    if not form:
        raise NotFound("Form not found")
    return form


def find_form_by_slug(db: Session, slug: str) -> Form | None:
    return db.query(Form).filter(Form.slug == slug.strip().lower()).one_or_none()


def form_container(form: Form) -> Container:
    return Container.for_form(form.id)


def _flush_slug(db: Session) -> None:
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise Conflict("Form slug already exists")


def create_form(db: Session, attrs: dict[str, Any]) -> Form:
    clean = _check_form_attrs(attrs, creating=True)
    if find_form_by_slug(db, clean["slug"]):
        raise Conflict("Form slug already exists")

    now = datetime.utcnow()
    form = Form(created_at=now, updated_at=now, **clean)
    db.add(form)
    _flush_slug(db)
    return form


def update_form(db: Session, form_id: uuid.UUID, attrs: dict[str, Any]) -> Form:
    form = get_form(db, form_id)
    clean = _check_form_attrs(attrs, creating=False)

    new_slug = clean.get("slug")
    if new_slug and new_slug != form.slug:
        other = find_form_by_slug(db, new_slug)
        if other is not None and other.id != form.id:
            raise Conflict("Form slug already exists")

    for name, value in clean.items():
        setattr(form, name, value)
    form.updated_at = datetime.utcnow()
    _flush_slug(db)
    return form


def delete_form(db: Session, form_id: uuid.UUID) -> Form:
    """Drops the form with its placements and submissions; definitions stay."""
    form = get_form(db, form_id)
    db.delete(form)
    db.flush()
    return form


def add_form_field(
    db: Session,
    form_id: uuid.UUID,
    *,
    field_id: uuid.UUID | None = None,
    key: str | None = None,
    base: dict[str, Any] | None = None,
    attrs: dict[str, Any] | None = None,
) -> tuple[FieldPlacement, bool]:
    """
    Place an existing field (by id) or a key (created on first use) on a form.
    An existing placement is updated in place.
    """
    form = get_form(db, form_id)

    if field_id is not None:
        fdef = get_field(db, field_id)
        if base:
            fdef = resolve_or_create(db, fdef.key, base)
    elif key is not None:
        fdef = resolve_or_create(db, key, base)
    else:
        raise ValidationError("field_id or key is required")

    return upsert_placement(db, fdef.id, form_container(form), attrs)


def get_by_slug(db: Session, slug: str, *, preview: bool = False) -> FormView:
    """
    Public read hides unknown, unpublished and inactive forms alike.
    Operator preview shows any form with every placement, hidden ones too.
    """
    form = find_form_by_slug(db, slug)
    if form is None:
        raise NotFound("Form not found")

    container = form_container(form)
    if preview:
        return FormView(form=form, fields=load_rules(db, container))

    if not form.is_published or not form.is_active:
        raise NotFound("Form not found")
    return FormView(form=form, fields=compile_container(db, container))


def submit(
    db: Session,
    slug: str,
    payload: dict[str, Any],
    *,
    user_id: uuid.UUID | None = None,
    validate: bool | None = None,
) -> dict[str, Any]:
    """
    Signed-in users: accepted values are merged into their profile.
    Anonymous: best-effort capture in the submissions log; a failure there
    is logged and the caller still gets ``{"ok": True}``.
    """
    form = find_form_by_slug(db, slug)
    if form is None:
        raise NotFound("Form not found")
    if not form.is_active:
        raise Conflict("Form is inactive")
    if not isinstance(payload, dict):
        raise ValidationError("payload must be an object")

    rules = load_rules(db, form_container(form))

    if validate is None:
        validate = settings.VALIDATE_CUSTOM_FORM_SUBMISSIONS
    if validate:
        result = validate_rules(rules, payload)
        if not result.ok:
            raise ValidationError(result.issues)

    split = partition_rules(rules, payload)

    if user_id is not None:
        upsert_profile(db, user_id, split.core, split.attributes)
        return {"ok": True}

    try:
        record_submission(db, form.id, None, {**split.core, **split.attributes})
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("anonymous submission to form %s not recorded: %s", form.slug, e)
    return {"ok": True}


def list_submissions(db: Session, form_id: uuid.UUID, *, limit: int = 100, offset: int = 0) -> tuple[list[FormSubmission], int]:
    form = get_form(db, form_id)
    query = db.query(FormSubmission).filter(FormSubmission.form_id == form.id)
    total = query.count()
    rows = query.order_by(FormSubmission.created_at.desc()).offset(offset).limit(limit).all()
    return rows, total
