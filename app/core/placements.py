from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.containers import Container
from app.core.errors import Conflict, NotFound, ValidationError
from app.core.field_catalog import apply_patch, check_attrs
from app.core.ordering import next_order_index
from app.models.field_definition import FieldDefinition
from app.models.field_placement import FieldPlacement

PLACEMENT_ATTRS = ("order_index", "visible", "required", "help_text")


def check_placement_attrs(attrs: dict[str, Any]) -> dict[str, Any]:
    issues: list[str] = []
    clean: dict[str, Any] = {}

    for name, value in attrs.items():
        if name not in PLACEMENT_ATTRS:
            issues.append(f"unknown placement attribute: {name}")
        elif name == "order_index":
            if not isinstance(value, int) or isinstance(value, bool):
                issues.append("order_index must be an integer")
            else:
                clean[name] = value
        elif name in ("visible", "required"):
            if not isinstance(value, bool):
                issues.append(f"{name} must be true/false")
            else:
                clean[name] = value
        elif name == "help_text":
            if value is not None and not isinstance(value, str):
                issues.append("help_text must be a string")
            else:
                clean[name] = value

    if issues:
        raise ValidationError(issues)
    return clean


def list_by_container(db: Session, container: Container) -> list[FieldPlacement]:
    """Placements with their definitions, by order_index then field key."""
    return (
        db.query(FieldPlacement)
        .join(FieldDefinition, FieldPlacement.field_id == FieldDefinition.id)
        .filter(container.clause())
        .order_by(FieldPlacement.order_index.asc(), FieldDefinition.key.asc())
        .all()
    )


def find_placement(db: Session, field_id: uuid.UUID, container: Container) -> FieldPlacement | None:
    return (
        db.query(FieldPlacement)
        .filter(FieldPlacement.field_id == field_id, container.clause())
        .one_or_none()
    )


def containers_for_field(db: Session, field_id: uuid.UUID) -> list[Container]:
    rows = db.query(FieldPlacement).filter(FieldPlacement.field_id == field_id).all()
    return sorted((Container.of(p) for p in rows), key=Container.sort_key)


def upsert_placement(
    db: Session,
    field_id: uuid.UUID,
    container: Container,
    attrs: dict[str, Any] | None = None,
) -> tuple[FieldPlacement, bool]:
    """
    Create the (field, container) placement or update it in place.
    Returns (placement, created).
    """
    clean = check_placement_attrs(attrs or {})
    now = datetime.utcnow()

    p = find_placement(db, field_id, container)
    created = p is None

    if p is None:
        order_index = clean.get("order_index")
        if order_index is None:
            order_index = next_order_index(db, container)
        p = FieldPlacement(
            field_id=field_id,
            order_index=order_index,
            visible=clean.get("visible", True),
            required=clean.get("required", False),
            help_text=clean.get("help_text"),
            created_at=now,
            updated_at=now,
            **container.columns(),
        )
        db.add(p)
    else:
        changed = False
        for name, value in clean.items():
            if getattr(p, name) != value:
                setattr(p, name, value)
                changed = True
        if changed:
            p.updated_at = now

    try:
        db.flush()
    except IntegrityError:
        # lost a race against another writer for the same (field, container)
        db.rollback()
        raise Conflict(f"Field is already placed in {container}")
    return p, created


def remove_placement(db: Session, field_id: uuid.UUID, container: Container) -> bool:
    """Idempotent: returns False when there was nothing to remove."""
    p = find_placement(db, field_id, container)
    if p is None:
        return False
    db.delete(p)
    db.flush()
    return True


def get_placement(db: Session, container: Container, placement_id: uuid.UUID) -> FieldPlacement:
    p = (
        db.query(FieldPlacement)
        .filter(FieldPlacement.id == placement_id, container.clause())
        .one_or_none()
    )
    if p is None:
        raise NotFound("Placement not found")
    return p


def delete_placement(db: Session, container: Container, placement_id: uuid.UUID) -> FieldPlacement:
    """Direct admin deletion of one placement; the definition is kept."""
    p = get_placement(db, container, placement_id)
    db.delete(p)
    db.flush()
    return p


def update_placement(
    db: Session,
    container: Container,
    placement_id: uuid.UUID,
    attrs: dict[str, Any],
    base: dict[str, Any] | None = None,
) -> FieldPlacement:
    """
    Patch per-container state, and optionally the shared definition
    (``base``), which changes the field everywhere it is placed.
    """
    p = get_placement(db, container, placement_id)

    issues: list[str] = []
    clean: dict[str, Any] = {}
    try:
        clean = check_placement_attrs(attrs)
    except ValidationError as e:
        issues.extend(e.issues)
    if base:
        try:
            check_attrs(base, current=p.field)
        except ValidationError as e:
            issues.extend(e.issues)
    if issues:
        raise ValidationError(issues)

    changed = False
    for name, value in clean.items():
        if getattr(p, name) != value:
            setattr(p, name, value)
            changed = True
    if changed:
        p.updated_at = datetime.utcnow()

    if base:
        apply_patch(db, p.field, base)

    db.flush()
    return p
