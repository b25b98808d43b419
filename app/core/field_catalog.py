"""
Field catalog: the single definition behind every placement of a key.

Definitions carry what a value *is* (type, constraints, where it is stored).
Where a field shows up, and whether it is required there, belongs to
placements (see ``app.core.placements``).
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, ValidationError
from app.models.field_definition import FIELD_TYPES, WRITE_TARGETS, FieldDefinition
from app.models.field_placement import FieldPlacement

logger = logging.getLogger(__name__)

PATCHABLE_ATTRS = (
    "key",
    "label",
    "field_type",
    "write_to",
    "validation_regex",
    "min_length",
    "max_length",
    "options",
    "system",
)

_NON_KEY_CHARS = re.compile(r"[^a-z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"_+")


def normalize_key(raw: Any) -> str:
    """
    "First Name!" -> "first_name". Raises ValidationError if nothing is left.
    """
    s = "" if raw is None else str(raw)
    s = s.strip().lower()
    s = _NON_KEY_CHARS.sub("_", s)
    s = _UNDERSCORE_RUNS.sub("_", s)
    s = s.strip("_")
    if not s:
        raise ValidationError("key is required")
    return s


def derive_key(key: Any = None, label: Any = None) -> str:
    """Use ``key`` when given, otherwise fall back to the label."""
    raw = "" if key is None else str(key)
    if not raw.strip():
        raw = "" if label is None else str(label)
    return normalize_key(raw)


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def check_attrs(attrs: dict[str, Any], current: FieldDefinition | None = None) -> dict[str, Any]:
    """
    Validate a (partial) attribute dict against the definition rules.

    Every problem is collected; a single ValidationError lists them all.
    Returns the cleaned attributes to apply.
    """
    issues: list[str] = []
    clean: dict[str, Any] = {}

    for name in attrs:
        if name not in PATCHABLE_ATTRS:
            issues.append(f"unknown attribute: {name}")

    if "key" in attrs:
        try:
            clean["key"] = normalize_key(attrs["key"])
        except ValidationError as e:
            issues.extend(e.issues)

    if "label" in attrs:
        label = attrs["label"]
        if not isinstance(label, str) or not label.strip():
            issues.append("label must be a non-empty string")
        elif len(label.strip()) > 200:
            issues.append("label must be at most 200 characters")
        else:
            clean["label"] = label.strip()

    if "field_type" in attrs:
        if attrs["field_type"] not in FIELD_TYPES:
            issues.append(f"type must be one of {', '.join(FIELD_TYPES)}")
        else:
            clean["field_type"] = attrs["field_type"]

    if "write_to" in attrs:
        if attrs["write_to"] not in WRITE_TARGETS:
            issues.append(f"write_to must be one of {', '.join(WRITE_TARGETS)}")
        else:
            clean["write_to"] = attrs["write_to"]

    if "validation_regex" in attrs:
        pattern = attrs["validation_regex"]
        if pattern is None or pattern == "":
            clean["validation_regex"] = None
        elif not isinstance(pattern, str):
            issues.append("validation_regex must be a string")
        else:
            try:
                re.compile(pattern)
            except re.error:
                issues.append("validation_regex is not a valid pattern")
            else:
                clean["validation_regex"] = pattern

    for bound in ("min_length", "max_length"):
        if bound in attrs:
            v = attrs[bound]
            if v is None:
                clean[bound] = None
            elif not _is_int(v) or v < 0:
                issues.append(f"{bound} must be a non-negative integer")
            else:
                clean[bound] = v

    if "options" in attrs:
        opts = attrs["options"]
        if opts is None:
            clean["options"] = None
        elif not isinstance(opts, list) or not all(isinstance(o, (str, int, float)) and not isinstance(o, bool) for o in opts):
            issues.append("options must be an array of strings")
        else:
            clean["options"] = [str(o) for o in opts]

    if "system" in attrs:
        if not isinstance(attrs["system"], bool):
            issues.append("system must be true/false")
        else:
            clean["system"] = attrs["system"]

    # rules that depend on the resulting definition as a whole
    def effective(name: str, default=None):
        if name in clean:
            return clean[name]
        if name in attrs:
            return None  # invalid value already reported
        return getattr(current, name, default) if current is not None else default

    mn, mx = effective("min_length"), effective("max_length")
    if _is_int(mn) and _is_int(mx) and mn > mx:
        issues.append("min_length must be <= max_length")

    ftype = effective("field_type", "text")
    if ftype == "select":
        if ("options" not in attrs or "options" in clean) and not effective("options"):
            issues.append("options are required when type is select")
    elif ftype is not None and ("field_type" in clean or "options" in clean):
        # options only mean something for select
        clean["options"] = None

    if issues:
        raise ValidationError(issues)
    return clean


def get_field(db: Session, field_id: uuid.UUID) -> FieldDefinition:
    field = db.get(FieldDefinition, field_id)
    if not field:
        raise NotFound("Field not found")
    return field


def get_field_by_key(db: Session, key: str) -> FieldDefinition | None:
    return db.query(FieldDefinition).filter(FieldDefinition.key == key).one_or_none()


def list_fields(db: Session) -> list[FieldDefinition]:
    return db.query(FieldDefinition).order_by(FieldDefinition.key.asc()).all()


def _insert(db: Session, key: str, attrs: dict[str, Any]) -> FieldDefinition:
    values = {"label": key, "field_type": "text", "write_to": "attributes"}
    values.update(attrs)
    clean = check_attrs(values)
    clean.pop("key", None)

    now = datetime.utcnow()
    field = FieldDefinition(key=key, created_at=now, updated_at=now, **clean)
    db.add(field)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise Conflict("Field key already exists")

    logger.info("field definition created key=%s type=%s", field.key, field.field_type)
    return field


def create_field(db: Session, attrs: dict[str, Any]) -> FieldDefinition:
    """Explicit admin create; the key must be new."""
    attrs = dict(attrs)
    key = derive_key(attrs.pop("key", None), attrs.get("label"))
    if get_field_by_key(db, key):
        raise Conflict("Field key already exists")
    return _insert(db, key, attrs)


def resolve_or_create(db: Session, key: Any, base: dict[str, Any] | None = None) -> FieldDefinition:
    """
    Look up a definition by key, creating it on first use.

    ``base`` patches an existing definition non-destructively: only keys the
    caller supplied with a non-null value are written.
    """
    norm = normalize_key(key)
    supplied = {k: v for k, v in (base or {}).items() if v is not None and k != "key"}

    field = get_field_by_key(db, norm)
    if field is None:
        return _insert(db, norm, supplied)

    if supplied:
        apply_patch(db, field, supplied)
    return field


def apply_patch(db: Session, field: FieldDefinition, attrs: dict[str, Any]) -> FieldDefinition:
    clean = check_attrs(attrs, current=field)

    new_key = clean.get("key")
    if new_key and new_key != field.key:
        other = get_field_by_key(db, new_key)
        if other is not None and other.id != field.id:
            raise Conflict("Field key already exists")

    changed = False
    for name, value in clean.items():
        if getattr(field, name) != value:
            setattr(field, name, value)
            changed = True

    if changed:
        field.updated_at = datetime.utcnow()
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise Conflict("Field key already exists")
    return field


def patch_field(db: Session, field_id: uuid.UUID, attrs: dict[str, Any]) -> FieldDefinition:
    """Edit shared attributes; every placement of the field sees the change."""
    field = get_field(db, field_id)
    return apply_patch(db, field, attrs)


def placement_count(db: Session, field_id: uuid.UUID) -> int:
    return db.query(FieldPlacement).filter(FieldPlacement.field_id == field_id).count()


def delete_field(db: Session, field_id: uuid.UUID) -> FieldDefinition:
    field = get_field(db, field_id)

    if field.system:
        raise Conflict("System fields cannot be deleted")

    n = placement_count(db, field.id)
    if n:
        raise Conflict(f"Field is still placed in {n} container(s)")

    db.delete(field)
    db.flush()
    logger.info("field definition deleted key=%s", field.key)
    return field
