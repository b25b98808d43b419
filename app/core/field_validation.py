"""
Runtime rules for one container, built from its placements + definitions.

compile  -> what a public form renders (visible placements only)
validate -> every placement, visible or not; all issues collected
partition-> split accepted values into profile core columns vs attributes
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field as dc_field
from functools import lru_cache
from typing import Any, Union

from sqlalchemy.orm import Session

from app.core.containers import Container
from app.core.errors import ValidationError
from app.core.placements import list_by_container
from app.models.field_placement import FieldPlacement

logger = logging.getLogger(__name__)

JSONValue = Union[str, int, float, bool, None, list, dict]
AttributeMap = dict[str, JSONValue]

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class FieldRule:
    key: str
    label: str
    field_type: str
    write_to: str
    required: bool
    visible: bool
    order_index: int
    help_text: str | None = None
    options: tuple[str, ...] | None = None
    validation_regex: str | None = None
    min_length: int | None = None
    max_length: int | None = None

    @classmethod
    def from_placement(cls, p: FieldPlacement) -> "FieldRule":
        f = p.field
        return cls(
            key=f.key,
            label=f.label or f.key,
            field_type=f.field_type,
            write_to=f.write_to,
            required=bool(p.required),
            visible=bool(p.visible),
            order_index=p.order_index,
            help_text=p.help_text,
            options=tuple(f.options) if f.field_type == "select" and f.options else None,
            validation_regex=f.validation_regex,
            min_length=f.min_length,
            max_length=f.max_length,
        )


@dataclass
class ValidationResult:
    ok: bool
    issues: list[str] = dc_field(default_factory=list)


@dataclass
class Partition:
    core: AttributeMap = dc_field(default_factory=dict)
    attributes: AttributeMap = dc_field(default_factory=dict)


def load_rules(db: Session, container: Container) -> list[FieldRule]:
    return [FieldRule.from_placement(p) for p in list_by_container(db, container)]


def compile_container(db: Session, container: Container) -> list[FieldRule]:
    """Ordered, visible-only rules used to render a public form."""
    return [r for r in load_rules(db, container) if r.visible]


def default_payload(rules: list[FieldRule]) -> AttributeMap:
    """Blank values a freshly rendered form would submit."""
    return {r.key: (False if r.field_type == "checkbox" else "") for r in rules}


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern | None:
    try:
        return re.compile(pattern)
    except re.error as e:
        # bad operator config must not block every submission
        logger.warning("ignoring malformed validation_regex %r: %s", pattern, e)
        return None


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            return math.isfinite(float(value.strip()))
        except ValueError:
            return False
    return False


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def check_value(rule: FieldRule, value: Any) -> list[str]:
    """Issues for one field. Empty optional values produce none."""
    label = rule.label

    if _is_empty(value):
        return [f"{label} is required"] if rule.required else []

    issues: list[str] = []
    ftype = rule.field_type

    if ftype == "email":
        if not isinstance(value, str) or not EMAIL_RE.match(value):
            issues.append(f"{label} must be a valid email")
    elif ftype == "number":
        if not _is_finite_number(value):
            issues.append(f"{label} must be a number")
    elif ftype == "select":
        options = rule.options or ()
        if value not in options:
            issues.append(f"{label} must be one of: {', '.join(options)}")
    elif ftype == "checkbox":
        if not isinstance(value, bool):
            issues.append(f"{label} must be true/false")
    else:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            issues.append(f"{label} has invalid type")

    if isinstance(value, str):
        if rule.min_length is not None and len(value) < rule.min_length:
            issues.append(f"{label} must be at least {rule.min_length} characters")
        if rule.max_length is not None and len(value) > rule.max_length:
            issues.append(f"{label} must be at most {rule.max_length} characters")

    if rule.validation_regex:
        pattern = _compile_pattern(rule.validation_regex)
        if pattern is not None and not pattern.search(_as_text(value)):
            issues.append(f"{label} is invalid")

    return issues


def validate_rules(rules: list[FieldRule], payload: dict[str, Any]) -> ValidationResult:
    issues: list[str] = []
    for rule in rules:
        issues.extend(check_value(rule, payload.get(rule.key)))
    return ValidationResult(ok=not issues, issues=issues)


def partition_rules(rules: list[FieldRule], payload: dict[str, Any]) -> Partition:
    out = Partition()
    for rule in rules:
        if rule.key not in payload:
            continue
        target = out.core if rule.write_to == "core" else out.attributes
        target[rule.key] = payload[rule.key]
    return out


def _require_mapping(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("payload must be an object")
    return payload


def validate_payload(db: Session, container: Container, payload: dict[str, Any]) -> ValidationResult:
    return validate_rules(load_rules(db, container), _require_mapping(payload))


def partition_payload(db: Session, container: Container, payload: dict[str, Any]) -> Partition:
    """Keys without a placement in the container are dropped."""
    return partition_rules(load_rules(db, container), _require_mapping(payload))


def validate_and_partition(db: Session, container: Container, payload: dict[str, Any]) -> Partition:
    """Public write path: raise with every issue, else return the split."""
    payload = _require_mapping(payload)
    rules = load_rules(db, container)

    result = validate_rules(rules, payload)
    if not result.ok:
        raise ValidationError(result.issues)
    return partition_rules(rules, payload)
