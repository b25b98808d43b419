"""
Ordering protocol for placements inside one container.

Indices use a gap of 10 so a single insert can slot between neighbours
without renumbering the whole container. Two reorder modes exist:

* explicit: the client sends final ``order_index`` values (drag and drop);
* sequential (legacy): the client sends ids in order, we assign 0, 10, 20...

Both validate the whole batch before writing anything.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.containers import Container
from app.core.errors import ValidationError
from app.models.field_placement import FieldPlacement

logger = logging.getLogger(__name__)

ORDER_GAP = 10


def next_order_index(db: Session, container: Container) -> int:
    """max + 10, so new placements sort last; an empty container starts at 0."""
    current = db.query(func.max(FieldPlacement.order_index)).filter(container.clause()).scalar()
    if current is None:
        current = -ORDER_GAP
    return current + ORDER_GAP


def _resolve_ids(db: Session, container: Container, ids: list[uuid.UUID]) -> list[FieldPlacement]:
    """
    Map placement ids (or field ids) to this container's placements.
    Rejects the batch if any id is foreign, unknown or repeated.
    """
    if not ids:
        raise ValidationError("at least one id is required")

    rows = db.query(FieldPlacement).filter(container.clause()).all()
    by_placement = {p.id: p for p in rows}
    by_field = {p.field_id: p for p in rows}

    issues: list[str] = []
    resolved: list[FieldPlacement] = []
    seen: set[uuid.UUID] = set()

    for raw in ids:
        p = by_placement.get(raw) or by_field.get(raw)
        if p is None:
            issues.append(f"{raw} is not a placement in {container}")
            continue
        if p.id in seen:
            issues.append(f"{raw} appears more than once")
            continue
        seen.add(p.id)
        resolved.append(p)

    if issues:
        raise ValidationError(issues, message="Reorder rejected")
    return resolved


def reorder_explicit(db: Session, container: Container, items: list[tuple[uuid.UUID, int]]) -> list[FieldPlacement]:
    """Write each ``order_index`` verbatim. Ties are allowed."""
    placements = _resolve_ids(db, container, [pid for pid, _ in items])

    now = datetime.utcnow()
    for p, (_, order_index) in zip(placements, items):
        if p.order_index != order_index:
            p.order_index = order_index
            p.updated_at = now
    db.flush()

    logger.info("reordered %d placement(s) in %s (explicit)", len(placements), container)
    return placements


def reorder_sequential(db: Session, container: Container, ids: list[uuid.UUID]) -> list[FieldPlacement]:
    """Assign ``position * 10`` in the order given."""
    placements = _resolve_ids(db, container, ids)

    now = datetime.utcnow()
    for position, p in enumerate(placements):
        order_index = position * ORDER_GAP
        if p.order_index != order_index:
            p.order_index = order_index
            p.updated_at = now
    db.flush()

    logger.info("reordered %d placement(s) in %s (sequential)", len(placements), container)
    return placements
