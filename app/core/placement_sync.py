"""
Keep the placements of one field key in line with the set of containers an
operator ticked.

The definition is shared: unticking a container removes only that
placement, never the field itself.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field as dc_field
from typing import Any, Iterable

from sqlalchemy.orm import Session

from app.core.containers import BUILTIN_SCOPES, Container
from app.core.errors import ValidationError
from app.core.field_catalog import normalize_key, resolve_or_create
from app.core.placements import remove_placement, upsert_placement
from app.models.field_placement import FieldPlacement
from app.models.form import Form

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    field_id: uuid.UUID
    key: str
    added: list[Container]
    removed: list[Container]
    # kept containers that had overrides applied
    updated: list[Container] = dc_field(default_factory=list)


def form_containers(db: Session) -> set[Container]:
    return {Container.for_form(form_id) for (form_id,) in db.query(Form.id).all()}


def sync_placements(
    db: Session,
    key: Any,
    desired: Iterable[Container],
    field_base: dict[str, Any] | None = None,
    overrides: dict[Container, dict[str, Any]] | None = None,
    namespace: Iterable[Container] | None = None,
) -> SyncResult:
    """
    Diff ``desired`` against the containers that already hold the field
    and add/remove placements to match.

    ``namespace`` is the set of containers this call may touch (defaults to
    the three built-in scopes); placements outside it are left alone.
    New placements go last (max + 10). There is no rollback of earlier
    steps on failure: every step is idempotent, so callers retry the sync.
    """
    norm = normalize_key(key)

    desired = set(desired)
    if not desired:
        raise ValidationError("select at least one scope")

    allowed = set(namespace) if namespace is not None else set(BUILTIN_SCOPES)
    outside = sorted(desired - allowed, key=Container.sort_key)
    if outside:
        raise ValidationError([f"{c} is not a valid target" for c in outside])

    overrides = overrides or {}
    stray = sorted(set(overrides) - desired, key=Container.sort_key)
    if stray:
        raise ValidationError([f"override for {c} but it is not selected" for c in stray])

    fdef = resolve_or_create(db, norm, field_base)

    rows = db.query(FieldPlacement).filter(FieldPlacement.field_id == fdef.id).all()
    existing = {Container.of(p) for p in rows} & allowed

    to_add = sorted(desired - existing, key=Container.sort_key)
    to_remove = sorted(existing - desired, key=Container.sort_key)
    to_keep = sorted(desired & existing, key=Container.sort_key)

    for c in to_add:
        upsert_placement(db, fdef.id, c, overrides.get(c))

    for c in to_remove:
        remove_placement(db, fdef.id, c)

    updated: list[Container] = []
    for c in to_keep:
        if overrides.get(c):
            upsert_placement(db, fdef.id, c, overrides[c])
            updated.append(c)

    logger.info(
        "synced placements key=%s added=%s removed=%s updated=%s",
        fdef.key,
        [str(c) for c in to_add],
        [str(c) for c in to_remove],
        [str(c) for c in updated],
    )
    return SyncResult(field_id=fdef.id, key=fdef.key, added=to_add, removed=to_remove, updated=updated)
