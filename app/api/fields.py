import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.converters import field_out
from app.core.audit import log_event
from app.core.containers import Container
from app.core.errors import ValidationError
from app.core.field_catalog import create_field, delete_field, list_fields, patch_field
from app.core.placement_sync import SyncResult, form_containers, sync_placements
from app.core.placements import containers_for_field
from app.core.rbac import require_admin
from app.db.session import get_db
from app.models.field_placement import SCOPES
from app.models.user import User
from app.schemas.fields import (
    FieldDefinitionCreate,
    FieldDefinitionOut,
    FieldDefinitionPatch,
    FormSyncRequest,
    ScopeSyncRequest,
    SyncOut,
)

router = APIRouter(prefix="/admin/fields", tags=["admin-fields"])


def _sync_out(result: SyncResult) -> SyncOut:
    return SyncOut(
        field_id=str(result.field_id),
        key=result.key,
        added=[str(c) for c in result.added],
        removed=[str(c) for c in result.removed],
        updated=[str(c) for c in result.updated],
    )


def _scope_containers(names) -> dict[str, Container]:
    bad = [n for n in names if n not in SCOPES]
    if bad:
        raise ValidationError([f"unknown scope: {n} (expected one of {', '.join(SCOPES)})" for n in bad])
    return {n: Container.for_scope(n) for n in names}


@router.get("", response_model=list[FieldDefinitionOut])
def list_field_definitions(
    db: Session = Depends(get_db),
    _: User | None = Depends(require_admin),
):
    return [field_out(f, containers_for_field(db, f.id)) for f in list_fields(db)]


@router.post("", response_model=FieldDefinitionOut, status_code=status.HTTP_201_CREATED)
def create_field_definition(
    payload: FieldDefinitionCreate,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    f = create_field(db, payload.model_dump(exclude_unset=True))

    log_event(
        db=db,
        actor=current_user,
        action="FIELD_DEFINITION_CREATED",
        entity_type="field_definition",
        entity_id=f.id,
        metadata={"key": f.key, "field_type": f.field_type, "write_to": f.write_to},
    )

    db.commit()
    db.refresh(f)
    return field_out(f, [])


@router.patch("/{field_id}", response_model=FieldDefinitionOut)
def update_field_definition(
    field_id: uuid.UUID,
    payload: FieldDefinitionPatch,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    changes = payload.model_dump(exclude_unset=True)
    f = patch_field(db, field_id, changes)

    log_event(
        db=db,
        actor=current_user,
        action="FIELD_DEFINITION_UPDATED",
        entity_type="field_definition",
        entity_id=f.id,
        metadata={"changes": changes},
    )

    db.commit()
    db.refresh(f)
    return field_out(f, containers_for_field(db, f.id))


@router.delete("/{field_id}")
def delete_field_definition(
    field_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    f = delete_field(db, field_id)

    log_event(
        db=db,
        actor=current_user,
        action="FIELD_DEFINITION_DELETED",
        entity_type="field_definition",
        entity_id=f.id,
        metadata={"key": f.key},
    )

    db.commit()
    return {"ok": True}


@router.put("/{key}/scopes", response_model=SyncOut)
def sync_field_scopes(
    key: str,
    payload: ScopeSyncRequest,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    """
    Tick/untick registration, login and profile for one field key.
    Unknown keys are created from ``base``.
    """
    desired = _scope_containers(payload.scopes)
    override_targets = _scope_containers(list(payload.overrides))
    overrides = {
        override_targets[name]: o.model_dump(exclude_unset=True)
        for name, o in payload.overrides.items()
    }
    base = payload.base.model_dump(exclude_unset=True) if payload.base else None

    result = sync_placements(db, key, desired.values(), field_base=base, overrides=overrides)

    log_event(
        db=db,
        actor=current_user,
        action="FIELD_PLACEMENTS_SYNCED",
        entity_type="field_definition",
        entity_id=result.field_id,
        metadata={
            "key": result.key,
            "added": [str(c) for c in result.added],
            "removed": [str(c) for c in result.removed],
        },
    )

    db.commit()
    return _sync_out(result)


@router.put("/{key}/forms", response_model=SyncOut)
def sync_field_forms(
    key: str,
    payload: FormSyncRequest,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    """Same as the scope sync, over custom forms instead."""
    desired = [Container.for_form(fid) for fid in payload.form_ids]
    overrides = {
        Container.for_form(fid): o.model_dump(exclude_unset=True)
        for fid, o in payload.overrides.items()
    }
    base = payload.base.model_dump(exclude_unset=True) if payload.base else None

    result = sync_placements(
        db,
        key,
        desired,
        field_base=base,
        overrides=overrides,
        namespace=form_containers(db),
    )

    log_event(
        db=db,
        actor=current_user,
        action="FIELD_PLACEMENTS_SYNCED",
        entity_type="field_definition",
        entity_id=result.field_id,
        metadata={
            "key": result.key,
            "added": [str(c) for c in result.added],
            "removed": [str(c) for c in result.removed],
        },
    )

    db.commit()
    return _sync_out(result)
