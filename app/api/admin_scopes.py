import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.converters import placement_out
from app.core.audit import log_event
from app.core.containers import Container
from app.core.ordering import reorder_explicit, reorder_sequential
from app.core.placements import delete_placement, list_by_container, update_placement
from app.core.rbac import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.placements import PlacementOut, PlacementUpdate, ReorderRequest

router = APIRouter(prefix="/admin/scopes", tags=["admin-scopes"])


def apply_reorder(db: Session, container: Container, payload: ReorderRequest) -> str:
    """Shared by scope and form reorder endpoints; returns the mode used."""
    if payload.items is not None:
        reorder_explicit(db, container, [(it.id, it.order_index) for it in payload.items])
        return "explicit"
    reorder_sequential(db, container, payload.ids or [])
    return "sequential"


@router.get("/{scope}/placements", response_model=list[PlacementOut])
def list_scope_placements(
    scope: str,
    db: Session = Depends(get_db),
    _: User | None = Depends(require_admin),
):
    """Every placement in the scope, hidden ones included."""
    container = Container.for_scope(scope)
    return [placement_out(p) for p in list_by_container(db, container)]


@router.patch("/{scope}/placements/{placement_id}", response_model=PlacementOut)
def update_scope_placement(
    scope: str,
    placement_id: uuid.UUID,
    payload: PlacementUpdate,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    container = Container.for_scope(scope)
    attrs = payload.model_dump(exclude_unset=True, exclude={"base"})
    base = payload.base.model_dump(exclude_unset=True) if payload.base else None

    p = update_placement(db, container, placement_id, attrs, base=base)

    log_event(
        db=db,
        actor=current_user,
        action="PLACEMENT_UPDATED",
        entity_type="field_placement",
        entity_id=p.id,
        metadata={"container": str(container), "changes": attrs, "base": base},
    )

    db.commit()
    db.refresh(p)
    return placement_out(p)


@router.delete("/{scope}/placements/{placement_id}")
def delete_scope_placement(
    scope: str,
    placement_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    container = Container.for_scope(scope)
    p = delete_placement(db, container, placement_id)

    log_event(
        db=db,
        actor=current_user,
        action="PLACEMENT_DELETED",
        entity_type="field_placement",
        entity_id=p.id,
        metadata={"container": str(container), "field_id": str(p.field_id)},
    )

    db.commit()
    return {"ok": True}


@router.post("/{scope}/reorder", response_model=list[PlacementOut])
def reorder_scope(
    scope: str,
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    container = Container.for_scope(scope)
    mode = apply_reorder(db, container, payload)

    log_event(
        db=db,
        actor=current_user,
        action="PLACEMENTS_REORDERED",
        entity_type="scope",
        entity_id=uuid.uuid5(uuid.NAMESPACE_URL, f"scope:{scope}"),
        metadata={"container": str(container), "mode": mode},
    )

    db.commit()
    return [placement_out(p) for p in list_by_container(db, container)]
