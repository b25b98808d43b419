import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.admin_scopes import apply_reorder
from app.api.converters import form_out, placement_out, public_field, submission_out
from app.core.audit import log_event
from app.core import custom_forms
from app.core.placements import delete_placement, list_by_container, update_placement
from app.core.rbac import require_admin
from app.db.session import get_db
from app.models.form import Form
from app.models.user import User
from app.schemas.forms import (
    FormCreate,
    FormFieldAttach,
    FormOut,
    FormPreviewOut,
    FormUpdate,
    FormWithFieldsOut,
    SubmissionOut,
)
from app.schemas.pagination import PaginatedResponse
from app.schemas.placements import PlacementOut, PlacementUpdate, ReorderRequest

router = APIRouter(prefix="/admin/forms", tags=["admin-forms"])


def _with_fields(db: Session, form: Form) -> FormWithFieldsOut:
    container = custom_forms.form_container(form)
    return FormWithFieldsOut(
        **form_out(form).model_dump(),
        fields=[placement_out(p) for p in list_by_container(db, container)],
    )


@router.get("", response_model=list[FormOut])
def list_forms(
    db: Session = Depends(get_db),
    _: User | None = Depends(require_admin),
):
    return [form_out(f) for f in custom_forms.list_forms(db)]


@router.post("", response_model=FormOut, status_code=status.HTTP_201_CREATED)
def create_form(
    payload: FormCreate,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    form = custom_forms.create_form(db, payload.model_dump())

    log_event(
        db=db,
        actor=current_user,
        action="FORM_CREATED",
        entity_type="form",
        entity_id=form.id,
        metadata={"slug": form.slug, "title": form.title},
    )

    db.commit()
    db.refresh(form)
    return form_out(form)


@router.get("/{form_id}", response_model=FormWithFieldsOut)
def get_form(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: User | None = Depends(require_admin),
):
    form = custom_forms.get_form(db, form_id)
    return _with_fields(db, form)


@router.get("/{form_id}/preview", response_model=FormPreviewOut)
def preview_form(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: User | None = Depends(require_admin),
):
    """What the public form would render, hidden fields included; ignores is_active/is_published."""
    form = custom_forms.get_form(db, form_id)
    view = custom_forms.get_by_slug(db, form.slug, preview=True)
    return FormPreviewOut(form=form_out(view.form), fields=[public_field(r) for r in view.fields])


@router.patch("/{form_id}", response_model=FormOut)
def update_form(
    form_id: uuid.UUID,
    payload: FormUpdate,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    changes = payload.model_dump(exclude_unset=True)
    form = custom_forms.update_form(db, form_id, changes)

    log_event(
        db=db,
        actor=current_user,
        action="FORM_UPDATED",
        entity_type="form",
        entity_id=form.id,
        metadata={"changes": changes},
    )

    db.commit()
    db.refresh(form)
    return form_out(form)


@router.delete("/{form_id}")
def delete_form(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    form = custom_forms.delete_form(db, form_id)

    log_event(
        db=db,
        actor=current_user,
        action="FORM_DELETED",
        entity_type="form",
        entity_id=form.id,
        metadata={"slug": form.slug},
    )

    db.commit()
    return {"ok": True}


@router.post("/{form_id}/fields", response_model=PlacementOut)
def add_form_field(
    form_id: uuid.UUID,
    payload: FormFieldAttach,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    """Add a field to the form, or update its placement if already there."""
    attrs = payload.model_dump(exclude_unset=True, exclude={"field_id", "key", "base"})
    base = payload.base.model_dump(exclude_unset=True) if payload.base else None

    p, created = custom_forms.add_form_field(
        db,
        form_id,
        field_id=payload.field_id,
        key=payload.key,
        base=base,
        attrs=attrs,
    )

    log_event(
        db=db,
        actor=current_user,
        action="FORM_FIELD_ADDED" if created else "FORM_FIELD_UPDATED",
        entity_type="form",
        entity_id=form_id,
        metadata={"placement_id": str(p.id), "key": p.field.key},
    )

    db.commit()
    db.refresh(p)
    return placement_out(p)


@router.patch("/{form_id}/fields/{placement_id}", response_model=PlacementOut)
def update_form_field(
    form_id: uuid.UUID,
    placement_id: uuid.UUID,
    payload: PlacementUpdate,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    form = custom_forms.get_form(db, form_id)
    attrs = payload.model_dump(exclude_unset=True, exclude={"base"})
    base = payload.base.model_dump(exclude_unset=True) if payload.base else None

    p = update_placement(db, custom_forms.form_container(form), placement_id, attrs, base=base)

    log_event(
        db=db,
        actor=current_user,
        action="FORM_FIELD_UPDATED",
        entity_type="form",
        entity_id=form.id,
        metadata={"placement_id": str(p.id), "changes": attrs, "base": base},
    )

    db.commit()
    db.refresh(p)
    return placement_out(p)


@router.delete("/{form_id}/fields/{placement_id}")
def delete_form_field(
    form_id: uuid.UUID,
    placement_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    form = custom_forms.get_form(db, form_id)
    p = delete_placement(db, custom_forms.form_container(form), placement_id)

    log_event(
        db=db,
        actor=current_user,
        action="FORM_FIELD_REMOVED",
        entity_type="form",
        entity_id=form.id,
        metadata={"placement_id": str(p.id), "field_id": str(p.field_id)},
    )

    db.commit()
    return {"ok": True}


@router.post("/{form_id}/reorder", response_model=FormWithFieldsOut)
def reorder_form(
    form_id: uuid.UUID,
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(require_admin),
):
    form = custom_forms.get_form(db, form_id)
    mode = apply_reorder(db, custom_forms.form_container(form), payload)

    log_event(
        db=db,
        actor=current_user,
        action="FORM_FIELDS_REORDERED",
        entity_type="form",
        entity_id=form.id,
        metadata={"mode": mode},
    )

    db.commit()
    return _with_fields(db, form)


@router.get("/{form_id}/submissions")
def list_form_submissions(
    form_id: uuid.UUID,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    include_pagination: bool = Query(default=False, description="Include pagination metadata"),
    db: Session = Depends(get_db),
    _: User | None = Depends(require_admin),
):
    rows, total = custom_forms.list_submissions(db, form_id, limit=limit, offset=offset)
    items: list[SubmissionOut] = [submission_out(s) for s in rows]

    if include_pagination:
        return PaginatedResponse.build(items, total=total, limit=limit, offset=offset)
    return items
