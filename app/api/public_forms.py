from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.api.converters import public_field
from app.core import custom_forms
from app.core.security import get_optional_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.forms import PublicFormInfo, PublicFormOut, SubmitOut

router = APIRouter(prefix="/forms", tags=["forms"])


@router.get("/{slug}", response_model=PublicFormOut)
def get_public_form(
    slug: str,
    db: Session = Depends(get_db),
):
    view = custom_forms.get_by_slug(db, slug)
    return PublicFormOut(
        form=PublicFormInfo(
            slug=view.form.slug,
            title=view.form.title,
            description=view.form.description,
        ),
        fields=[public_field(r) for r in view.fields],
    )


@router.post("/{slug}/submit", response_model=SubmitOut)
def submit_form(
    slug: str,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    result = custom_forms.submit(
        db,
        slug,
        payload,
        user_id=current_user.id if current_user else None,
    )
    db.commit()
    return SubmitOut(**result)
