from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.core.containers import Container
from app.core.field_validation import validate_and_partition
from app.core.profiles import get_profile, upsert_profile
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.profile import Profile
from app.models.user import User
from app.schemas.profile import ProfileOut

router = APIRouter(prefix="/profile", tags=["profile"])


def _profile_out(p: Profile) -> ProfileOut:
    return ProfileOut(
        id=str(p.id),
        display_name=p.display_name,
        avatar_url=p.avatar_url,
        bio=p.bio,
        role=p.role,
        attributes=p.attributes or {},
    )


def _save_scope(db: Session, user: User, scope: str, payload: dict[str, Any]) -> ProfileOut:
    split = validate_and_partition(db, Container.for_scope(scope), payload)
    profile = upsert_profile(db, user.id, split.core, split.attributes)
    db.commit()
    db.refresh(profile)
    return _profile_out(profile)


@router.get("")
def read_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Own profile (core + attributes); null before the first save."""
    p = get_profile(db, current_user.id)
    return {"profile": _profile_out(p) if p else None}


@router.put("", response_model=ProfileOut)
def update_profile(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Validated against the profile scope, then split into core/attributes."""
    return _save_scope(db, current_user, "profile", payload)


@router.post("/registration", response_model=ProfileOut)
def complete_registration(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Called once the auth service has created the account: stores the
    registration-scope values on the new profile.
    """
    return _save_scope(db, current_user, "registration", payload)
