"""
Outbound writes: the profile record and the submissions log.

Everything the field engine stores about a person goes through
``upsert_profile``; nothing else touches ``Profile.attributes``.
"""
import logging
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StorageError
from app.models.form_submission import FormSubmission
from app.models.profile import Profile

logger = logging.getLogger(__name__)

# role is a core column too, but never writable from a form
WRITABLE_CORE_COLUMNS = ("display_name", "avatar_url", "bio")


def get_profile(db: Session, user_id: uuid.UUID) -> Profile | None:
    return db.get(Profile, user_id)


def upsert_profile(
    db: Session,
    user_id: uuid.UUID,
    core: dict[str, Any],
    attributes: dict[str, Any],
) -> Profile:
    """
    Write core columns and merge ``attributes`` into the existing bag
    (last write wins per key). Storage failures surface as StorageError.
    """
    now = datetime.utcnow()
    try:
        profile = db.get(Profile, user_id)
        if profile is None:
            profile = Profile(id=user_id, attributes={}, created_at=now, updated_at=now)
            db.add(profile)

        for name, value in core.items():
            if name not in WRITABLE_CORE_COLUMNS:
                logger.debug("dropping non-writable core key %s for user %s", name, user_id)
                continue
            setattr(profile, name, value if value is None or isinstance(value, str) else str(value))

        if attributes:
            merged = dict(profile.attributes or {})
            merged.update(attributes)
            profile.attributes = merged

        profile.updated_at = now
        db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Could not save profile") from e
    return profile


def record_submission(
    db: Session,
    form_id: uuid.UUID,
    user_id: uuid.UUID | None,
    payload: dict[str, Any],
) -> FormSubmission:
    sub = FormSubmission(
        form_id=form_id,
        user_id=user_id,
        payload=payload,
        created_at=datetime.utcnow(),
    )
    db.add(sub)
    db.flush()
    return sub
