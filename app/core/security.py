from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.user import User


def _lookup_user(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email).one_or_none()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid or inactive user")
    return user


def get_current_user(
    x_user_email: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """
    DEV AUTH: pass X-User-Email header to simulate logged-in user.
    Session issuing/verification lives in the auth service, not here.
    """
    if not x_user_email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Email header (dev auth)",
        )
    return _lookup_user(db, x_user_email)


def get_optional_user(
    x_user_email: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User | None:
    """Public endpoints: anonymous callers are allowed, bad credentials are not."""
    if not x_user_email:
        return None
    return _lookup_user(db, x_user_email)
