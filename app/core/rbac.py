import hmac

from fastapi import Depends, Header, HTTPException, status

from app.core.config import settings
from app.core.security import get_optional_user
from app.models.user import User


def _token_matches(token: str | None) -> bool:
    expected = settings.ADMIN_API_TOKEN
    if not expected or not token:
        return False
    return hmac.compare_digest(token, expected)


def require_admin(
    x_admin_token: str | None = Header(default=None),
    user: User | None = Depends(get_optional_user),
) -> User | None:
    """
    Usage:
      current_user: User | None = Depends(require_admin)

    Passes for an admin user, or for a matching X-Admin-Token (actor is then None).
    """
    if _token_matches(x_admin_token):
        return user

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Email header (dev auth)",
        )
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden. Requires admin",
        )
    return user
