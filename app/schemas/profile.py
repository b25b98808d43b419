from typing import Any

from pydantic import BaseModel


class ProfileOut(BaseModel):
    id: str
    display_name: str | None
    avatar_url: str | None
    bio: str | None
    role: str
    attributes: dict[str, Any]
