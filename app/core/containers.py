from __future__ import annotations

import uuid
from dataclasses import dataclass

from app.core.errors import ValidationError
from app.models.field_placement import SCOPES, FieldPlacement


@dataclass(frozen=True)
class Container:
    """
    The unit of ordering and visibility: a built-in scope or a custom form.
    Exactly one of ``scope`` / ``form_id`` is set.
    """

    scope: str | None = None
    form_id: uuid.UUID | None = None

    def __post_init__(self):
        if (self.scope is None) == (self.form_id is None):
            raise ValueError("Container needs exactly one of scope or form_id")

    @classmethod
    def for_scope(cls, scope: str) -> "Container":
        if scope not in SCOPES:
            raise ValidationError(f"scope must be one of {', '.join(SCOPES)}")
        return cls(scope=scope)

    @classmethod
    def for_form(cls, form_id: uuid.UUID) -> "Container":
        return cls(form_id=form_id)

    @classmethod
    def of(cls, placement: FieldPlacement) -> "Container":
        if placement.scope is not None:
            return cls(scope=placement.scope)
        return cls(form_id=placement.form_id)

    @property
    def is_scope(self) -> bool:
        return self.scope is not None

    def clause(self):
        """WHERE clause selecting this container's placements."""
        if self.scope is not None:
            return FieldPlacement.scope == self.scope
        return FieldPlacement.form_id == self.form_id

    def columns(self) -> dict:
        return {"scope": self.scope, "form_id": self.form_id}

    def sort_key(self) -> tuple:
        if self.scope is not None:
            return (0, SCOPES.index(self.scope), "")
        return (1, 0, str(self.form_id))

    def __str__(self) -> str:
        if self.scope is not None:
            return self.scope
        return f"form:{self.form_id}"


BUILTIN_SCOPES: frozenset[Container] = frozenset(Container(scope=s) for s in SCOPES)
