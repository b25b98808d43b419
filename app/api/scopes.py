from typing import Any

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.orm import Session

from app.api.converters import public_field
from app.core.containers import Container
from app.core.field_validation import compile_container, default_payload, load_rules, partition_rules, validate_rules
from app.db.session import get_db
from app.schemas.placements import CompiledFieldsOut, ValidateOut

router = APIRouter(prefix="/scopes", tags=["scopes"])


def no_store(response: Response) -> None:
    # field config changes must show up on the next render
    response.headers["Cache-Control"] = "no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"


@router.get("/{scope}/fields", response_model=CompiledFieldsOut)
def get_scope_fields(
    scope: str,
    response: Response,
    db: Session = Depends(get_db),
):
    """Visible fields for registration / login / profile, in display order."""
    rules = compile_container(db, Container.for_scope(scope))
    no_store(response)
    return CompiledFieldsOut(
        fields=[public_field(r) for r in rules],
        defaults=default_payload(rules),
    )


@router.post("/{scope}/validate", response_model=ValidateOut)
def validate_scope_payload(
    scope: str,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    """
    Dry run of the write path: every issue at once, plus where each
    accepted value would be stored. Nothing is written.
    """
    rules = load_rules(db, Container.for_scope(scope))
    result = validate_rules(rules, payload)
    split = partition_rules(rules, payload) if result.ok else None
    return ValidateOut(
        ok=result.ok,
        issues=result.issues,
        core=split.core if split else {},
        attributes=split.attributes if split else {},
    )
