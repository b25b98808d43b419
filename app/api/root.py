from fastapi import APIRouter

from app.models.field_placement import SCOPES

router = APIRouter()


@router.get("/")
def root():
    return {
        "name": "Form Fields Service",
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "scopes": list(SCOPES),
    }
