from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.admin_scopes import router as admin_scopes_router
from app.api.audit import router as audit_router
from app.api.fields import router as fields_router
from app.api.forms import router as forms_router
from app.api.health import router as health_router
from app.api.profile import router as profile_router
from app.api.public_forms import router as public_forms_router
from app.api.root import router as root_router
from app.api.scopes import router as scopes_router
from app.core.config import settings
from app.core.logging import configure_logging

configure_logging()

app = FastAPI(title="Form Fields Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(root_router)
app.include_router(health_router)
app.include_router(fields_router)
app.include_router(admin_scopes_router)
app.include_router(forms_router)
app.include_router(scopes_router)
app.include_router(public_forms_router)
app.include_router(profile_router)
app.include_router(audit_router)
