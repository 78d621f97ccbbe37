from fastapi import APIRouter

from app.modules.admins import public_router as application_router
from app.modules.admins import router as superadmin_router
from app.modules.audit import router as audit_router
from app.modules.auth import router as auth_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(
    application_router,
    prefix="/auth/admin",
    tags=["Admin Applications"],
)

api_router.include_router(
    superadmin_router,
    prefix="/superadmin",
    tags=["Super Admin"],
)

api_router.include_router(
    audit_router,
    prefix="/superadmin",
    tags=["Super Admin - Audit"],
)
