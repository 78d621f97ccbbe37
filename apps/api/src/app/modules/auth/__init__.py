"""Authentication module - super admin login and registration."""

from app.modules.auth.router import router
from app.modules.auth.schemas import LoginRequest, LoginResponse, TokenResponse

__all__ = ["router", "LoginRequest", "LoginResponse", "TokenResponse"]
