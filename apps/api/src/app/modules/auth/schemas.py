"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class SuperAdminResponse(BaseModel):
    """Super admin profile returned on login."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    is_active: bool
    created_at: str


class LoginResponse(BaseModel):
    """Login response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: SuperAdminResponse


class SuperAdminRegisterRequest(BaseModel):
    """Request body for POST /auth/superadmin/register."""

    name: str = Field(..., max_length=200)
    email: EmailStr
    password: str = Field(..., max_length=128)


class SuperAdminRegisterResponse(BaseModel):
    message: str
    user: SuperAdminResponse
