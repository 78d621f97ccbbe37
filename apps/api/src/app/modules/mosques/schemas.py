"""
Mosque Schemas

Pydantic schemas for mosque responses and verification code management.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PrayerTimesSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    fajr: str | None = None
    dhuhr: str | None = None
    asr: str | None = None
    maghrib: str | None = None
    isha: str | None = None
    jummah: str | None = None


class MosqueSummary(BaseModel):
    """Populated mosque reference embedded in administrator responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    location: str
    verification_code: str | None = None


class MosqueResponse(BaseModel):
    """Full mosque record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    location: str
    description: str | None = None
    verification_code: str
    verification_code_expires: datetime | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    admin_instructions: str | None = None
    prayer_times: PrayerTimesSchema = Field(default_factory=PrayerTimesSchema)
    created_at: datetime
    updated_at: datetime


class MosqueListResponse(BaseModel):
    """Response for GET /superadmin/mosques."""

    mosques: list[MosqueResponse]
    total: int


class RegenerateCodeRequest(BaseModel):
    """Request body for PUT /superadmin/mosque/{id}/regenerate-code."""

    expiry_days: int = Field(30, ge=1, le=365)


class RegenerateCodeResponse(BaseModel):
    id: str
    name: str
    verification_code: str
    verification_code_expires: datetime
    message: str


class ExpiringCodeItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    location: str
    verification_code: str
    verification_code_expires: datetime
    expired: bool = False


class ExpiringCodesResponse(BaseModel):
    """Response for GET /superadmin/mosque/expiring-codes."""

    mosques: list[ExpiringCodeItem]
    count: int
    days_ahead: int


class MosqueCreateRequest(BaseModel):
    """Request body for POST /superadmin/mosques."""

    name: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    contact_phone: str | None = Field(None, max_length=20)
    contact_email: str | None = Field(None, max_length=255)
    admin_instructions: str | None = Field(None, max_length=2000)
    prayer_times: PrayerTimesSchema | None = None


class MosqueCreateResponse(BaseModel):
    mosque: MosqueResponse
    message: str


class MosqueUpdateRequest(BaseModel):
    """Request body for PUT /superadmin/mosque/{id}. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=100)
    location: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    contact_phone: str | None = Field(None, max_length=20)
    contact_email: str | None = Field(None, max_length=255)
    admin_instructions: str | None = Field(None, max_length=2000)
    prayer_times: PrayerTimesSchema | None = None

    @field_validator("name", "location", "prayer_times")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v
