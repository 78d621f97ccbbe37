"""
Mosque Models

Each mosque is a tenant of the directory. A mosque has zero or one approved
administrator at a time; administrators are tracked in the admins module.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel

PRAYER_NAMES = ("fajr", "dhuhr", "asr", "maghrib", "isha", "jummah")

DEFAULT_ADMIN_INSTRUCTIONS = (
    "To become an admin of this mosque, you need the mosque verification code. "
    "Contact the mosque management at the provided phone/email to get the code."
)


def empty_prayer_times() -> dict[str, str | None]:
    return {name: None for name in PRAYER_NAMES}


class Mosque(BaseModel):
    """
    Mosque tenant.

    Prayer times are stored as a JSON object keyed by prayer name; each
    time may be unset.
    """

    __tablename__ = "mosques"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    prayer_times: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=empty_prayer_times,
    )

    # Applicants must present the current code to apply as administrator
    verification_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    verification_code_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    admin_instructions: Mapped[str | None] = mapped_column(
        Text, nullable=True, default=DEFAULT_ADMIN_INSTRUCTIONS
    )

    __table_args__ = (
        Index("ix_mosques_name", "name"),
        Index("ix_mosques_verification_code_expires", "verification_code_expires"),
    )

    def __repr__(self) -> str:
        return f"<Mosque(id={self.id}, name={self.name})>"
