"""
Console Record Store

Typed, immutable records for the four collections the console reads from
the directory backend: mosques, pending admins, approved admins and
rejected admins.

Backend payloads reference a mosque either by bare id or by a populated
object (``{"_id": ..., "name": ...}`` or ``{"id": ...}``). Both forms are
resolved here, once, into the ``MosqueRef`` tagged union; nothing past this
module handles untyped references.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Annotated, Any, Literal, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from app.modules.admins.lifecycle import is_auto_banned

logger = logging.getLogger(__name__)

COLLECTIONS = ("mosques", "pending", "approved", "rejected")


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


# ============================================
# Mosque references
# ============================================


class MosqueIdRef(_Record):
    """Reference by bare identifier."""

    kind: Literal["id"] = "id"
    id: str


class PopulatedMosqueRef(_Record):
    """Reference carrying some of the mosque's fields."""

    kind: Literal["populated"] = "populated"
    id: str
    name: str | None = None
    location: str | None = None
    verification_code: str | None = None


MosqueRef = Annotated[MosqueIdRef | PopulatedMosqueRef, Field(discriminator="kind")]


def normalize_mosque_ref(value: Any) -> MosqueIdRef | PopulatedMosqueRef | None:
    """
    Resolve a raw mosque reference.

    Accepts a bare id, a populated object keyed by ``_id`` or ``id``, or an
    already-resolved reference. Returns None when no id can be found.
    """
    if value is None or isinstance(value, MosqueIdRef | PopulatedMosqueRef):
        return value

    if isinstance(value, str | int):
        text = str(value).strip()
        return MosqueIdRef(id=text) if text else None

    if isinstance(value, dict):
        if value.get("kind") in ("id", "populated"):
            model = MosqueIdRef if value["kind"] == "id" else PopulatedMosqueRef
            return model.model_validate(value)

        raw_id = value.get("_id") or value.get("id")
        if raw_id is None:
            return None
        return PopulatedMosqueRef(
            id=str(raw_id),
            name=value.get("name"),
            location=value.get("location"),
            verification_code=value.get("verification_code"),
        )

    raise ValueError(f"Unsupported mosque reference: {type(value).__name__}")


def canonical_mosque_id(ref: MosqueIdRef | PopulatedMosqueRef | None) -> str | None:
    return ref.id if ref is not None else None


# ============================================
# Records
# ============================================


class PrayerTimes(_Record):
    fajr: str | None = None
    dhuhr: str | None = None
    asr: str | None = None
    maghrib: str | None = None
    isha: str | None = None
    jummah: str | None = None


class MosqueRecord(_Record):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    location: str = ""
    verification_code: str | None = None
    verification_code_expires: datetime | None = None
    description: str | None = None
    admin_instructions: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    prayer_times: PrayerTimes = Field(default_factory=PrayerTimes)
    created_at: datetime | None = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    updated_at: datetime | None = Field(
        None, validation_alias=AliasChoices("updated_at", "updatedAt")
    )

    @field_validator("prayer_times", mode="before")
    @classmethod
    def _default_prayer_times(cls, value: Any) -> Any:
        return value or {}


class _AdminRecord(_Record):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    email: str = ""
    phone: str = ""
    created_at: datetime | None = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt")
    )


class _MosqueLinkedRecord(_AdminRecord):
    mosque: MosqueRef | None = Field(None, validation_alias=AliasChoices("mosque", "mosque_id"))

    @field_validator("mosque", mode="before")
    @classmethod
    def _resolve_mosque(cls, value: Any) -> Any:
        return normalize_mosque_ref(value)

    @property
    def mosque_id(self) -> str | None:
        return canonical_mosque_id(self.mosque)


class PendingAdminRecord(_MosqueLinkedRecord):
    application_notes: str | None = None
    verification_code_used: str | None = None
    rejection_count: int = 0


class ApprovedAdminRecord(_MosqueLinkedRecord):
    """
    An administrator from the approved collection.

    ``status`` is kept as received; anything other than ``approved``
    (``admin_removed``, ``mosque_deleted``) does not count as having an admin.
    """

    status: str = "approved"
    approved_at: datetime | None = None
    super_admin_notes: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == "approved"


class PreviousMosqueEntry(_Record):
    mosque: MosqueRef | None = Field(None, validation_alias=AliasChoices("mosque", "mosque_id"))
    rejection_reason: str | None = None
    rejected_at: datetime | None = None

    @field_validator("mosque", mode="before")
    @classmethod
    def _resolve_mosque(cls, value: Any) -> Any:
        return normalize_mosque_ref(value)

    @property
    def mosque_id(self) -> str | None:
        return canonical_mosque_id(self.mosque)


class RejectedAdminRecord(_AdminRecord):
    rejection_count: int = 0
    can_reapply: bool = False
    rejection_reason: str | None = None
    rejection_date: datetime | None = None
    previous_mosques: tuple[PreviousMosqueEntry, ...] = Field(
        default=(),
        validation_alias=AliasChoices("previous_mosques", "previous_mosque_ids"),
    )

    @field_validator("previous_mosques", mode="before")
    @classmethod
    def _wrap_bare_ids(cls, value: Any) -> Any:
        # Older payloads list bare mosque ids instead of history entries
        if not value:
            return ()
        return [
            {"mosque_id": item} if not isinstance(item, dict | PreviousMosqueEntry) else item
            for item in value
        ]

    @property
    def auto_banned(self) -> bool:
        return is_auto_banned(self.rejection_count)


# ============================================
# Snapshot
# ============================================


class RecordSnapshot(_Record):
    """
    The four collections as fetched together.

    A collection whose fetch failed is empty and named in
    ``failed_collections``.
    """

    mosques: tuple[MosqueRecord, ...] = ()
    pending: tuple[PendingAdminRecord, ...] = ()
    approved: tuple[ApprovedAdminRecord, ...] = ()
    rejected: tuple[RejectedAdminRecord, ...] = ()
    failed_collections: frozenset[str] = frozenset()
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_collections)


RecordT = TypeVar("RecordT", bound=_Record)


def parse_records(model: type[RecordT], items: Iterable[Any] | None) -> tuple[RecordT, ...]:
    """
    Validate raw payload items into records.

    Malformed items are skipped with a warning rather than failing the
    whole collection.
    """
    records: list[RecordT] = []
    for index, item in enumerate(items or ()):
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed {model.__name__} at index {index}: "
                f"{e.error_count()} validation error(s)"
            )
    return tuple(records)
