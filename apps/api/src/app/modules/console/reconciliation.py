"""
Reconciliation Engine

Joins the four record collections into one ``AdminStatusView`` per mosque.

Every function here is pure: the same snapshot always produces structurally
equal views, and views are rebuilt from scratch after every refresh.
"""

import logging
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from app.modules.admins.lifecycle import is_auto_banned

from .records import (
    ApprovedAdminRecord,
    MosqueRecord,
    PendingAdminRecord,
    RecordSnapshot,
    RejectedAdminRecord,
)

logger = logging.getLogger(__name__)


class AdminStatus(str, Enum):
    NO_ADMIN = "no_admin"
    ADMIN_REMOVED = "admin_removed"
    ADMIN_INACTIVE = "admin_inactive"
    APPROVED = "approved"


class _View(BaseModel):
    model_config = ConfigDict(frozen=True)


class ApprovedAdminSummary(_View):
    id: str
    name: str
    email: str
    phone: str
    approved_at: datetime | None = None
    super_admin_notes: str | None = None


class PendingAdminSummary(_View):
    id: str
    name: str
    email: str
    phone: str
    application_notes: str | None = None
    created_at: datetime | None = None


class RejectedAdminSummary(_View):
    """A rejected administrator as seen from one of their previous mosques."""

    id: str
    name: str
    email: str
    phone: str
    rejection_reason: str | None = None
    rejected_at: datetime | None = None
    rejection_count: int = 0
    can_reapply: bool = False

    @property
    def auto_banned(self) -> bool:
        return is_auto_banned(self.rejection_count)


class AdminStatusView(_View):
    mosque: MosqueRecord
    has_approved_admin: bool
    approved_admin: ApprovedAdminSummary | None = None
    pending_admins: tuple[PendingAdminSummary, ...] = ()
    rejected_admins: tuple[RejectedAdminSummary, ...] = ()
    conflicting_admins: tuple[ApprovedAdminSummary, ...] = ()
    status: AdminStatus = AdminStatus.NO_ADMIN

    @property
    def id(self) -> str:
        return self.mosque.id

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicting_admins)


class DashboardCounts(_View):
    total_mosques: int = 0
    with_admin: int = 0
    without_admin: int = 0
    pending_applications: int = 0
    rejected_applications: int = 0
    conflicts: int = 0


# ============================================
# Summaries
# ============================================


def _approved_summary(admin: ApprovedAdminRecord) -> ApprovedAdminSummary:
    return ApprovedAdminSummary(
        id=admin.id,
        name=admin.name,
        email=admin.email,
        phone=admin.phone,
        approved_at=admin.approved_at,
        super_admin_notes=admin.super_admin_notes,
    )


def _pending_summary(admin: PendingAdminRecord) -> PendingAdminSummary:
    return PendingAdminSummary(
        id=admin.id,
        name=admin.name,
        email=admin.email,
        phone=admin.phone,
        application_notes=admin.application_notes,
        created_at=admin.created_at,
    )


# ============================================
# Join maps
# ============================================


def _approved_by_mosque(
    approved: tuple[ApprovedAdminRecord, ...],
) -> tuple[dict[str, ApprovedAdminRecord], dict[str, list[ApprovedAdminRecord]]]:
    """
    Index active approved admins by mosque id.

    The first admin in collection order keeps the mosque; any later one is
    returned separately as a conflict.
    """
    winners: dict[str, ApprovedAdminRecord] = {}
    conflicts: dict[str, list[ApprovedAdminRecord]] = {}

    for admin in approved:
        mosque_id = admin.mosque_id
        if not admin.is_active or mosque_id is None:
            continue
        if mosque_id in winners:
            conflicts.setdefault(mosque_id, []).append(admin)
            logger.warning(
                f"Mosque {mosque_id} has more than one approved admin: "
                f"keeping {winners[mosque_id].id}, ignoring {admin.id}"
            )
            continue
        winners[mosque_id] = admin

    return winners, conflicts


def _pending_by_mosque(
    pending: tuple[PendingAdminRecord, ...],
) -> dict[str, list[PendingAdminSummary]]:
    grouped: dict[str, list[PendingAdminSummary]] = {}
    for admin in pending:
        if admin.mosque_id is None:
            continue
        grouped.setdefault(admin.mosque_id, []).append(_pending_summary(admin))
    return grouped


def _rejected_by_mosque(
    rejected: tuple[RejectedAdminRecord, ...],
) -> dict[str, list[RejectedAdminSummary]]:
    """
    Flatten rejection history into per-mosque buckets.

    An admin appears once per distinct previous mosque; repeated rejections
    for the same mosque keep the most recent entry.
    """
    grouped: dict[str, dict[str, RejectedAdminSummary]] = {}

    for admin in rejected:
        for entry in admin.previous_mosques:
            mosque_id = entry.mosque_id
            if mosque_id is None:
                continue

            summary = RejectedAdminSummary(
                id=admin.id,
                name=admin.name,
                email=admin.email,
                phone=admin.phone,
                rejection_reason=entry.rejection_reason,
                rejected_at=entry.rejected_at,
                rejection_count=admin.rejection_count,
                can_reapply=admin.can_reapply,
            )

            bucket = grouped.setdefault(mosque_id, {})
            existing = bucket.get(admin.id)
            if existing is None or _is_later(summary.rejected_at, existing.rejected_at):
                bucket[admin.id] = summary

    return {mosque_id: list(bucket.values()) for mosque_id, bucket in grouped.items()}


def _is_later(candidate: datetime | None, current: datetime | None) -> bool:
    if candidate is None:
        return False
    if current is None:
        return True
    return candidate >= current


# ============================================
# Public API
# ============================================


def reconcile(snapshot: RecordSnapshot) -> list[AdminStatusView]:
    """
    Build one view per mosque, in mosque collection order.

    Collections named in ``snapshot.failed_collections`` are already empty,
    so a partial snapshot still yields a view for every known mosque.
    """
    approved, conflicts = _approved_by_mosque(snapshot.approved)
    pending = _pending_by_mosque(snapshot.pending)
    rejected = _rejected_by_mosque(snapshot.rejected)

    views: list[AdminStatusView] = []
    known_ids: set[str] = set()

    for mosque in snapshot.mosques:
        known_ids.add(mosque.id)
        admin = approved.get(mosque.id)

        views.append(
            AdminStatusView(
                mosque=mosque,
                has_approved_admin=admin is not None,
                approved_admin=_approved_summary(admin) if admin else None,
                pending_admins=tuple(pending.get(mosque.id, ())),
                rejected_admins=tuple(rejected.get(mosque.id, ())),
                conflicting_admins=tuple(
                    _approved_summary(a) for a in conflicts.get(mosque.id, ())
                ),
                status=AdminStatus.APPROVED if admin else AdminStatus.NO_ADMIN,
            )
        )

    orphaned = (
        len(set(approved) - known_ids)
        + sum(len(v) for k, v in pending.items() if k not in known_ids)
        + sum(len(v) for k, v in rejected.items() if k not in known_ids)
    )
    if orphaned:
        logger.debug(f"{orphaned} admin reference(s) point at unknown mosques")

    if snapshot.failed_collections:
        logger.warning(
            f"Reconciled with missing collections: {sorted(snapshot.failed_collections)}"
        )

    return views


def summarize(views: list[AdminStatusView]) -> DashboardCounts:
    """Headline counts for the dashboard overview."""
    with_admin = sum(1 for v in views if v.has_approved_admin)
    return DashboardCounts(
        total_mosques=len(views),
        with_admin=with_admin,
        without_admin=len(views) - with_admin,
        pending_applications=sum(len(v.pending_admins) for v in views),
        rejected_applications=sum(len(v.rejected_admins) for v in views),
        conflicts=sum(1 for v in views if v.has_conflict),
    )
