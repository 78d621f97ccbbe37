"""
Filter / Search / Sort Pipeline

Narrows reconciled views to what the operator asked for. Functions here are
pure and stable: equal inputs keep their relative order unless a sort key
separates them, and every sort falls back to mosque id for a total order.
"""

import locale
from collections.abc import Iterable, Sequence
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .reconciliation import AdminStatus, AdminStatusView
from .records import RejectedAdminRecord

# A query containing any of these matches every mosque. Kept for operators
# used to typing "no admin" into the search box.
ADMIN_STATUS_SYNONYMS = ("admin", "no admin", "noadmin", "no_admin", "without admin")


class AdminPresence(str, Enum):
    ALL = "all"
    HAS_ADMIN = "has_admin"
    NO_ADMIN = "no_admin"


class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"
    LOCATION = "location"


class RejectedSortKey(str, Enum):
    NONE = "none"
    CAN_REAPPLY = "can_reapply"
    REJECTION_COUNT = "rejection_count"
    UNIQUE_MOSQUES = "unique_mosques"


class ViewQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    search: str = ""
    status: AdminStatus | None = None
    admin_presence: AdminPresence = AdminPresence.ALL
    sort: SortOrder = SortOrder.NEWEST


def normalize_search(term: str | None) -> str:
    return (term or "").strip().lower()


def is_status_synonym(normalized: str) -> bool:
    return bool(normalized) and any(term in normalized for term in ADMIN_STATUS_SYNONYMS)


# ============================================
# Predicates
# ============================================


def _searchable_text(view: AdminStatusView) -> Iterable[str | None]:
    mosque = view.mosque
    yield from (
        mosque.name,
        mosque.location,
        mosque.verification_code,
        mosque.description,
        mosque.contact_email,
        mosque.contact_phone,
    )

    admins = [
        *([view.approved_admin] if view.approved_admin else []),
        *view.pending_admins,
        *view.rejected_admins,
    ]
    for admin in admins:
        yield from (admin.name, admin.email, admin.phone)


def matches_search(view: AdminStatusView, normalized: str) -> bool:
    if not normalized:
        return True
    return any(normalized in value.lower() for value in _searchable_text(view) if value)


def _matches_presence(view: AdminStatusView, presence: AdminPresence) -> bool:
    if presence is AdminPresence.HAS_ADMIN:
        return view.has_approved_admin
    if presence is AdminPresence.NO_ADMIN:
        return not view.has_approved_admin
    return True


def matches(view: AdminStatusView, query: ViewQuery) -> bool:
    normalized = normalize_search(query.search)

    # Synonym queries bypass the rest of the row predicate
    if is_status_synonym(normalized):
        return True

    if query.status is not None and view.status != query.status:
        return False
    if not _matches_presence(view, query.admin_presence):
        return False
    return matches_search(view, normalized)


# ============================================
# Sorting
# ============================================


def decision_timestamp(view: AdminStatusView) -> datetime | None:
    """The approval time of the mosque's admin, else the mosque's creation time."""
    if view.approved_admin and view.approved_admin.approved_at:
        return view.approved_admin.approved_at
    return view.mosque.created_at


def _collation_key(value: str | None) -> str:
    return locale.strxfrm((value or "").casefold())


def _sort_key(order: SortOrder):
    if order is SortOrder.NAME:
        return lambda v: (_collation_key(v.mosque.name), v.id)
    if order is SortOrder.LOCATION:
        return lambda v: (_collation_key(v.mosque.location), v.id)

    sign = -1 if order is SortOrder.NEWEST else 1

    def by_time(view: AdminStatusView):
        ts = decision_timestamp(view)
        # Views without any timestamp go last in either direction
        if ts is None:
            return (1, 0.0, view.id)
        return (0, sign * ts.timestamp(), view.id)

    return by_time


def sort_views(views: Iterable[AdminStatusView], order: SortOrder) -> list[AdminStatusView]:
    return sorted(views, key=_sort_key(order))


def filter_views(views: Sequence[AdminStatusView], query: ViewQuery) -> list[AdminStatusView]:
    """Apply search, status and presence filters, then sort."""
    return sort_views((v for v in views if matches(v, query)), query.sort)


# ============================================
# Rejected admins screen
# ============================================


def unique_mosque_count(record: RejectedAdminRecord) -> int:
    return len({e.mosque_id for e in record.previous_mosques if e.mosque_id})


def sort_rejected_admins(
    records: Sequence[RejectedAdminRecord],
    by: RejectedSortKey = RejectedSortKey.NONE,
    descending: bool = True,
) -> list[RejectedAdminRecord]:
    """
    Order rejected admins for the rejected-admins screen.

    ``NONE`` keeps backend order. Equal keys keep their relative order.
    """
    if by is RejectedSortKey.NONE:
        return list(records)

    if by is RejectedSortKey.CAN_REAPPLY:
        key = lambda r: int(r.can_reapply)  # noqa: E731
    elif by is RejectedSortKey.REJECTION_COUNT:
        key = lambda r: r.rejection_count  # noqa: E731
    else:
        key = unique_mosque_count

    return sorted(records, key=key, reverse=descending)
