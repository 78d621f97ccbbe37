"""
Super-Admin Console Module

Client-side core of the super-admin console:
1. Fetching the four record collections into an immutable snapshot
2. Reconciling them into one admin-status view per mosque
3. Filtering, searching and sorting those views
4. Driving lifecycle transitions against the directory backend

Nothing here renders; a presentation layer reads ``ConsoleSession.visible()``
and calls ``TransitionEngine`` actions.
"""

from .client import ConsoleApiClient, TokenStore
from .filters import ViewQuery, filter_views
from .reconciliation import AdminStatus, AdminStatusView, reconcile, summarize
from .records import RecordSnapshot
from .session import ConsoleSession, SelectionState
from .transitions import AssignAdminForm, TransitionEngine, TransitionResult

__all__ = [
    "AdminStatus",
    "AdminStatusView",
    "AssignAdminForm",
    "ConsoleApiClient",
    "ConsoleSession",
    "RecordSnapshot",
    "SelectionState",
    "TokenStore",
    "TransitionEngine",
    "TransitionResult",
    "ViewQuery",
    "filter_views",
    "reconcile",
    "summarize",
]
