"""
Console Session

Session-scoped state for one operator: the latest reconciled views, the
active query and the current selection.
"""

import logging
from collections.abc import Iterable
from typing import Protocol

from .filters import ViewQuery, filter_views
from .reconciliation import AdminStatusView, DashboardCounts, reconcile, summarize
from .records import RecordSnapshot

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    async def fetch_snapshot(self) -> RecordSnapshot: ...


class SelectionState:
    """Selected mosque ids, always a subset of what the operator can see."""

    def __init__(self) -> None:
        self._selected: set[str] = set()

    @property
    def selected(self) -> frozenset[str]:
        return frozenset(self._selected)

    def __contains__(self, item: str) -> bool:
        return item in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def select_one(self, mosque_id: str) -> None:
        if mosque_id in self._selected:
            self._selected.discard(mosque_id)
        else:
            self._selected.add(mosque_id)

    def select_all(self, filtered_ids: Iterable[str]) -> None:
        """Select every filtered id, or clear if exactly that set is already selected."""
        ids = set(filtered_ids)
        if self._selected == ids:
            self._selected.clear()
        else:
            self._selected = ids

    def retain(self, visible_ids: Iterable[str]) -> None:
        self._selected &= set(visible_ids)

    def clear(self) -> None:
        self._selected.clear()


class ConsoleSession:
    def __init__(self, source: SnapshotSource, query: ViewQuery | None = None):
        self.source = source
        self.query = query or ViewQuery()
        self.selection = SelectionState()
        self.snapshot: RecordSnapshot | None = None
        self.views: list[AdminStatusView] = []

    @property
    def failed_collections(self) -> frozenset[str]:
        return self.snapshot.failed_collections if self.snapshot else frozenset()

    async def refresh(self) -> list[AdminStatusView]:
        """Re-fetch every collection and rebuild the views from scratch."""
        self.snapshot = await self.source.fetch_snapshot()
        self.views = reconcile(self.snapshot)
        self.selection.retain(v.id for v in self.visible())
        logger.info(
            f"Console refreshed: {len(self.views)} mosques"
            + (f", missing {sorted(self.failed_collections)}" if self.failed_collections else "")
        )
        return self.views

    def set_query(self, query: ViewQuery) -> list[AdminStatusView]:
        self.query = query
        visible = self.visible()
        self.selection.retain(v.id for v in visible)
        return visible

    def visible(self) -> list[AdminStatusView]:
        return filter_views(self.views, self.query)

    def select_all_visible(self) -> None:
        self.selection.select_all(v.id for v in self.visible())

    def counts(self) -> DashboardCounts:
        return summarize(self.views)

    def find_view(self, mosque_id: str) -> AdminStatusView | None:
        return next((v for v in self.views if v.id == mosque_id), None)
