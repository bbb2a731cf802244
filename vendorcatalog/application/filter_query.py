"""Filter query manager.

Owns the canonical FilterState. Free-text search is debounced; every
other change applies immediately. Each new snapshot gets the next
sequence number, which the fetcher uses to drop superseded responses.
"""

from dataclasses import replace
from typing import Any, Awaitable, Callable

import structlog

from vendorcatalog.domain.models import (
    Category,
    FilterState,
    ProductStatus,
    SortField,
    SortOrder,
)
from vendorcatalog.infrastructure.timers import Debouncer

logger = structlog.get_logger()

QueryListener = Callable[[FilterState], Awaitable[Any]]


class FilterQueryManager:
    """Produces FilterState snapshots and hands them to a listener.

    The listener (normally the catalog fetcher) is awaited for immediate
    changes, so ``await manager.set_category(...)`` returns once the
    resulting fetch has settled. Search changes only arm the debounce
    timer; the listener runs when the timer fires.
    """

    def __init__(
        self,
        on_change: QueryListener,
        debounce_seconds: float = 0.5,
        default_page_size: int = 20,
        max_page_size: int = 100,
    ) -> None:
        """Initialize the manager.

        Args:
            on_change: Coroutine invoked with every new FilterState.
            debounce_seconds: Quiet period before a search change applies.
            default_page_size: Initial page size.
            max_page_size: Largest page size the service accepts.
        """
        self._on_change = on_change
        self.max_page_size = max_page_size
        self._seq = 0
        self._state = FilterState(page_size=self._clamp_page_size(default_page_size))
        self._pending_search: str | None = None
        self._search_timer = Debouncer(
            debounce_seconds, self._apply_search, name="search-debounce"
        )

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def seq(self) -> int:
        """Sequence number of the most recent snapshot."""
        return self._seq

    @property
    def pending_search(self) -> str | None:
        """Search text typed but not yet applied."""
        return self._pending_search if self._search_timer.pending else None

    def _clamp_page_size(self, page_size: int) -> int:
        return max(1, min(int(page_size), self.max_page_size))

    def _next(self, **changes: Any) -> FilterState:
        self._seq += 1
        self._state = replace(self._state, seq=self._seq, **changes)
        logger.debug(
            "Filter state changed",
            seq=self._seq,
            changes={k: getattr(v, "value", v) for k, v in changes.items()},
        )
        return self._state

    async def _emit(self, **changes: Any) -> Any:
        state = self._next(**changes)
        return await self._on_change(state)

    # =========================================================================
    # Search (debounced)
    # =========================================================================

    def set_search(self, text: str) -> None:
        """Record a keystroke; the search applies once typing pauses."""
        self._pending_search = text
        self._search_timer.trigger(text)

    async def flush_search(self) -> Any:
        """Apply pending search text immediately (e.g. on Enter)."""
        if not self._search_timer.cancel():
            return None
        return await self._apply_search(self._pending_search or "")

    async def _apply_search(self, text: str) -> Any:
        self._pending_search = None
        return await self._emit(search=text.strip(), page=1)

    # =========================================================================
    # Immediate changes
    # =========================================================================

    async def set_category(self, category: str) -> Any:
        if category and category not in Category.values():
            raise ValueError(f"Unknown category: {category!r}")
        return await self._emit(category=category, page=1)

    async def set_status(self, status: ProductStatus | str) -> Any:
        value = ProductStatus(status).value if status else ""
        return await self._emit(status=value, page=1)

    async def set_sort(
        self,
        sort_by: SortField | str,
        sort_order: SortOrder | str | None = None,
    ) -> Any:
        changes: dict[str, Any] = {"sort_by": SortField(sort_by), "page": 1}
        if sort_order is not None:
            changes["sort_order"] = SortOrder(sort_order)
        return await self._emit(**changes)

    async def set_page_size(self, page_size: int) -> Any:
        return await self._emit(page_size=self._clamp_page_size(page_size), page=1)

    async def set_page(self, page: int) -> Any:
        """Navigate to a page; the only change that keeps other filters' page."""
        if page < 1:
            raise ValueError(f"Page must be >= 1, got {page}")
        return await self._emit(page=page)

    async def reset(self) -> Any:
        """Clear every filter back to the defaults, keeping the page size."""
        self._search_timer.cancel()
        self._pending_search = None
        return await self._emit(
            search="",
            category="",
            status="",
            sort_by=SortField.CREATED_AT,
            sort_order=SortOrder.DESC,
            page=1,
        )

    async def refresh(self) -> Any:
        """Re-issue the current query under a fresh sequence number."""
        return await self._emit()

    # =========================================================================
    # Teardown
    # =========================================================================

    def close(self) -> None:
        """Cancel the pending search timer; no new fetch starts afterwards."""
        self._search_timer.close()
        self._pending_search = None

    async def drain(self) -> None:
        """Wait for searches whose timer already fired."""
        await self._search_timer.drain()
