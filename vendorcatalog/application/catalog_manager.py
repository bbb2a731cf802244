"""Vendor catalog manager.

Wires the catalog components together and exposes the operations the
presentation layer calls:

    user input -> FilterQueryManager (debounce) -> CatalogFetcher -> CatalogState
    form edits -> EditSession -> DraftStore (timer) / validation (submit)
    submit, delete, status, bulk -> MutationCoordinator -> CatalogState

Use it as an async context manager so that teardown cancels pending
timers and closes the HTTP client.
"""

from typing import Any

import structlog

from vendorcatalog.application.catalog_fetcher import CatalogFetcher, FetchResult
from vendorcatalog.application.catalog_state import CatalogState
from vendorcatalog.application.draft_store import DraftStore
from vendorcatalog.application.edit_session import EditSession
from vendorcatalog.application.filter_query import FilterQueryManager
from vendorcatalog.application.mutation_coordinator import MutationCoordinator, MutationRecord
from vendorcatalog.domain import events
from vendorcatalog.domain.exceptions import NetworkError
from vendorcatalog.domain.intents import BulkActionType
from vendorcatalog.domain.models import (
    FilterState,
    Product,
    ProductId,
    ProductStatus,
    SortField,
    SortOrder,
)
from vendorcatalog.infrastructure.catalog_client import CatalogAPIClient
from vendorcatalog.infrastructure.config import Settings
from vendorcatalog.infrastructure.log_config import configure_logging
from vendorcatalog.infrastructure.notifications import NotificationBus
from vendorcatalog.infrastructure.schemas import ProductResponse
from vendorcatalog.infrastructure.storage import InMemoryStorage, JsonFileStorage, KeyValueStorage

logger = structlog.get_logger()


def build_storage(settings: Settings) -> KeyValueStorage:
    """Pick the draft storage backend from settings."""
    if settings.draft_storage_path:
        return JsonFileStorage(settings.draft_storage_path)
    return InMemoryStorage()


class VendorCatalogManager:
    """Entry point for the catalog engine."""

    def __init__(
        self,
        client: CatalogAPIClient,
        settings: Settings | None = None,
        storage: KeyValueStorage | None = None,
        notifier: NotificationBus | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            client: Catalog API client.
            settings: Engine settings; defaults are loaded from the environment.
            storage: Draft storage backend; chosen from settings when omitted.
            notifier: Notification bus; a new one is created when omitted.
        """
        self.settings = settings or Settings()
        self.client = client
        self.state = CatalogState()
        self.notifications = notifier or NotificationBus()
        self.drafts = DraftStore(storage or build_storage(self.settings))
        self.fetcher = CatalogFetcher(client, self.state, self.notifications)
        self.mutations = MutationCoordinator(
            client,
            self.state,
            self.drafts,
            self.notifications,
            sequence=lambda: self.fetcher.latest_seq,
            reload=self.refresh,
        )
        self.fetcher.reconcile = self.mutations.reconcile
        self.filters = FilterQueryManager(
            on_change=self.fetcher.fetch,
            debounce_seconds=self.settings.search_debounce_seconds,
            default_page_size=self.settings.default_page_size,
            max_page_size=self.settings.max_page_size,
        )
        self._sessions: list[EditSession] = []
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "VendorCatalogManager":
        """Build a manager with logging and an HTTP client configured from settings."""
        settings = settings or Settings()
        configure_logging(settings)
        client = CatalogAPIClient(
            base_url=settings.api_base_url,
            api_token=settings.api_token,
            timeout=settings.request_timeout_seconds,
        )
        return cls(client, settings=settings)

    async def __aenter__(self) -> "VendorCatalogManager":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def query(self) -> FilterState:
        return self.filters.state

    @property
    def is_loading(self) -> bool:
        """Whether a listing request is in flight."""
        return self.fetcher.is_loading

    # =========================================================================
    # Listing
    # =========================================================================

    async def load(self) -> FetchResult:
        """Fetch the current query and announce the result."""
        return await self.fetcher.fetch(self.filters.state, announce=True)

    async def refresh(self) -> FetchResult:
        """Re-fetch the current query under a new sequence number."""
        return await self.filters.refresh()

    def search(self, text: str) -> None:
        self.filters.set_search(text)

    async def set_category(self, category: str) -> FetchResult:
        return await self.filters.set_category(category)

    async def set_status_filter(self, status: ProductStatus | str) -> FetchResult:
        return await self.filters.set_status(status)

    async def set_sort(
        self, sort_by: SortField | str, sort_order: SortOrder | str | None = None
    ) -> FetchResult:
        return await self.filters.set_sort(sort_by, sort_order)

    async def set_page(self, page: int) -> FetchResult:
        return await self.filters.set_page(page)

    async def set_page_size(self, page_size: int) -> FetchResult:
        return await self.filters.set_page_size(page_size)

    async def next_page(self) -> FetchResult | None:
        """Go to the following page, or return None on the last one."""
        pagination = self.state.pagination
        if pagination is None or not pagination.has_next:
            return None
        return await self.filters.set_page(pagination.current_page + 1)

    async def previous_page(self) -> FetchResult | None:
        """Go to the preceding page, or return None on the first one."""
        pagination = self.state.pagination
        if pagination is None or not pagination.has_previous:
            return None
        return await self.filters.set_page(pagination.current_page - 1)

    # =========================================================================
    # Selection
    # =========================================================================

    def toggle_selected(self, product_id: ProductId) -> bool:
        return self.state.toggle_selected(product_id)

    def toggle_select_all(self) -> None:
        self.state.toggle_select_all()

    def clear_selection(self) -> None:
        self.state.clear_selection()

    # =========================================================================
    # Editing
    # =========================================================================

    def open_new_product(self) -> EditSession:
        return self._open_session(None)

    async def open_product(self, product_id: ProductId) -> EditSession:
        """Open an edit session for a product, loading it if not on the page.

        Raises:
            NetworkError: If the product has to be fetched and the request fails.
        """
        product = self.state.get(product_id)
        if product is None:
            response = await self.client.get_product(product_id)
            if not response.success:
                raise NetworkError(
                    operation="get",
                    message=response.error.message,
                    status_code=response.error.status_code,
                    error_code=response.error.error_code,
                )
            product = ProductResponse.model_validate(response.data).product.to_domain()
        return self._open_session(product)

    def _open_session(self, product: Product | None) -> EditSession:
        session = EditSession(
            drafts=self.drafts,
            coordinator=self.mutations,
            notifier=self.notifications,
            product=product,
            autosave_delay=self.settings.autosave_delay_seconds,
            status_decay=self.settings.draft_status_decay_seconds,
        )
        self._sessions = [s for s in self._sessions if s.is_open]
        self._sessions.append(session)
        return session.start()

    # =========================================================================
    # Mutations
    # =========================================================================

    async def delete_product(self, product_id: ProductId) -> MutationRecord:
        return await self.mutations.delete(product_id)

    async def toggle_status(self, product_id: ProductId) -> MutationRecord:
        return await self.mutations.toggle_status(product_id)

    async def bulk_action(self, action: BulkActionType | str) -> MutationRecord | None:
        """Apply a bulk action to the current selection.

        Returns:
            The settled MutationRecord, or None when nothing is selected.
        """
        selected = [pid for pid in self.state.ids() if pid in self.state.selection]
        if not selected:
            self.notifications.notify(events.warning("Please select at least one product"))
            return None
        return await self.mutations.bulk(action, selected)

    # =========================================================================
    # Teardown
    # =========================================================================

    async def aclose(self) -> None:
        """Cancel pending timers and close the HTTP client.

        In-flight requests and draft writes are not aborted.
        """
        if self._closed:
            return
        self._closed = True
        self.filters.close()
        await self.filters.drain()
        for session in self._sessions:
            session.close()
        self._sessions.clear()
        await self.client.close()
        logger.info("Catalog manager closed")
