"""Catalog fetcher.

Issues listing requests and installs the responses into CatalogState.
Every request carries the sequence number of the FilterState that
triggered it; a response whose number is not the highest issued so far
is discarded, so a slow old response can never overwrite a newer one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

import structlog
from pydantic import ValidationError

from vendorcatalog.application.catalog_state import CatalogState
from vendorcatalog.domain import events
from vendorcatalog.domain.events import NotificationAction
from vendorcatalog.domain.exceptions import NetworkError
from vendorcatalog.domain.models import FilterState, Product, ProductPage
from vendorcatalog.infrastructure.catalog_client import CatalogAPIClient
from vendorcatalog.infrastructure.notifications import NotificationBus
from vendorcatalog.infrastructure.schemas import ProductListResponse, ProductSchema

logger = structlog.get_logger()

# Merges a fetched page with optimistic entries still applying.
Reconciler = Callable[[list[Product], int], list[Product]]


class FetchOutcome(str, Enum):
    """What happened to a fetch."""

    ACCEPTED = "accepted"
    DISCARDED = "discarded"
    FAILED = "failed"


@dataclass
class FetchResult:
    """Result of one fetch.

    Attributes:
        outcome: Accepted, discarded as stale, or failed.
        query: The FilterState the fetch was issued for.
        page: The installed page (accepted only).
        error: The failure (failed only).
    """

    outcome: FetchOutcome
    query: FilterState
    page: ProductPage | None = None
    error: NetworkError | None = None

    @property
    def accepted(self) -> bool:
        return self.outcome == FetchOutcome.ACCEPTED


def parse_listing(data: object) -> ProductPage:
    """Parse a listing body (``{products, pagination}`` or a bare list)."""
    if isinstance(data, list):
        return ProductPage(products=tuple(ProductSchema.model_validate(p).to_domain() for p in data))
    return ProductListResponse.model_validate(data).to_domain()


class CatalogFetcher:
    """Fetches listing pages and discards superseded responses."""

    def __init__(
        self,
        client: CatalogAPIClient,
        state: CatalogState,
        notifier: NotificationBus,
        reconcile: Reconciler | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            client: Catalog API client.
            state: Catalog state the fetcher installs pages into.
            notifier: Notification bus for load success/failure.
            reconcile: Optional hook merging optimistic entries into a page.
        """
        self.client = client
        self.state = state
        self.notifier = notifier
        self.reconcile = reconcile
        self._latest_seq = 0
        self._in_flight = 0

    @property
    def latest_seq(self) -> int:
        """Highest sequence number issued so far."""
        return self._latest_seq

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    def is_current(self, seq: int) -> bool:
        return seq == self._latest_seq

    async def fetch(self, query: FilterState, announce: bool = False) -> FetchResult:
        """Fetch the page described by ``query``.

        Args:
            query: FilterState to fetch.
            announce: Emit a success notification when the page is installed.

        Returns:
            FetchResult describing what happened.
        """
        if query.seq < self._latest_seq:
            logger.debug("Skipping superseded query", seq=query.seq, latest_seq=self._latest_seq)
            return FetchResult(outcome=FetchOutcome.DISCARDED, query=query)
        self._latest_seq = query.seq

        self._in_flight += 1
        try:
            response = await self.client.list_products(query.to_query_params())
        finally:
            self._in_flight -= 1

        if not self.is_current(query.seq):
            logger.debug(
                "Discarding stale listing response",
                seq=query.seq,
                latest_seq=self._latest_seq,
                success=response.success,
            )
            return FetchResult(outcome=FetchOutcome.DISCARDED, query=query)

        if not response.success:
            error = NetworkError(
                operation="fetch",
                message=response.error.message,
                status_code=response.error.status_code,
                error_code=response.error.error_code,
            )
            return self._fail(query, error, announce)

        try:
            page = parse_listing(response.data)
        except ValidationError as e:
            logger.error("Listing response did not match schema", seq=query.seq, error=str(e))
            error = NetworkError(
                operation="fetch",
                message="Unexpected listing response",
                error_code="INVALID_RESPONSE",
            )
            return self._fail(query, error, announce)

        products = list(page.products)
        if self.reconcile is not None:
            products = self.reconcile(products, query.seq)
        page = ProductPage(products=tuple(products), pagination=page.pagination)

        self.state.replace_page(page, seq=query.seq)
        logger.info(
            "Catalog page loaded",
            seq=query.seq,
            product_count=len(page.products),
            total_items=page.pagination.total_items if page.pagination else None,
        )
        if announce:
            self.notifier.notify(
                events.success("Products loaded successfully!", duration_ms=2000)
            )
        return FetchResult(outcome=FetchOutcome.ACCEPTED, query=query, page=page)

    def _fail(self, query: FilterState, error: NetworkError, announce: bool) -> FetchResult:
        """Report a failed fetch; the loaded page is left untouched."""
        logger.warning(
            "Catalog fetch failed",
            seq=query.seq,
            status_code=error.status_code,
            error_code=error.error_code,
        )
        self.notifier.notify(
            events.error(
                "Failed to load products. Please check your connection and try again.",
                action=NotificationAction(
                    label="Retry",
                    callback=lambda: self.fetch(query, announce=announce),
                ),
                context={"seq": query.seq},
            )
        )
        return FetchResult(outcome=FetchOutcome.FAILED, query=query, error=error)
