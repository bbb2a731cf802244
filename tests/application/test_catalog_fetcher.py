"""Tests for the catalog fetcher."""

import asyncio
from unittest.mock import MagicMock

import pytest

from vendorcatalog.application.catalog_fetcher import CatalogFetcher, FetchOutcome
from vendorcatalog.application.catalog_state import CatalogState
from vendorcatalog.domain.events import NotificationLevel
from vendorcatalog.domain.models import FilterState
from vendorcatalog.infrastructure.notifications import NotificationBus
from tests.conftest import (
    listing_body,
    load_products,
    make_error_response,
    make_product,
    make_success_response,
    product_body,
)


@pytest.fixture
def fetcher(
    mock_api_client: MagicMock, state: CatalogState, notifier: NotificationBus
) -> CatalogFetcher:
    return CatalogFetcher(mock_api_client, state, notifier)


class TestFetch:
    """Tests for CatalogFetcher.fetch."""

    @pytest.mark.asyncio
    async def test_installs_page(
        self, fetcher: CatalogFetcher, mock_api_client: MagicMock, state: CatalogState
    ) -> None:
        mock_api_client.list_products.return_value = make_success_response(
            listing_body([product_body(1), product_body(2)], total_items=45)
        )

        result = await fetcher.fetch(FilterState(search="lamp", seq=1))

        assert result.outcome == FetchOutcome.ACCEPTED
        assert state.ids() == [1, 2]
        assert state.pagination.total_items == 45
        assert state.accepted_seq == 1
        mock_api_client.list_products.assert_awaited_once()
        params = mock_api_client.list_products.await_args.args[0]
        assert params["search"] == "lamp"

    @pytest.mark.asyncio
    async def test_out_of_order_response_is_discarded(
        self, fetcher: CatalogFetcher, mock_api_client: MagicMock, state: CatalogState
    ) -> None:
        """A slow earlier response never overwrites a later one."""
        slow: asyncio.Future = asyncio.get_running_loop().create_future()
        fast = make_success_response(listing_body([product_body(2, name="Lamp")]))

        async def list_products(params: dict) -> object:
            if params.get("search") == "l":
                return await slow
            return fast

        mock_api_client.list_products.side_effect = list_products

        first = asyncio.create_task(fetcher.fetch(FilterState(search="l", seq=1)))
        await asyncio.sleep(0)
        second = await fetcher.fetch(FilterState(search="lamp", seq=2))
        slow.set_result(make_success_response(listing_body([product_body(1, name="Lid")])))
        first_result = await first

        assert second.outcome == FetchOutcome.ACCEPTED
        assert first_result.outcome == FetchOutcome.DISCARDED
        assert state.ids() == [2]
        assert state.accepted_seq == 2

    @pytest.mark.asyncio
    async def test_superseded_query_is_not_sent(
        self, fetcher: CatalogFetcher, mock_api_client: MagicMock
    ) -> None:
        await fetcher.fetch(FilterState(seq=5))

        result = await fetcher.fetch(FilterState(seq=3))

        assert result.outcome == FetchOutcome.DISCARDED
        assert mock_api_client.list_products.await_count == 1

    @pytest.mark.asyncio
    async def test_stale_failure_is_silent(
        self,
        fetcher: CatalogFetcher,
        mock_api_client: MagicMock,
        notifier: NotificationBus,
    ) -> None:
        slow: asyncio.Future = asyncio.get_running_loop().create_future()

        async def list_products(params: dict) -> object:
            if params.get("search") == "old":
                return await slow
            return make_success_response(listing_body([]))

        mock_api_client.list_products.side_effect = list_products

        first = asyncio.create_task(fetcher.fetch(FilterState(search="old", seq=1)))
        await asyncio.sleep(0)
        await fetcher.fetch(FilterState(seq=2))
        slow.set_result(make_error_response())
        result = await first

        assert result.outcome == FetchOutcome.DISCARDED
        assert notifier.last(NotificationLevel.ERROR) is None

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_page(
        self,
        fetcher: CatalogFetcher,
        mock_api_client: MagicMock,
        state: CatalogState,
        notifier: NotificationBus,
    ) -> None:
        load_products(state, [make_product(1)])
        mock_api_client.list_products.return_value = make_error_response(
            "REQUEST_ERROR", "Connection refused", 503
        )

        result = await fetcher.fetch(FilterState(seq=1))

        assert result.outcome == FetchOutcome.FAILED
        assert result.error.status_code == 503
        assert state.ids() == [1]
        notification = notifier.last(NotificationLevel.ERROR)
        assert notification.message == (
            "Failed to load products. Please check your connection and try again."
        )
        assert notification.action.label == "Retry"

    @pytest.mark.asyncio
    async def test_retry_action_refetches(
        self,
        fetcher: CatalogFetcher,
        mock_api_client: MagicMock,
        state: CatalogState,
        notifier: NotificationBus,
    ) -> None:
        mock_api_client.list_products.return_value = make_error_response()
        await fetcher.fetch(FilterState(seq=1))
        mock_api_client.list_products.return_value = make_success_response(
            listing_body([product_body(4)])
        )

        result = await notifier.last(NotificationLevel.ERROR).action.invoke()

        assert result.accepted
        assert state.ids() == [4]

    @pytest.mark.asyncio
    async def test_invalid_body_is_a_failure(
        self, fetcher: CatalogFetcher, mock_api_client: MagicMock
    ) -> None:
        mock_api_client.list_products.return_value = make_success_response(
            {"products": [{"name": "no id"}]}
        )

        result = await fetcher.fetch(FilterState(seq=1))

        assert result.outcome == FetchOutcome.FAILED
        assert result.error.error_code == "INVALID_RESPONSE"

    @pytest.mark.asyncio
    async def test_bare_list_body(
        self, fetcher: CatalogFetcher, mock_api_client: MagicMock, state: CatalogState
    ) -> None:
        mock_api_client.list_products.return_value = make_success_response(
            [product_body(1), product_body(2)]
        )

        result = await fetcher.fetch(FilterState(seq=1))

        assert result.accepted
        assert state.ids() == [1, 2]

    @pytest.mark.asyncio
    async def test_announce(
        self, fetcher: CatalogFetcher, notifier: NotificationBus
    ) -> None:
        await fetcher.fetch(FilterState(seq=1), announce=True)

        notification = notifier.last()
        assert notification.level == NotificationLevel.SUCCESS
        assert notification.message == "Products loaded successfully!"
        assert notification.duration_ms == 2000

    @pytest.mark.asyncio
    async def test_reconcile_hook_applied(
        self, fetcher: CatalogFetcher, mock_api_client: MagicMock, state: CatalogState
    ) -> None:
        mock_api_client.list_products.return_value = make_success_response(
            listing_body([product_body(1)])
        )
        fetcher.reconcile = lambda products, seq: [make_product("tmp-x")] + products

        await fetcher.fetch(FilterState(seq=1))

        assert state.ids() == ["tmp-x", 1]
