"""End-to-end tests for the catalog manager over a mocked client."""

import asyncio
from unittest.mock import MagicMock

import pytest

from vendorcatalog.application.catalog_manager import VendorCatalogManager
from vendorcatalog.domain.events import NotificationLevel
from vendorcatalog.domain.exceptions import NetworkError
from vendorcatalog.domain.models import ProductStatus
from vendorcatalog.infrastructure.config import Settings
from vendorcatalog.infrastructure.storage import InMemoryStorage
from tests.conftest import (
    listing_body,
    make_error_response,
    make_success_response,
    product_body,
    wait_for,
)


@pytest.fixture
def manager(mock_api_client: MagicMock, settings: Settings) -> VendorCatalogManager:
    return VendorCatalogManager(mock_api_client, settings=settings, storage=InMemoryStorage())


def respond_with(mock_api_client: MagicMock, *bodies: dict) -> None:
    mock_api_client.list_products.side_effect = [make_success_response(b) for b in bodies]


class TestListing:
    """Tests for loading and filtering the catalog."""

    @pytest.mark.asyncio
    async def test_load_announces_success(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        respond_with(mock_api_client, listing_body([product_body(1), product_body(2)]))

        result = await manager.load()

        assert result.accepted
        assert manager.state.ids() == [1, 2]
        assert manager.notifications.last().message == "Products loaded successfully!"

    @pytest.mark.asyncio
    async def test_typing_fetches_once(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        respond_with(mock_api_client, listing_body([product_body(3, name="Lamp")]))

        for text in ["l", "la", "lamp"]:
            manager.search(text)
        await asyncio.sleep(manager.settings.search_debounce_seconds * 4)
        await manager.filters.drain()

        mock_api_client.list_products.assert_awaited_once()
        assert mock_api_client.list_products.await_args.args[0]["search"] == "lamp"
        assert manager.state.ids() == [3]

    @pytest.mark.asyncio
    async def test_filter_change_clears_selection(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        respond_with(
            mock_api_client,
            listing_body([product_body(1), product_body(2)]),
            listing_body([product_body(2)]),
        )
        await manager.load()
        manager.toggle_select_all()

        await manager.set_category("Books")

        assert len(manager.state.selection) == 0
        assert manager.query.category == "Books"
        assert manager.query.page == 1

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_page(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        mock_api_client.list_products.side_effect = [
            make_success_response(listing_body([product_body(1)])),
            make_error_response(),
        ]
        await manager.load()

        result = await manager.refresh()

        assert not result.accepted
        assert manager.state.ids() == [1]

    @pytest.mark.asyncio
    async def test_next_page_fetches_following_page(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        respond_with(
            mock_api_client,
            listing_body([product_body(1)], page=1, total_items=40),
            listing_body([product_body(21)], page=2, total_items=40),
        )
        await manager.load()

        result = await manager.next_page()

        assert result.accepted
        assert mock_api_client.list_products.await_args.args[0]["page"] == 2
        assert manager.state.pagination.current_page == 2
        assert await manager.next_page() is None
        assert mock_api_client.list_products.await_count == 2

    @pytest.mark.asyncio
    async def test_previous_page_on_first_page(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        respond_with(mock_api_client, listing_body([product_body(1)], total_items=40))
        await manager.load()

        assert await manager.previous_page() is None
        mock_api_client.list_products.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_is_loading_while_listing_in_flight(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        response: asyncio.Future = asyncio.get_running_loop().create_future()
        mock_api_client.list_products.side_effect = wait_for(response)

        task = asyncio.create_task(manager.load())
        await asyncio.sleep(0)

        assert manager.is_loading
        response.set_result(make_success_response(listing_body([product_body(1)])))
        await task
        assert not manager.is_loading


class TestMutations:
    """Tests for mutations through the manager."""

    @pytest.mark.asyncio
    async def test_bulk_with_empty_selection_warns(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        result = await manager.bulk_action("delete")

        assert result is None
        mock_api_client.bulk_action.assert_not_awaited()
        warning = manager.notifications.last(NotificationLevel.WARNING)
        assert warning.message == "Please select at least one product"

    @pytest.mark.asyncio
    async def test_bulk_deactivate_selection(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        respond_with(
            mock_api_client, listing_body([product_body(7), product_body(8), product_body(9)])
        )
        await manager.load()
        manager.toggle_selected(7)
        manager.toggle_selected(9)

        record = await manager.bulk_action("deactivate")

        assert record.committed
        mock_api_client.bulk_action.assert_awaited_once_with("deactivate", [7, 9])
        assert manager.state.get(8).status == ProductStatus.ACTIVE
        assert manager.state.get(9).status == ProductStatus.INACTIVE
        assert len(manager.state.selection) == 0

    @pytest.mark.asyncio
    async def test_partial_bulk_reload_action(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        respond_with(
            mock_api_client,
            listing_body([product_body(7), product_body(9)]),
            listing_body([product_body(7, status="inactive"), product_body(9)]),
        )
        mock_api_client.bulk_action.return_value = make_success_response({"failed_ids": [9]})
        await manager.load()
        manager.toggle_select_all()

        record = await manager.bulk_action("deactivate")
        await manager.notifications.last(NotificationLevel.ERROR).action.invoke()

        assert record.rolled_back
        assert manager.state.get(7).status == ProductStatus.INACTIVE
        assert manager.state.get(9).status == ProductStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_delete_then_stale_refresh(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        """A listing issued before a delete settles cannot resurrect the product."""
        respond_with(mock_api_client, listing_body([product_body(1), product_body(2)]))
        await manager.load()
        delete_response: asyncio.Future = asyncio.get_running_loop().create_future()

        async def delete_product(product_id: int) -> object:
            return await delete_response

        mock_api_client.delete_product.side_effect = delete_product
        mock_api_client.list_products.side_effect = None
        mock_api_client.list_products.return_value = make_success_response(
            listing_body([product_body(1), product_body(2)])
        )

        delete_task = asyncio.create_task(manager.delete_product(2))
        await asyncio.sleep(0)
        await manager.fetcher.fetch(manager.query)

        assert manager.state.ids() == [1]
        delete_response.set_result(make_success_response(None))
        await delete_task
        assert manager.state.ids() == [1]

    @pytest.mark.asyncio
    async def test_delete_survives_listing_issued_before_it(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        """A refresh sent before a delete commits cannot bring the product back."""
        respond_with(mock_api_client, listing_body([product_body(1), product_body(2)]))
        await manager.load()
        listing: asyncio.Future = asyncio.get_running_loop().create_future()
        mock_api_client.list_products.side_effect = wait_for(listing)

        refresh_task = asyncio.create_task(manager.refresh())
        await asyncio.sleep(0)
        record = await manager.delete_product(2)

        assert record.committed
        assert manager.state.ids() == [1]

        listing.set_result(make_success_response(listing_body([product_body(1), product_body(2)])))
        result = await refresh_task

        assert result.accepted
        assert manager.state.ids() == [1]

        respond_with(mock_api_client, listing_body([product_body(1), product_body(3)]))
        await manager.refresh()

        assert manager.state.ids() == [1, 3]


class TestEditing:
    """Tests for edit sessions opened through the manager."""

    @pytest.mark.asyncio
    async def test_open_unloaded_product_fetches_it(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        mock_api_client.get_product.return_value = make_success_response(
            {"product": product_body(44, name="Shelf")}
        )

        session = await manager.open_product(44)

        assert session.form.name == "Shelf"
        mock_api_client.get_product.assert_awaited_once_with(44)

    @pytest.mark.asyncio
    async def test_open_missing_product(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        mock_api_client.get_product.return_value = make_error_response("NOT_FOUND", "Gone", 404)

        with pytest.raises(NetworkError) as exc_info:
            await manager.open_product(44)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_draft_survives_reopen(self, manager: VendorCatalogManager) -> None:
        session = manager.open_new_product()
        session.update(name="Half typed")
        await asyncio.sleep(manager.settings.autosave_delay_seconds * 4)
        session.cancel()

        reopened = manager.open_new_product()

        assert reopened.form.name == "Half typed"
        assert manager.notifications.last(NotificationLevel.INFO).message == "Loaded saved draft"


class TestTeardown:
    """Tests for closing the manager."""

    @pytest.mark.asyncio
    async def test_close_cancels_search_and_client(
        self, mock_api_client: MagicMock, settings: Settings
    ) -> None:
        async with VendorCatalogManager(mock_api_client, settings=settings) as manager:
            manager.search("lamp")

        await asyncio.sleep(settings.search_debounce_seconds * 4)

        mock_api_client.list_products.assert_not_awaited()
        mock_api_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(
        self, manager: VendorCatalogManager, mock_api_client: MagicMock
    ) -> None:
        await manager.aclose()
        await manager.aclose()

        mock_api_client.close.assert_awaited_once()
