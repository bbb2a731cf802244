"""Pytest configuration and shared fixtures for catalog tests."""

import asyncio
from decimal import Decimal
from typing import Any, Awaitable, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from vendorcatalog.application.catalog_state import CatalogState
from vendorcatalog.application.draft_store import DraftStore
from vendorcatalog.application.mutation_coordinator import MutationCoordinator
from vendorcatalog.domain.forms import ProductForm
from vendorcatalog.domain.models import PaginationMeta, Product, ProductPage, ProductStatus
from vendorcatalog.infrastructure.catalog_client import APIError, APIResponse, CatalogAPIClient
from vendorcatalog.infrastructure.config import Settings
from vendorcatalog.infrastructure.notifications import NotificationBus
from vendorcatalog.infrastructure.storage import InMemoryStorage


# ============================================================================
# Factories
# ============================================================================


def make_product(
    product_id: int | str = 1,
    name: str = "Desk Lamp",
    status: ProductStatus = ProductStatus.ACTIVE,
    price: str = "19.99",
    stock: int = 5,
) -> Product:
    """Create a test product."""
    return Product(
        id=product_id,
        name=name,
        description="A sturdy adjustable lamp",
        price=Decimal(price),
        category="Home & Garden",
        stock=stock,
        sku=f"SKU-{product_id}",
        status=status,
    )


def product_body(
    product_id: int = 1,
    name: str = "Desk Lamp",
    status: str = "active",
    price: str = "19.99",
) -> dict[str, Any]:
    """Create a product as the service returns it."""
    return {
        "id": product_id,
        "name": name,
        "description": "A sturdy adjustable lamp",
        "price": price,
        "category": "Home & Garden",
        "stock": 5,
        "sku": f"SKU-{product_id}",
        "status": status,
        "images": None,
        "views": 3,
        "inquiries": 0,
    }


def listing_body(
    products: list[dict[str, Any]],
    page: int = 1,
    total_items: int | None = None,
    limit: int = 20,
) -> dict[str, Any]:
    """Create a listing response body."""
    total = len(products) if total_items is None else total_items
    return {
        "products": products,
        "pagination": {
            "currentPage": page,
            "totalPages": (total + limit - 1) // limit,
            "totalItems": total,
            "itemsPerPage": limit,
        },
    }


def make_form(**overrides: Any) -> ProductForm:
    """Create a valid product form."""
    values = {
        "name": "Desk Lamp",
        "description": "A sturdy adjustable lamp",
        "price": "19.99",
        "category": "Home & Garden",
        "stock": "5",
        "sku": "DL-1",
    }
    values.update(overrides)
    return ProductForm(**values)


def load_products(state: CatalogState, products: list[Product], seq: int = 0) -> None:
    """Install products into a catalog state as a fetched page."""
    state.replace_page(
        ProductPage(
            products=tuple(products),
            pagination=PaginationMeta(
                current_page=1,
                total_pages=1,
                total_items=len(products),
                items_per_page=20,
            ),
        ),
        seq=seq,
    )


def wait_for(future: "asyncio.Future[APIResponse]") -> Callable[..., Awaitable[APIResponse]]:
    """Side effect that holds a mocked request open until ``future`` resolves."""

    async def call(*args: Any, **kwargs: Any) -> APIResponse:
        return await future

    return call


def make_success_response(data: Any = None) -> APIResponse:
    """Create a successful API response."""
    return APIResponse(success=True, data=data)


def make_error_response(
    error_code: str = "SERVER_ERROR",
    message: str = "Internal error",
    status_code: int = 500,
) -> APIResponse:
    """Create an error API response."""
    return APIResponse(
        success=False,
        error=APIError(
            error_code=error_code,
            message=message,
            status_code=status_code,
        ),
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def mock_api_client() -> MagicMock:
    """Create a mock catalog API client."""
    client = MagicMock(spec=CatalogAPIClient)

    # Make all methods async
    client.list_products = AsyncMock(return_value=make_success_response(listing_body([])))
    client.get_product = AsyncMock()
    client.create_product = AsyncMock()
    client.update_product = AsyncMock()
    client.delete_product = AsyncMock(return_value=make_success_response(None))
    client.set_product_status = AsyncMock(return_value=make_success_response(None))
    client.bulk_action = AsyncMock(return_value=make_success_response({"message": "ok"}))
    client.close = AsyncMock()

    return client


@pytest.fixture
def settings() -> Settings:
    """Settings with short timers for fast tests."""
    return Settings(
        api_base_url="http://catalog.test/api",
        api_token="test-token",
        search_debounce_seconds=0.02,
        autosave_delay_seconds=0.02,
        draft_status_decay_seconds=0.02,
        draft_storage_path=None,
    )


@pytest.fixture
def notifier() -> NotificationBus:
    return NotificationBus()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def drafts(storage: InMemoryStorage) -> DraftStore:
    return DraftStore(storage)


@pytest.fixture
def state() -> CatalogState:
    return CatalogState()


@pytest.fixture
def coordinator(
    mock_api_client: MagicMock,
    state: CatalogState,
    drafts: DraftStore,
    notifier: NotificationBus,
) -> MutationCoordinator:
    """Create a MutationCoordinator over mocked collaborators."""
    return MutationCoordinator(
        client=mock_api_client,
        state=state,
        drafts=drafts,
        notifier=notifier,
    )
