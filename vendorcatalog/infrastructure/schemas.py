"""Wire schemas for the remote catalog service.

Pydantic models for the JSON bodies exchanged with ``/vendor/products``.
Each schema converts into the corresponding immutable domain model.
"""

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from vendorcatalog.domain.models import (
    PaginationMeta,
    Product,
    ProductImage,
    ProductPage,
    ProductStatus,
)


class ImageSchema(BaseModel):
    """Image reference as returned by the service."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    image_url: str = ""
    thumbnail_url: str | None = None
    is_primary: bool = False
    sort_order: int = 0
    alt_text: str | None = None

    def to_domain(self) -> ProductImage:
        return ProductImage(
            id=self.id,
            image_url=self.image_url,
            thumbnail_url=self.thumbnail_url,
            is_primary=self.is_primary,
            sort_order=self.sort_order,
            alt_text=self.alt_text,
        )


class ProductSchema(BaseModel):
    """Product as returned by the service."""

    model_config = ConfigDict(extra="ignore")

    id: int | str
    name: str
    description: str | None = None
    price: Decimal = Decimal("0")
    category: str | None = None
    stock: int = 0
    sku: str | None = None
    status: ProductStatus = ProductStatus.ACTIVE
    images: list[ImageSchema] | None = None
    views: int = 0
    inquiries: int = 0

    @field_validator("stock", "views", "inquiries", mode="before")
    @classmethod
    def _none_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        return ProductStatus.ACTIVE if value in (None, "") else value

    def to_domain(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            description=self.description or "",
            price=self.price,
            category=self.category or "",
            stock=self.stock,
            sku=self.sku or None,
            status=self.status,
            images=tuple(image.to_domain() for image in self.images or []),
            views=self.views,
            inquiries=self.inquiries,
        )


class PaginationSchema(BaseModel):
    """Pagination block of a listing response."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    total_items: int = Field(alias="totalItems")
    items_per_page: int = Field(alias="itemsPerPage")

    def to_domain(self) -> PaginationMeta:
        return PaginationMeta(
            current_page=self.current_page,
            total_pages=self.total_pages,
            total_items=self.total_items,
            items_per_page=self.items_per_page,
        )


class ProductListResponse(BaseModel):
    """Body of ``GET /vendor/products``."""

    model_config = ConfigDict(extra="ignore")

    products: list[ProductSchema]
    pagination: PaginationSchema | None = None

    def to_domain(self) -> ProductPage:
        return ProductPage(
            products=tuple(p.to_domain() for p in self.products),
            pagination=self.pagination.to_domain() if self.pagination else None,
        )


class ProductResponse(BaseModel):
    """Body of single-product endpoints: ``{product}``."""

    model_config = ConfigDict(extra="ignore")

    product: ProductSchema


class BulkActionResponse(BaseModel):
    """Body of ``POST /vendor/products/bulk``.

    The service normally answers with a bare success message; a list of
    failed identifiers, when present, marks a partial failure.
    """

    model_config = ConfigDict(extra="ignore")

    failed_ids: list[int | str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("failed_ids", "failedIds", "failed"),
    )

    @field_validator("failed_ids", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value
