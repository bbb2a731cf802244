"""Catalog domain models.

Products are owned by the remote catalog service; the client holds a
cached, possibly stale copy. FilterState and PaginationMeta are
immutable snapshots that are replaced, never edited in place.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Self
from uuid import uuid4

# Server identifiers are integers; optimistic placeholders use "tmp-" strings.
ProductId = int | str

PLACEHOLDER_PREFIX = "tmp-"


class Category(str, Enum):
    """Fixed catalog category list."""

    ELECTRONICS = "Electronics"
    FASHION = "Fashion"
    HOME_GARDEN = "Home & Garden"
    SPORTS = "Sports"
    BOOKS = "Books"
    BEAUTY = "Beauty & Personal Care"
    AUTOMOTIVE = "Automotive"
    HEALTH = "Health & Wellness"
    BABY_KIDS = "Baby & Kids"
    PET_SUPPLIES = "Pet Supplies"
    OFFICE_SUPPLIES = "Office Supplies"
    GROCERY = "Grocery"
    INDUSTRIAL = "Industrial & Scientific"
    JEWELRY = "Jewelry"
    MUSICAL_INSTRUMENTS = "Musical Instruments"
    TOYS_GAMES = "Toys & Games"
    ARTS_CRAFTS = "Arts & Crafts"
    OUTDOOR = "Outdoor & Recreation"
    TOOLS_HARDWARE = "Tools & Hardware"

    @classmethod
    def values(cls) -> set[str]:
        """Get the set of valid category names."""
        return {c.value for c in cls}


class ProductStatus(str, Enum):
    """Listing visibility of a product."""

    ACTIVE = "active"
    INACTIVE = "inactive"

    def toggled(self) -> "ProductStatus":
        """Return the opposite status."""
        if self == ProductStatus.ACTIVE:
            return ProductStatus.INACTIVE
        return ProductStatus.ACTIVE

    @property
    def verb(self) -> str:
        """Verb used when moving a product into this status."""
        return "activate" if self == ProductStatus.ACTIVE else "deactivate"


class SortField(str, Enum):
    """Fields the listing endpoint can sort by."""

    CREATED_AT = "created_at"
    NAME = "name"
    PRICE = "price"
    STOCK = "stock"


class SortOrder(str, Enum):
    """Listing sort direction."""

    ASC = "asc"
    DESC = "desc"


# ============================================================================
# Product
# ============================================================================


@dataclass(frozen=True)
class ProductImage:
    """Reference to an image attached to a product."""

    image_url: str
    id: int | None = None
    thumbnail_url: str | None = None
    is_primary: bool = False
    sort_order: int = 0
    alt_text: str | None = None


@dataclass(frozen=True)
class Product:
    """Cached copy of a catalog product.

    Attributes:
        id: Server identifier, or a "tmp-" string for an unconfirmed create.
        name: Display name.
        description: Long description.
        price: Non-negative price.
        category: Category name from the fixed list.
        stock: Units in stock.
        sku: Optional stock keeping unit.
        status: Active or inactive.
        images: Ordered image references.
        views: Server-owned view counter.
        inquiries: Server-owned inquiry counter.
    """

    id: ProductId
    name: str
    description: str = ""
    price: Decimal = Decimal("0")
    category: str = ""
    stock: int = 0
    sku: str | None = None
    status: ProductStatus = ProductStatus.ACTIVE
    images: tuple[ProductImage, ...] = ()
    views: int = 0
    inquiries: int = 0

    @property
    def is_placeholder(self) -> bool:
        """Whether this entry is an optimistic create not yet confirmed."""
        return is_placeholder_id(self.id)

    def with_status(self, status: ProductStatus) -> Self:
        """Return a copy with a different status."""
        return replace(self, status=status)

    def with_changes(self, **changes: Any) -> Self:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


def new_placeholder_id() -> str:
    """Generate a temporary identifier for an optimistic create."""
    return f"{PLACEHOLDER_PREFIX}{uuid4().hex}"


def is_placeholder_id(product_id: ProductId) -> bool:
    """Check whether an identifier belongs to an unconfirmed placeholder."""
    return isinstance(product_id, str) and product_id.startswith(PLACEHOLDER_PREFIX)


# ============================================================================
# Query State
# ============================================================================


@dataclass(frozen=True)
class FilterState:
    """Immutable listing query snapshot.

    A new snapshot is produced on every change and tagged with a
    monotonically increasing sequence number used for staleness checks.
    """

    search: str = ""
    category: str = ""
    status: str = ""
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    page_size: int = 20
    seq: int = 0

    def to_query_params(self) -> dict[str, Any]:
        """Build listing query parameters, omitting empty values."""
        params: dict[str, Any] = {
            "search": self.search,
            "category": self.category,
            "status": self.status,
            "sort_by": self.sort_by.value,
            "sort_order": self.sort_order.value,
            "page": self.page,
            "limit": self.page_size,
        }
        return {k: v for k, v in params.items() if v not in ("", None)}


@dataclass(frozen=True)
class PaginationMeta:
    """Pagination metadata, always taken from the latest accepted response."""

    current_page: int = 1
    total_pages: int = 0
    total_items: int = 0
    items_per_page: int = 20

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1


@dataclass(frozen=True)
class ProductPage:
    """A listing response: products together with the pagination describing them."""

    products: tuple[Product, ...] = ()
    pagination: PaginationMeta | None = field(default=None)
