"""Product form and draft models.

Form values are kept as the raw strings the vendor typed so that a
half-finished edit (e.g. a price of "1.") survives a draft round-trip.
Parsing into typed Product fields happens only when a mutation is built.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field

from vendorcatalog.domain.models import Product, ProductId, ProductImage, ProductStatus


class FormImage(BaseModel):
    """An image attached to the form.

    Either an existing server image (``id``/``image_url``) or a local
    file that will be uploaded with the next create/update.
    """

    id: int | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    is_primary: bool = False
    sort_order: int = 0
    file_path: str | None = None

    @property
    def is_upload(self) -> bool:
        return self.file_path is not None

    @classmethod
    def from_image(cls, image: ProductImage) -> "FormImage":
        return cls(
            id=image.id,
            image_url=image.image_url,
            thumbnail_url=image.thumbnail_url,
            is_primary=image.is_primary,
            sort_order=image.sort_order,
        )

    def to_image(self) -> ProductImage:
        """Build the image reference shown while a mutation is applying."""
        return ProductImage(
            id=self.id,
            image_url=self.image_url or self.file_path or "",
            thumbnail_url=self.thumbnail_url,
            is_primary=self.is_primary,
            sort_order=self.sort_order,
        )


class ProductForm(BaseModel):
    """In-progress product form state."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str = ""
    description: str = ""
    price: str = ""
    category: str = ""
    stock: str = ""
    sku: str = ""
    status: ProductStatus = ProductStatus.ACTIVE

    @classmethod
    def from_product(cls, product: Product) -> "ProductForm":
        """Populate the form from the server's copy of a product."""
        return cls(
            name=product.name,
            description=product.description,
            price=str(product.price),
            category=product.category,
            stock=str(product.stock),
            sku=product.sku or "",
            status=product.status,
        )

    def parsed_price(self) -> Decimal:
        try:
            return Decimal(self.price.strip())
        except (InvalidOperation, ValueError):
            return Decimal("0")

    def parsed_stock(self) -> int:
        try:
            return int(self.stock.strip())
        except ValueError:
            return 0

    def to_fields(self) -> dict[str, str]:
        """Build the multipart text fields sent to the catalog service."""
        return {
            "name": self.name.strip(),
            "description": self.description.strip(),
            "price": str(self.parsed_price()),
            "category": self.category,
            "stock": str(self.parsed_stock()),
            "sku": self.sku.strip(),
            "status": self.status.value,
        }

    def apply_to(self, product: Product, images: list[FormImage]) -> Product:
        """Return the optimistic version of ``product`` with this form applied."""
        return product.with_changes(
            name=self.name.strip(),
            description=self.description.strip(),
            price=self.parsed_price(),
            category=self.category,
            stock=self.parsed_stock(),
            sku=self.sku.strip() or None,
            status=self.status,
            images=tuple(image.to_image() for image in images),
        )

    def to_product(self, product_id: ProductId, images: list[FormImage]) -> Product:
        """Build a new product (used for optimistic placeholders)."""
        return self.apply_to(Product(id=product_id, name=""), images)


class Draft(BaseModel):
    """Persisted snapshot of an in-progress form.

    Serialized as ``{formData, images, timestamp}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    form_data: ProductForm = Field(alias="formData")
    images: list[FormImage] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "Draft":
        return cls.model_validate_json(raw)
