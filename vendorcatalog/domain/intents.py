"""Mutation intents.

A MutationIntent is a tagged value describing one request to the
catalog service. Intents are immutable so that a failed mutation can be
retried by re-submitting the identical value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from vendorcatalog.domain.forms import FormImage, ProductForm
from vendorcatalog.domain.models import ProductId, ProductStatus

NEW_PRODUCT_KEY = "new"


class BulkActionType(str, Enum):
    """Actions accepted by the bulk endpoint."""

    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    DELETE = "delete"

    @property
    def target_status(self) -> ProductStatus | None:
        """Status applied by this action, or None for delete."""
        return {
            BulkActionType.ACTIVATE: ProductStatus.ACTIVE,
            BulkActionType.DEACTIVATE: ProductStatus.INACTIVE,
        }.get(self)


@dataclass(frozen=True)
class MutationIntent:
    """Base class for mutation intents."""

    kind: ClassVar[str] = "mutation"

    def busy_keys(self) -> tuple[str, ...]:
        """Keys that must not have another mutation applying."""
        raise NotImplementedError

    @property
    def draft_key(self) -> str | None:
        """Draft key cleared when this intent commits, if any."""
        return None


@dataclass(frozen=True)
class CreateProduct(MutationIntent):
    """Create a product from a submitted form."""

    kind: ClassVar[str] = "create"

    form: ProductForm
    images: tuple[FormImage, ...] = ()
    form_key: str = NEW_PRODUCT_KEY

    def busy_keys(self) -> tuple[str, ...]:
        return (f"form:{self.form_key}",)

    @property
    def draft_key(self) -> str:
        return self.form_key


@dataclass(frozen=True)
class UpdateProduct(MutationIntent):
    """Replace an existing product's fields."""

    kind: ClassVar[str] = "update"

    product_id: ProductId
    form: ProductForm
    images: tuple[FormImage, ...] = ()

    def busy_keys(self) -> tuple[str, ...]:
        return (str(self.product_id),)

    @property
    def draft_key(self) -> str:
        return str(self.product_id)


@dataclass(frozen=True)
class DeleteProduct(MutationIntent):
    """Delete a single product."""

    kind: ClassVar[str] = "delete"

    product_id: ProductId

    def busy_keys(self) -> tuple[str, ...]:
        return (str(self.product_id),)


@dataclass(frozen=True)
class SetStatus(MutationIntent):
    """Change a single product's status."""

    kind: ClassVar[str] = "set_status"

    product_id: ProductId
    status: ProductStatus

    def busy_keys(self) -> tuple[str, ...]:
        return (str(self.product_id),)


@dataclass(frozen=True)
class BulkAction(MutationIntent):
    """Apply one action to many products in a single request."""

    kind: ClassVar[str] = "bulk"

    product_ids: tuple[ProductId, ...]
    action: BulkActionType

    def busy_keys(self) -> tuple[str, ...]:
        return tuple(str(pid) for pid in self.product_ids)
