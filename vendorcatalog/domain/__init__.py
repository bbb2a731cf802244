"""Domain layer - models, forms, intents, state machines, notifications.

This module exports the core catalog building blocks:

- **Models**: Product, FilterState, PaginationMeta (immutable snapshots)
- **Forms**: ProductForm, FormImage, Draft (raw, in-progress form state)
- **Intents**: CreateProduct, UpdateProduct, DeleteProduct, SetStatus, BulkAction
- **State Machines**: MutationStatus, AutoSaveStatus
- **Notifications**: Notification, NotificationAction, NotificationLevel
- **Exceptions**: Catalog-specific errors

Example usage:
    from vendorcatalog.domain import FilterState, SortField

    query = FilterState(search="lamp", sort_by=SortField.PRICE, seq=3)
    query.to_query_params()  # {"search": "lamp", "sort_by": "price", ...}
"""

from vendorcatalog.domain.events import (
    Notification,
    NotificationAction,
    NotificationLevel,
)
from vendorcatalog.domain.exceptions import (
    CatalogError,
    ConflictError,
    FormValidationError,
    InvalidStateTransitionError,
    NetworkError,
    PartialBulkFailureError,
    StorageError,
)
from vendorcatalog.domain.forms import Draft, FormImage, ProductForm
from vendorcatalog.domain.intents import (
    NEW_PRODUCT_KEY,
    BulkAction,
    BulkActionType,
    CreateProduct,
    DeleteProduct,
    MutationIntent,
    SetStatus,
    UpdateProduct,
)
from vendorcatalog.domain.models import (
    Category,
    FilterState,
    PaginationMeta,
    Product,
    ProductId,
    ProductImage,
    ProductPage,
    ProductStatus,
    SortField,
    SortOrder,
    is_placeholder_id,
    new_placeholder_id,
)
from vendorcatalog.domain.state_machines import (
    AutoSaveStatus,
    MutationStatus,
    validate_mutation_transition,
)

__all__ = [
    # Notifications
    "Notification",
    "NotificationAction",
    "NotificationLevel",
    # Exceptions
    "CatalogError",
    "ConflictError",
    "FormValidationError",
    "InvalidStateTransitionError",
    "NetworkError",
    "PartialBulkFailureError",
    "StorageError",
    # Forms
    "Draft",
    "FormImage",
    "ProductForm",
    # Intents
    "NEW_PRODUCT_KEY",
    "BulkAction",
    "BulkActionType",
    "CreateProduct",
    "DeleteProduct",
    "MutationIntent",
    "SetStatus",
    "UpdateProduct",
    # Models
    "Category",
    "FilterState",
    "PaginationMeta",
    "Product",
    "ProductId",
    "ProductImage",
    "ProductPage",
    "ProductStatus",
    "SortField",
    "SortOrder",
    "is_placeholder_id",
    "new_placeholder_id",
    # State machines
    "AutoSaveStatus",
    "MutationStatus",
    "validate_mutation_transition",
]
