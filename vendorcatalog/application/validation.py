"""Product form validation.

Pure function from form data to a field-error map. An empty map is the
only "valid" signal; no separate boolean is kept.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from vendorcatalog.domain.forms import ProductForm
from vendorcatalog.domain.models import Category

NAME_MIN_LENGTH = 3
DESCRIPTION_MIN_LENGTH = 10
SKU_MIN_LENGTH = 2


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _positive_decimal(raw: str) -> Decimal | None:
    try:
        value = Decimal(raw)
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def _non_negative_int(raw: str) -> int | None:
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def validate_product_form(form: ProductForm | Mapping[str, Any]) -> dict[str, str]:
    """Validate product form data.

    Args:
        form: A ProductForm or a plain mapping of field values.

    Returns:
        Mapping of field name to message; empty when the form can be submitted.
    """
    data = form.model_dump(mode="json") if isinstance(form, ProductForm) else form
    errors: dict[str, str] = {}

    name = _text(data, "name")
    if not name:
        errors["name"] = "Product name is required"
    elif len(name) < NAME_MIN_LENGTH:
        errors["name"] = f"Product name must be at least {NAME_MIN_LENGTH} characters"

    description = _text(data, "description")
    if not description:
        errors["description"] = "Description is required"
    elif len(description) < DESCRIPTION_MIN_LENGTH:
        errors["description"] = (
            f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters"
        )

    price = _text(data, "price")
    if not price:
        errors["price"] = "Price is required"
    elif _positive_decimal(price) is None:
        errors["price"] = "Valid price is required"

    category = _text(data, "category")
    if not category:
        errors["category"] = "Category is required"
    elif category not in Category.values():
        errors["category"] = "Category must be one of the catalog categories"

    stock = _text(data, "stock")
    if not stock:
        errors["stock"] = "Stock quantity is required"
    elif _non_negative_int(stock) is None:
        errors["stock"] = "Valid stock quantity is required"

    sku = _text(data, "sku")
    if sku and len(sku) < SKU_MIN_LENGTH:
        errors["sku"] = f"SKU must be at least {SKU_MIN_LENGTH} characters if provided"

    return errors
