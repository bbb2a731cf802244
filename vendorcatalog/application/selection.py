"""Selection set for bulk operations."""

from typing import Iterable, Iterator

from vendorcatalog.domain.models import ProductId


class SelectionSet:
    """Identifiers of the catalog entries checked for a bulk operation.

    Pure state. Keeping it a subset of the loaded page is the job of
    CatalogState, which removes identifiers in the same step that
    removes products.
    """

    def __init__(self, ids: Iterable[ProductId] = ()) -> None:
        self._ids: set[ProductId] = set(ids)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._ids

    def __iter__(self) -> Iterator[ProductId]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> frozenset[ProductId]:
        return frozenset(self._ids)

    def add(self, product_id: ProductId) -> None:
        self._ids.add(product_id)

    def remove(self, product_id: ProductId) -> None:
        self._ids.discard(product_id)

    def toggle(self, product_id: ProductId) -> bool:
        """Flip one identifier.

        Returns:
            True if the identifier is now selected.
        """
        if product_id in self._ids:
            self._ids.discard(product_id)
            return False
        self._ids.add(product_id)
        return True

    def toggle_all(self, current_page_ids: Iterable[ProductId]) -> None:
        """Select every id on the page, or clear if all are already selected."""
        page_ids = set(current_page_ids)
        if page_ids and page_ids <= self._ids:
            self._ids -= page_ids
        else:
            self._ids |= page_ids

    def clear(self) -> None:
        self._ids.clear()

    def discard_many(self, product_ids: Iterable[ProductId]) -> None:
        self._ids.difference_update(product_ids)

    def retain(self, product_ids: Iterable[ProductId]) -> None:
        """Drop every identifier not in ``product_ids``."""
        self._ids.intersection_update(product_ids)

    def restore(self, ids: Iterable[ProductId]) -> None:
        """Replace the contents with a previously captured snapshot."""
        self._ids = set(ids)
