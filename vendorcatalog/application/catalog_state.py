"""Loaded catalog page.

CatalogState holds the product collection, its PaginationMeta and the
SelectionSet. Only the component that owns the current step writes to
it: the fetcher when it accepts a response, the mutation coordinator
while it applies or rolls back a change.
"""

from dataclasses import dataclass
from typing import Callable, Iterable

import structlog

from vendorcatalog.application.selection import SelectionSet
from vendorcatalog.domain.models import (
    PaginationMeta,
    Product,
    ProductId,
    ProductPage,
    ProductStatus,
    is_placeholder_id,
)

logger = structlog.get_logger()

ChangeListener = Callable[["CatalogState"], None]


@dataclass(frozen=True)
class EntrySnapshot:
    """Last-known-good copy of one entry, taken before an optimistic write.

    Attributes:
        product: The product as it was.
        index: Its position within the page.
        selected: Whether it was in the selection set.
    """

    product: Product
    index: int
    selected: bool


class CatalogState:
    """The product collection currently shown to the vendor."""

    def __init__(self) -> None:
        self._products: list[Product] = []
        self._pagination: PaginationMeta | None = None
        self.selection = SelectionSet()
        self.accepted_seq = 0
        self.version = 0
        self._listeners: list[ChangeListener] = []

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def products(self) -> tuple[Product, ...]:
        return tuple(self._products)

    @property
    def pagination(self) -> PaginationMeta | None:
        return self._pagination

    def ids(self) -> list[ProductId]:
        return [p.id for p in self._products]

    def index_of(self, product_id: ProductId) -> int | None:
        for index, product in enumerate(self._products):
            if product.id == product_id:
                return index
        return None

    def get(self, product_id: ProductId) -> Product | None:
        index = self.index_of(product_id)
        return None if index is None else self._products[index]

    def __contains__(self, product_id: object) -> bool:
        return any(p.id == product_id for p in self._products)

    def __len__(self) -> int:
        return len(self._products)

    def snapshot(self, product_id: ProductId) -> EntrySnapshot | None:
        index = self.index_of(product_id)
        if index is None:
            return None
        return EntrySnapshot(
            product=self._products[index],
            index=index,
            selected=product_id in self.selection,
        )

    # =========================================================================
    # Change notification
    # =========================================================================

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a render callback invoked after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self.version += 1
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Catalog change listener failed")

    # =========================================================================
    # Writes
    # =========================================================================

    def replace_page(self, page: ProductPage, seq: int) -> None:
        """Swap in a fetched page.

        Products and pagination are replaced together and the selection
        is cleared, all in one step.
        """
        products: list[Product] = []
        seen: set[ProductId] = set()
        for product in page.products:
            if product.id in seen:
                logger.warning("Dropping duplicate product in page", product_id=product.id)
                continue
            seen.add(product.id)
            products.append(product)
        self._products = products
        self._pagination = page.pagination
        self.selection.clear()
        self.accepted_seq = seq
        self._changed()

    def prepend(self, product: Product) -> None:
        if product.id in self:
            raise ValueError(f"Product {product.id} is already loaded")
        self._products.insert(0, product)
        self._changed()

    def insert_at(self, index: int, product: Product) -> None:
        if product.id in self:
            raise ValueError(f"Product {product.id} is already loaded")
        index = max(0, min(index, len(self._products)))
        self._products.insert(index, product)
        self._changed()

    def replace(self, product: Product) -> bool:
        """Replace the entry with the same identifier.

        Returns:
            False if the product is not loaded.
        """
        return self.replace_entry(product.id, product)

    def replace_entry(self, product_id: ProductId, product: Product) -> bool:
        """Replace the entry ``product_id`` (possibly with a new identifier).

        Returns:
            False if ``product_id`` is not loaded.
        """
        index = self.index_of(product_id)
        if index is None:
            return False
        if product.id != product_id and product.id in self:
            raise ValueError(f"Product {product.id} is already loaded")
        self._products[index] = product
        if product.id != product_id and product_id in self.selection:
            self.selection.remove(product_id)
            self.selection.add(product.id)
        self._changed()
        return True

    def set_status(
        self, product_ids: Iterable[ProductId], status: ProductStatus
    ) -> dict[ProductId, EntrySnapshot]:
        """Set the status of every loaded target in one step.

        Returns:
            Snapshots of the entries as they were before the change.
        """
        snapshots: dict[ProductId, EntrySnapshot] = {}
        for product_id in product_ids:
            snap = self.snapshot(product_id)
            if snap is None:
                continue
            snapshots[product_id] = snap
            self._products[snap.index] = snap.product.with_status(status)
        if snapshots:
            self._changed()
        return snapshots

    def remove(self, product_ids: Iterable[ProductId]) -> dict[ProductId, EntrySnapshot]:
        """Remove products and their selection entries in one step.

        Returns:
            Snapshots (with original positions) of the removed entries.
        """
        targets = set(product_ids)
        snapshots: dict[ProductId, EntrySnapshot] = {}
        kept: list[Product] = []
        for index, product in enumerate(self._products):
            if product.id in targets:
                snapshots[product.id] = EntrySnapshot(
                    product=product,
                    index=index,
                    selected=product.id in self.selection,
                )
            else:
                kept.append(product)
        if snapshots:
            self._products = kept
            self.selection.discard_many(snapshots)
            self._changed()
        return snapshots

    def reinsert(self, snapshots: Iterable[EntrySnapshot]) -> None:
        """Put removed entries back at their original positions."""
        restored = False
        for snap in sorted(snapshots, key=lambda s: s.index):
            if snap.product.id in self:
                continue
            index = max(0, min(snap.index, len(self._products)))
            self._products.insert(index, snap.product)
            if snap.selected:
                self.selection.add(snap.product.id)
            restored = True
        if restored:
            self._changed()

    def restore(self, snapshots: Iterable[EntrySnapshot]) -> None:
        """Put back the last-known-good copy of entries that are still loaded."""
        restored = False
        for snap in snapshots:
            index = self.index_of(snap.product.id)
            if index is None:
                continue
            self._products[index] = snap.product
            restored = True
        if restored:
            self._changed()

    # =========================================================================
    # Selection
    # =========================================================================

    def select(self, product_id: ProductId) -> bool:
        """Select a loaded product.

        Returns:
            False if the product is not loaded or is an unconfirmed
            placeholder (nothing is selected).
        """
        if product_id not in self:
            logger.debug("Ignoring selection of unloaded product", product_id=product_id)
            return False
        if is_placeholder_id(product_id):
            logger.debug("Ignoring selection of placeholder", product_id=product_id)
            return False
        self.selection.add(product_id)
        self._changed()
        return True

    def deselect(self, product_id: ProductId) -> None:
        self.selection.remove(product_id)
        self._changed()

    def toggle_selected(self, product_id: ProductId) -> bool:
        if product_id in self.selection:
            self.deselect(product_id)
            return False
        return self.select(product_id)

    def toggle_select_all(self) -> None:
        self.selection.toggle_all(p.id for p in self._products if not p.is_placeholder)
        self._changed()

    def clear_selection(self) -> None:
        self.selection.clear()
        self._changed()

    def restore_selection(self, ids: Iterable[ProductId]) -> None:
        """Restore a selection snapshot, keeping only loaded identifiers."""
        self.selection.restore(ids)
        self.selection.retain(self.ids())
        self._changed()
