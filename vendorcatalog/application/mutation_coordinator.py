"""Mutation coordinator.

Applies create/update/delete/status/bulk intents optimistically,
commits them to the catalog service, and either confirms or rolls back
the local change. Each mutation is a small state machine:

    IDLE -> APPLYING -> COMMITTED | ROLLED_BACK

The optimistic write, the busy-key registration and the rollback each
happen synchronously, so no other component observes a half-applied
mutation. At most one mutation may be applying per product identifier
(or per form, for creates); a second one is rejected with ConflictError.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable
from uuid import uuid4

import structlog
from pydantic import ValidationError

from vendorcatalog.application.catalog_state import CatalogState, EntrySnapshot
from vendorcatalog.application.draft_store import DraftStore
from vendorcatalog.domain import events
from vendorcatalog.domain.events import NotificationAction
from vendorcatalog.domain.exceptions import (
    CatalogError,
    ConflictError,
    NetworkError,
    PartialBulkFailureError,
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
    Product,
    ProductId,
    ProductStatus,
    new_placeholder_id,
)
from vendorcatalog.domain.state_machines import (
    MutationStatus,
    validate_mutation_transition,
)
from vendorcatalog.infrastructure.catalog_client import APIResponse, CatalogAPIClient
from vendorcatalog.infrastructure.notifications import NotificationBus
from vendorcatalog.infrastructure.schemas import BulkActionResponse, ProductSchema

logger = structlog.get_logger()

SequenceSource = Callable[[], int]
ReloadCallback = Callable[[], Awaitable[Any]]


@dataclass
class MutationRecord:
    """One mutation and everything needed to undo it.

    Attributes:
        intent: The request being applied.
        started_seq: Latest fetch sequence number when the mutation began.
        mutation_id: Correlation identifier.
        status: Current lifecycle state.
        snapshots: Last-known-good entries captured before the optimistic write.
        placeholder_id: Temporary identifier of an optimistic create.
        selection_before: Selection captured before an optimistic create.
        draft_before: Draft stored for the form before the attempt.
        result: Server copy of the product, when the service returned one.
        error: Failure that caused the rollback.
    """

    intent: MutationIntent
    started_seq: int = 0
    mutation_id: str = field(default_factory=lambda: uuid4().hex)
    status: MutationStatus = MutationStatus.IDLE
    snapshots: dict[ProductId, EntrySnapshot] = field(default_factory=dict)
    placeholder_id: str | None = None
    selection_before: frozenset[ProductId] | None = None
    draft_before: Draft | None = None
    result: Product | None = None
    error: CatalogError | None = None

    def transition(self, target: MutationStatus) -> None:
        validate_mutation_transition(self.mutation_id, self.status, target)
        self.status = target

    @property
    def committed(self) -> bool:
        return self.status == MutationStatus.COMMITTED

    @property
    def rolled_back(self) -> bool:
        return self.status == MutationStatus.ROLLED_BACK


def _network_error(operation: str, response: APIResponse) -> NetworkError:
    return NetworkError(
        operation=operation,
        message=response.error.message if response.error else "Unknown error",
        status_code=response.error.status_code if response.error else None,
        error_code=response.error.error_code if response.error else None,
    )


def _parse_product(operation: str, data: Any) -> Product:
    """Parse ``{product}`` (or a bare product body) into a Product."""
    body = data.get("product", data) if isinstance(data, dict) else data
    try:
        return ProductSchema.model_validate(body).to_domain()
    except ValidationError as e:
        logger.error("Product response did not match schema", operation=operation, error=str(e))
        raise NetworkError(
            operation=operation,
            message="Unexpected product response",
            error_code="INVALID_RESPONSE",
        ) from e


class MutationCoordinator:
    """Applies mutation intents with optimistic update and rollback."""

    def __init__(
        self,
        client: CatalogAPIClient,
        state: CatalogState,
        drafts: DraftStore,
        notifier: NotificationBus,
        sequence: SequenceSource = lambda: 0,
        reload: ReloadCallback | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            client: Catalog API client.
            state: Catalog state the coordinator mutates.
            drafts: Draft store cleared on successful commits.
            notifier: Notification bus for outcomes.
            sequence: Returns the latest fetch sequence number.
            reload: Reloads the catalog (offered after partial bulk failures).
        """
        self.client = client
        self.state = state
        self.drafts = drafts
        self.notifier = notifier
        self._sequence = sequence
        self._reload = reload
        self._applying: dict[str, MutationRecord] = {}
        # Committed mutations that a listing issued before them could still undo.
        self._settled: list[MutationRecord] = []

    # =========================================================================
    # Busy tracking
    # =========================================================================

    def is_busy(self, key: ProductId) -> bool:
        """Whether a mutation is applying for a product id or busy key."""
        return str(key) in self._applying

    @property
    def applying(self) -> list[MutationRecord]:
        """Distinct mutations currently applying."""
        seen: dict[str, MutationRecord] = {}
        for record in self._applying.values():
            seen.setdefault(record.mutation_id, record)
        return list(seen.values())

    # =========================================================================
    # Public operations
    # =========================================================================

    async def create(
        self,
        form: ProductForm,
        images: list[FormImage] | tuple[FormImage, ...] = (),
        form_key: str = NEW_PRODUCT_KEY,
    ) -> MutationRecord:
        return await self.submit(CreateProduct(form=form, images=tuple(images), form_key=form_key))

    async def update(
        self,
        product_id: ProductId,
        form: ProductForm,
        images: list[FormImage] | tuple[FormImage, ...] = (),
    ) -> MutationRecord:
        return await self.submit(UpdateProduct(product_id=product_id, form=form, images=tuple(images)))

    async def delete(self, product_id: ProductId) -> MutationRecord:
        return await self.submit(DeleteProduct(product_id=product_id))

    async def set_status(self, product_id: ProductId, status: ProductStatus) -> MutationRecord:
        return await self.submit(SetStatus(product_id=product_id, status=status))

    async def toggle_status(self, product_id: ProductId) -> MutationRecord:
        """Flip a loaded product between active and inactive."""
        product = self.state.get(product_id)
        if product is None:
            raise KeyError(f"Product {product_id} is not loaded")
        return await self.set_status(product_id, product.status.toggled())

    async def bulk(
        self,
        action: BulkActionType | str,
        product_ids: list[ProductId] | tuple[ProductId, ...],
    ) -> MutationRecord:
        if not product_ids:
            raise ValueError("Bulk action needs at least one product")
        return await self.submit(
            BulkAction(product_ids=tuple(product_ids), action=BulkActionType(action))
        )

    async def retry(self, record: MutationRecord) -> MutationRecord:
        """Re-attempt the identical intent of a rolled-back mutation."""
        return await self.submit(record.intent)

    async def submit(self, intent: MutationIntent) -> MutationRecord:
        """Apply, commit and settle one intent.

        Raises:
            ConflictError: If a targeted key already has a mutation applying.

        Returns:
            The settled MutationRecord (COMMITTED or ROLLED_BACK).
        """
        keys = intent.busy_keys()
        busy = [key for key in keys if key in self._applying]
        if busy:
            logger.warning("Rejecting mutation on busy keys", kind=intent.kind, busy_keys=busy)
            self.notifier.notify(
                events.warning(
                    "Another change to this product is still being saved.",
                    context={"busy_keys": busy},
                )
            )
            raise ConflictError(busy)

        record = MutationRecord(intent=intent, started_seq=self._sequence())
        self._apply(record)
        # The placeholder is busy too, so nothing can target it before it has a server id.
        keys = keys + ((record.placeholder_id,) if record.placeholder_id else ())
        for key in keys:
            self._applying[key] = record
        logger.info(
            "Mutation applying",
            mutation_id=record.mutation_id,
            kind=intent.kind,
            keys=list(keys),
            started_seq=record.started_seq,
        )

        try:
            result = await self._commit(record)
        except NetworkError as e:
            self._rollback(record, e)
        except BaseException:
            self._rollback(record, None)
            raise
        else:
            self._confirm(record, result)
        finally:
            for key in keys:
                if self._applying.get(key) is record:
                    del self._applying[key]
        return record

    # =========================================================================
    # Optimistic apply
    # =========================================================================

    def _apply(self, record: MutationRecord) -> None:
        intent = record.intent
        record.transition(MutationStatus.APPLYING)

        if isinstance(intent, CreateProduct):
            record.draft_before = self.drafts.load(intent.draft_key)
            record.selection_before = self.state.selection.ids
            record.placeholder_id = new_placeholder_id()
            self.state.prepend(intent.form.to_product(record.placeholder_id, list(intent.images)))

        elif isinstance(intent, UpdateProduct):
            record.draft_before = self.drafts.load(intent.draft_key)
            snap = self.state.snapshot(intent.product_id)
            if snap is not None:
                record.snapshots[intent.product_id] = snap
                self.state.replace(intent.form.apply_to(snap.product, list(intent.images)))

        elif isinstance(intent, DeleteProduct):
            record.snapshots = self.state.remove([intent.product_id])

        elif isinstance(intent, SetStatus):
            record.snapshots = self.state.set_status([intent.product_id], intent.status)

        elif isinstance(intent, BulkAction):
            if intent.action == BulkActionType.DELETE:
                record.snapshots = self.state.remove(intent.product_ids)
            else:
                record.snapshots = self.state.set_status(
                    intent.product_ids, intent.action.target_status
                )

        else:
            raise TypeError(f"Unsupported mutation intent: {intent!r}")

    # =========================================================================
    # Network commit
    # =========================================================================

    async def _commit(self, record: MutationRecord) -> Product | None:
        intent = record.intent

        if isinstance(intent, CreateProduct):
            response = await self.client.create_product(
                intent.form.to_fields(),
                [image.file_path for image in intent.images if image.is_upload],
            )
            if not response.success:
                raise _network_error("create", response)
            return _parse_product("create", response.data)

        if isinstance(intent, UpdateProduct):
            response = await self.client.update_product(
                intent.product_id,
                intent.form.to_fields(),
                [image.file_path for image in intent.images if image.is_upload],
            )
            if not response.success:
                raise _network_error("update", response)
            return _parse_product("update", response.data)

        if isinstance(intent, DeleteProduct):
            response = await self.client.delete_product(intent.product_id)
            if not response.success:
                raise _network_error("delete", response)
            return None

        if isinstance(intent, SetStatus):
            response = await self.client.set_product_status(intent.product_id, intent.status)
            if not response.success:
                raise _network_error("set_status", response)
            if isinstance(response.data, dict) and "product" in response.data:
                return _parse_product("set_status", response.data)
            return None

        if isinstance(intent, BulkAction):
            response = await self.client.bulk_action(intent.action.value, list(intent.product_ids))
            if not response.success:
                raise _network_error(f"bulk {intent.action.value}", response)
            if isinstance(response.data, dict):
                try:
                    outcome = BulkActionResponse.model_validate(response.data)
                except ValidationError as e:
                    logger.warning("Unreadable bulk response body", error=str(e))
                else:
                    if outcome.failed_ids:
                        raise PartialBulkFailureError(intent.action.value, outcome.failed_ids)
            return None

        raise TypeError(f"Unsupported mutation intent: {intent!r}")

    # =========================================================================
    # Settle
    # =========================================================================

    def _confirm(self, record: MutationRecord, result: Product | None) -> None:
        intent = record.intent
        record.result = result

        if isinstance(intent, CreateProduct):
            self._install_created(record.placeholder_id, result)
            self.drafts.clear(intent.draft_key)
            message = "Product created successfully!"

        elif isinstance(intent, UpdateProduct):
            if result is not None:
                self.state.replace(result)
            self.drafts.clear(intent.draft_key)
            message = "Product updated successfully!"

        elif isinstance(intent, DeleteProduct):
            message = "Product deleted successfully!"

        elif isinstance(intent, SetStatus):
            if result is not None:
                self.state.replace(result)
            message = f"Product {intent.status.verb}d successfully!"

        else:
            self.state.clear_selection()
            message = f"Bulk {intent.action.value} completed successfully!"

        record.transition(MutationStatus.COMMITTED)
        if self._sequence() <= record.started_seq:
            self._settled.append(record)
        logger.info(
            "Mutation committed",
            mutation_id=record.mutation_id,
            kind=intent.kind,
            product_id=result.id if result else None,
        )
        self.notifier.notify(events.success(message, context={"mutation_id": record.mutation_id}))

    def _install_created(self, placeholder_id: str | None, product: Product) -> None:
        """Swap the placeholder for the server's product, keeping ids unique."""
        if product.id in self.state:
            # A refresh already brought the new product in.
            self.state.remove([placeholder_id])
            return
        if not self.state.replace_entry(placeholder_id, product):
            self.state.prepend(product)

    def _rollback(self, record: MutationRecord, error: NetworkError | None) -> None:
        intent = record.intent

        if isinstance(intent, CreateProduct):
            self.state.remove([record.placeholder_id])
            self.state.restore_selection(record.selection_before or ())
            self._restore_draft(intent.draft_key, record.draft_before)
        elif isinstance(intent, UpdateProduct):
            self.state.restore(record.snapshots.values())
            self._restore_draft(intent.draft_key, record.draft_before)
        elif isinstance(intent, DeleteProduct) or (
            isinstance(intent, BulkAction) and intent.action == BulkActionType.DELETE
        ):
            self.state.reinsert(record.snapshots.values())
        else:
            self.state.restore(record.snapshots.values())

        record.error = error
        record.transition(MutationStatus.ROLLED_BACK)
        logger.warning(
            "Mutation rolled back",
            mutation_id=record.mutation_id,
            kind=intent.kind,
            error=error.message if error else "cancelled",
            status_code=error.status_code if error else None,
        )
        if error is not None:
            self.notifier.notify(self._failure_notification(record, error))

    def _restore_draft(self, key: str, draft: Draft | None) -> None:
        if draft is not None and self.drafts.load(key) is None:
            self.drafts.put(key, draft)

    def _failure_notification(self, record: MutationRecord, error: NetworkError) -> events.Notification:
        intent = record.intent
        context = {"mutation_id": record.mutation_id}

        if isinstance(error, PartialBulkFailureError):
            action = None
            if self._reload is not None:
                action = NotificationAction(label="Reload", callback=self._reload)
            return events.error(
                f"Bulk {error.action} failed for {len(error.failed_ids)} product(s). "
                "Reload the catalog to see the current state.",
                action=action,
                duration_ms=0,
                context={**context, "failed_ids": error.failed_ids},
            )

        if isinstance(intent, (CreateProduct, UpdateProduct)):
            message = "Failed to save product. Please try again."
        elif isinstance(intent, DeleteProduct):
            message = "Failed to delete product. Please try again."
        elif isinstance(intent, SetStatus):
            message = f"Failed to {intent.status.verb} product. Please try again."
        else:
            message = f"Bulk {intent.action.value} failed. Please try again."

        return events.error(
            message,
            action=NotificationAction(label="Retry", callback=lambda: self.submit(intent)),
            context=context,
        )

    # =========================================================================
    # Fetch reconciliation
    # =========================================================================

    def reconcile(self, products: list[Product], response_seq: int) -> list[Product]:
        """Keep optimistic entries visible in a page fetched before they started.

        A listing response whose sequence number is not newer than a
        mutation's start cannot reflect that mutation, so the mutation's
        local entries win by identifier. This holds for mutations still
        applying and for committed ones that such a listing could still
        overwrite. Newer responses are taken as is, and a committed
        mutation is forgotten once one of them arrives.
        """
        self._settled = [r for r in self._settled if response_seq <= r.started_seq]
        merged = list(products)
        for record in self.applying + self._settled:
            if response_seq > record.started_seq:
                continue
            intent = record.intent

            if isinstance(intent, CreateProduct):
                if record.committed:
                    local = self.state.get(record.result.id) if record.result else None
                else:
                    local = self.state.get(record.placeholder_id)
                if local is not None and all(p.id != local.id for p in merged):
                    merged.insert(0, local)

            elif isinstance(intent, DeleteProduct) or (
                isinstance(intent, BulkAction) and intent.action == BulkActionType.DELETE
            ):
                removed = set(record.snapshots)
                merged = [p for p in merged if p.id not in removed]

            else:
                for product_id in record.snapshots:
                    local = self.state.get(product_id)
                    if local is None:
                        continue
                    merged = [local if p.id == product_id else p for p in merged]

        return merged
