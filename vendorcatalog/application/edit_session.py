"""Product edit session.

One open form for a new product (draft key ``"new"``) or an existing
one (draft key = product id). While the session is open, every edit
restarts the autosave timer; when typing pauses the form is written to
the DraftStore. Closing the session cancels pending timers but never
aborts a draft write or mutation that has already started.
"""

from datetime import datetime
from typing import Any

import structlog

from vendorcatalog.application.draft_store import DraftStore
from vendorcatalog.application.mutation_coordinator import MutationCoordinator, MutationRecord
from vendorcatalog.application.validation import validate_product_form
from vendorcatalog.domain import events
from vendorcatalog.domain.events import NotificationAction
from vendorcatalog.domain.exceptions import FormValidationError
from vendorcatalog.domain.forms import Draft, FormImage, ProductForm
from vendorcatalog.domain.intents import NEW_PRODUCT_KEY, CreateProduct, UpdateProduct
from vendorcatalog.domain.models import Product
from vendorcatalog.domain.state_machines import AutoSaveStatus
from vendorcatalog.infrastructure.notifications import NotificationBus
from vendorcatalog.infrastructure.timers import Debouncer

logger = structlog.get_logger()


class EditSession:
    """An open create/edit form with autosave and draft recovery."""

    def __init__(
        self,
        drafts: DraftStore,
        coordinator: MutationCoordinator,
        notifier: NotificationBus,
        product: Product | None = None,
        autosave_delay: float = 2.0,
        status_decay: float = 2.0,
    ) -> None:
        """Initialize the session (call ``start()`` to populate the form).

        Args:
            drafts: Draft store for autosave and recovery.
            coordinator: Mutation coordinator used on submit.
            notifier: Notification bus.
            product: Product being edited, or None for a new product.
            autosave_delay: Seconds of inactivity before a draft is written.
            status_decay: Seconds the "saved" indicator stays visible.
        """
        self.drafts = drafts
        self.coordinator = coordinator
        self.notifier = notifier
        self.product = product
        self.key = NEW_PRODUCT_KEY if product is None else str(product.id)

        self.form = ProductForm()
        self.images: list[FormImage] = []
        self.errors: dict[str, str] = {}
        self.restored_draft: Draft | None = None
        self.autosave_status = AutoSaveStatus.IDLE
        self.draft_saved_at: datetime | None = None
        self.is_open = False

        self._autosave_timer = Debouncer(autosave_delay, self._autosave, name=f"autosave-{self.key}")
        self._status_timer = Debouncer(status_decay, self._decay_status, name=f"autosave-status-{self.key}")

    @property
    def is_new(self) -> bool:
        return self.product is None

    @property
    def autosave_pending(self) -> bool:
        return self._autosave_timer.pending

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> "EditSession":
        """Open the form, offering a pre-existing draft as the starting state."""
        self.is_open = True
        draft = self.drafts.load(self.key)
        if draft is None:
            self._load_server_copy()
            return self

        self.form = draft.form_data.model_copy(deep=True)
        self.images = [image.model_copy() for image in draft.images]
        self.restored_draft = draft
        logger.info("Draft restored", draft_key=self.key, saved_at=draft.timestamp.isoformat())
        self.notifier.notify(
            events.info(
                "Loaded saved draft",
                action=NotificationAction(label="Clear Draft", callback=self._discard_draft_action),
                duration_ms=5000,
                context={"draft_key": self.key},
            )
        )
        return self

    def _load_server_copy(self) -> None:
        if self.product is None:
            self.form = ProductForm()
            self.images = []
        else:
            self.form = ProductForm.from_product(self.product)
            self.images = [FormImage.from_image(image) for image in self.product.images]

    def close(self) -> None:
        """Close the form and cancel pending timers."""
        self._autosave_timer.close()
        self._status_timer.close()
        self.is_open = False
        self.autosave_status = AutoSaveStatus.IDLE

    def cancel(self, save_draft: bool = False) -> Draft | None:
        """Leave the form, optionally saving a draft first.

        Args:
            save_draft: Write the current form as a draft unconditionally.

        Returns:
            The saved draft, if one was written.
        """
        draft = self.drafts.save(self.key, self.form, self.images) if save_draft else None
        self.close()
        return draft

    # =========================================================================
    # Editing
    # =========================================================================

    def update_field(self, name: str, value: Any) -> None:
        """Change one form field and restart the autosave timer."""
        if name not in ProductForm.model_fields:
            raise KeyError(f"Unknown form field: {name}")
        self.update(**{name: value})

    def update(self, **fields: Any) -> None:
        """Change several form fields at once."""
        self._require_open()
        unknown = set(fields) - set(ProductForm.model_fields)
        if unknown:
            raise KeyError(f"Unknown form fields: {sorted(unknown)}")
        self.form = ProductForm.model_validate({**self.form.model_dump(), **fields})
        self._touched()

    def set_images(self, images: list[FormImage]) -> None:
        self._require_open()
        self.images = list(images)
        self._touched()

    def _require_open(self) -> None:
        if not self.is_open:
            raise RuntimeError(f"Edit session {self.key} is closed")

    def _touched(self) -> None:
        self._status_timer.cancel()
        self.autosave_status = AutoSaveStatus.IDLE
        self._autosave_timer.trigger()

    # =========================================================================
    # Drafts
    # =========================================================================

    async def _autosave(self) -> None:
        if not self.is_open:
            return
        self.save_draft()

    def save_draft(self) -> Draft:
        """Write the current form to the draft store now."""
        self.autosave_status = AutoSaveStatus.SAVING
        draft = self.drafts.save(self.key, self.form, self.images)
        self.autosave_status = AutoSaveStatus.SAVED
        self.draft_saved_at = draft.timestamp
        if self.is_open:
            self._status_timer.trigger()
        return draft

    async def _decay_status(self) -> None:
        if self.autosave_status == AutoSaveStatus.SAVED:
            self.autosave_status = AutoSaveStatus.IDLE

    def discard_draft(self) -> None:
        """Drop the stored draft and fall back to the server's copy."""
        self._autosave_timer.cancel()
        self.drafts.clear(self.key)
        self.restored_draft = None
        self.draft_saved_at = None
        self.autosave_status = AutoSaveStatus.IDLE
        self._load_server_copy()
        logger.info("Draft discarded", draft_key=self.key)

    async def _discard_draft_action(self) -> None:
        self.discard_draft()

    # =========================================================================
    # Submit
    # =========================================================================

    def validate(self) -> dict[str, str]:
        self.errors = validate_product_form(self.form)
        return self.errors

    async def submit(self) -> MutationRecord:
        """Validate and hand the form to the mutation coordinator.

        Raises:
            FormValidationError: If the form has errors (nothing is sent).
            ConflictError: If a mutation for this form/product is still applying.

        Returns:
            The settled MutationRecord. The session closes on commit and
            stays open (with the form intact) on rollback.
        """
        errors = self.validate()
        if errors:
            self.notifier.notify(
                events.error(
                    "Please fix the form errors before submitting.",
                    duration_ms=4000,
                    context={"fields": sorted(errors)},
                )
            )
            raise FormValidationError(errors)

        # A draft written after the commit would resurrect stale data.
        self._autosave_timer.cancel()

        if self.product is None:
            intent = CreateProduct(form=self.form, images=tuple(self.images), form_key=self.key)
        else:
            intent = UpdateProduct(
                product_id=self.product.id, form=self.form, images=tuple(self.images)
            )

        record = await self.coordinator.submit(intent)
        if record.committed:
            self.product = record.result or self.product
            self.restored_draft = None
            self.close()
        return record
