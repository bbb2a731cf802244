"""Draft persistence.

Stores at most one Draft per key (``"new"`` or a product identifier)
under ``product_draft_{key}``. Writes are synchronous from the caller's
point of view. If the backing storage fails, the store logs the error
and keeps drafts in memory for the rest of the session; editing is
never blocked by storage problems.
"""

import structlog
from pydantic import ValidationError

from vendorcatalog.domain.exceptions import StorageError
from vendorcatalog.domain.forms import Draft, FormImage, ProductForm
from vendorcatalog.infrastructure.storage import KeyValueStorage

logger = structlog.get_logger()

DRAFT_KEY_PREFIX = "product_draft_"


def draft_storage_key(key: str) -> str:
    """Storage key for a draft key (``"new"`` or a product identifier)."""
    return f"{DRAFT_KEY_PREFIX}{key}"


class DraftStore:
    """Keyed draft snapshots over a session-scoped key-value store."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._memory: dict[str, Draft] = {}
        # Keys whose storage delete failed; their stored copy is stale.
        self._cleared: set[str] = set()
        self._degraded = False

    @property
    def degraded(self) -> bool:
        """Whether a storage failure has switched the store to memory-only."""
        return self._degraded

    def save(self, key: str, form: ProductForm, images: list[FormImage]) -> Draft:
        """Snapshot the form and persist it, overwriting any prior draft."""
        draft = Draft(
            form_data=form.model_copy(deep=True),
            images=[image.model_copy() for image in images],
        )
        self.put(key, draft)
        return draft

    def put(self, key: str, draft: Draft) -> None:
        """Persist an existing Draft value under ``key``."""
        self._cleared.discard(key)
        if self._degraded:
            self._memory[key] = draft
            return
        try:
            self._storage.set(draft_storage_key(key), draft.to_json())
        except (StorageError, OSError) as e:
            logger.warning(
                "Draft storage failed, keeping drafts in memory",
                draft_key=key,
                error=str(e),
            )
            self._degraded = True
            self._memory[key] = draft
            return
        self._memory.pop(key, None)
        logger.debug("Draft saved", draft_key=key)

    def load(self, key: str) -> Draft | None:
        """Return the last saved draft for ``key``, or None."""
        if key in self._memory:
            return self._memory[key]
        if key in self._cleared:
            return None
        try:
            raw = self._storage.get(draft_storage_key(key))
        except (StorageError, OSError) as e:
            logger.warning("Draft storage read failed", draft_key=key, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return Draft.from_json(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("Ignoring unreadable draft", draft_key=key, error=str(e))
            return None

    def clear(self, key: str) -> None:
        """Remove the draft for ``key`` from memory and storage."""
        self._memory.pop(key, None)
        try:
            self._storage.delete(draft_storage_key(key))
        except (StorageError, OSError) as e:
            logger.warning("Draft storage delete failed", draft_key=key, error=str(e))
            self._cleared.add(key)
            return
        logger.debug("Draft cleared", draft_key=key)

    def exists(self, key: str) -> bool:
        return self.load(key) is not None
