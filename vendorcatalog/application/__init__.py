"""Application layer module.

Contains the components that coordinate queries, fetches, optimistic
mutations, drafts and selection on top of the domain layer.
"""

from vendorcatalog.application.catalog_fetcher import (
    CatalogFetcher,
    FetchOutcome,
    FetchResult,
)
from vendorcatalog.application.catalog_manager import VendorCatalogManager
from vendorcatalog.application.catalog_state import CatalogState, EntrySnapshot
from vendorcatalog.application.draft_store import DraftStore, draft_storage_key
from vendorcatalog.application.edit_session import EditSession
from vendorcatalog.application.filter_query import FilterQueryManager
from vendorcatalog.application.mutation_coordinator import (
    MutationCoordinator,
    MutationRecord,
)
from vendorcatalog.application.selection import SelectionSet
from vendorcatalog.application.validation import validate_product_form

__all__ = [
    "CatalogFetcher",
    "FetchOutcome",
    "FetchResult",
    "VendorCatalogManager",
    "CatalogState",
    "EntrySnapshot",
    "DraftStore",
    "draft_storage_key",
    "EditSession",
    "FilterQueryManager",
    "MutationCoordinator",
    "MutationRecord",
    "SelectionSet",
    "validate_product_form",
]
