"""Vendor Catalog.

Client-side engine for managing a vendor's product catalog against a
remote catalog service.

This package provides:
- Debounced filter/sort/pagination state with staleness tokens
- Listing fetches that discard superseded responses
- Optimistic create/update/delete/status/bulk mutations with rollback
- Session-scoped draft persistence with autosave
- Selection tracking for bulk operations
"""

__version__ = "0.1.0"
