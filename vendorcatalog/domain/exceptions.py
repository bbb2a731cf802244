"""Catalog exceptions.

All errors raised by the catalog engine. Every failure in this package is
recoverable: by user retry, by reloading the catalog, or (for storage) by
falling back to an in-memory draft for the rest of the session.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions.

    All catalog errors should inherit from this class to allow
    catching them at the application boundary.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Form Errors
# ============================================================================


class FormValidationError(CatalogError):
    """Raised when a product form fails validation.

    Carries the full field-error map so the caller can show every
    message inline. Never reaches the network.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        """Initialize form validation error.

        Args:
            errors: Mapping of field name to human-readable message.
        """
        super().__init__(
            "Please fix the form errors before submitting.",
            details={"errors": dict(errors)},
        )
        self.errors = dict(errors)


# ============================================================================
# Remote Errors
# ============================================================================


class NetworkError(CatalogError):
    """Raised when a request to the catalog service fails.

    Covers both transport failures and non-2xx responses.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize network error.

        Args:
            operation: Name of the failed operation (e.g. "fetch", "delete").
            message: Error message from the transport or the service.
            status_code: HTTP status code, if a response was received.
            error_code: Service error code, if one was returned.
        """
        super().__init__(
            f"{operation} failed: {message}",
            details={
                "operation": operation,
                "status_code": status_code,
                "error_code": error_code,
            },
        )
        self.operation = operation
        self.status_code = status_code
        self.error_code = error_code


class PartialBulkFailureError(NetworkError):
    """Raised when the service reports that part of a bulk action failed."""

    def __init__(self, action: str, failed_ids: list[int | str]) -> None:
        """Initialize partial bulk failure error.

        Args:
            action: The bulk action that was requested.
            failed_ids: Identifiers the service reported as failed.
        """
        super().__init__(
            operation=f"bulk {action}",
            message=f"{len(failed_ids)} product(s) were not updated",
            error_code="PARTIAL_BULK_FAILURE",
        )
        self.action = action
        self.failed_ids = list(failed_ids)
        self.details["failed_ids"] = self.failed_ids


# ============================================================================
# Coordination Errors
# ============================================================================


class ConflictError(CatalogError):
    """Raised when a mutation targets an identifier that is still applying.

    The second request is rejected instead of queued so optimistic
    states never stack on top of each other.
    """

    def __init__(self, keys: list[str]) -> None:
        """Initialize conflict error.

        Args:
            keys: Busy keys (product identifiers or form keys).
        """
        super().__init__(
            f"A change is already in progress for {', '.join(keys)}",
            details={"busy_keys": list(keys)},
        )
        self.keys = list(keys)


class InvalidStateTransitionError(CatalogError):
    """Raised when an invalid mutation state transition is attempted."""

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of entity (e.g., "Mutation").
            entity_id: ID of the entity.
            current_state: Current state of the entity.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type}({entity_id}) "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )


# ============================================================================
# Storage Errors
# ============================================================================


class StorageError(CatalogError):
    """Raised by key-value storage backends when a read or write fails."""

    def __init__(self, key: str, message: str) -> None:
        """Initialize storage error.

        Args:
            key: Storage key involved in the failed operation.
            message: Underlying error message.
        """
        super().__init__(
            f"Draft storage failed for '{key}': {message}",
            details={"key": key},
        )
        self.key = key
