"""Catalog error taxonomy.

Every error raised by the catalog carries a kind, an HTTP-style status
code and whether its message is safe to show to API callers. Operational
errors are reported verbatim; anything else is logged in full and
answered with a generic message.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification of catalog errors."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class CatalogError(Exception):
    """Base class for all catalog errors.

    Attributes:
        message: Human-readable error message.
        kind: Error classification.
        is_operational: Whether the message may be shown to callers.
        details: Additional error context for logs.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    is_operational: bool = True

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> int:
        """HTTP status code for this error."""
        return STATUS_CODES[self.kind]


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary.

        Returns:
            Dictionary with field and message keys.
        """
        return {"field": self.field, "message": self.message}


class ValidationFailedError(CatalogError):
    """Raised when client input fails validation.

    Carries every field error found so the caller can report all of
    them in one response.
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: list[FieldError]) -> None:
        """Initialize validation error.

        Args:
            errors: Field errors found during validation.
        """
        super().__init__(
            "Validation failed",
            details={"fields": [error.field for error in errors]},
        )
        self.errors = list(errors)


class ProductNotFoundError(CatalogError):
    """Raised when a referenced product does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, lookup: str, value: str) -> None:
        """Initialize not found error.

        Args:
            lookup: Attribute used for the lookup ("id" or "barcode").
            value: Looked up value.
        """
        super().__init__(
            "Product not found",
            details={"lookup": lookup, "value": value},
        )


class ProductConflictError(CatalogError):
    """Raised when a write would violate a uniqueness constraint."""

    kind = ErrorKind.CONFLICT

    NAME_BRAND = "name_brand"
    BARCODE = "barcode"

    _MESSAGES = {
        NAME_BRAND: "Product with this name and brand already exists",
        BARCODE: "Product with this barcode already exists",
    }

    def __init__(self, constraint: str) -> None:
        """Initialize conflict error.

        Args:
            constraint: Violated constraint, NAME_BRAND or BARCODE.
        """
        super().__init__(
            self._MESSAGES[constraint],
            details={"constraint": constraint},
        )
        self.constraint = constraint


class StorageError(CatalogError):
    """Raised when the storage backend fails unexpectedly.

    The message is never shown to API callers.
    """

    kind = ErrorKind.INTERNAL
    is_operational = False

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        """Initialize storage error.

        Args:
            operation: Gateway operation that failed.
            cause: Underlying driver exception.
        """
        super().__init__(
            f"Failed to {operation}",
            details={"operation": operation, "cause": repr(cause) if cause else None},
        )
