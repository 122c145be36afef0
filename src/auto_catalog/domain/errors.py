"""Domain error classes.

Protocol-agnostic errors that represent business failures.
These errors are translated to appropriate formats (HTTP, CLI exit codes) by protocol adapters.

Two families live here:
- Query errors (``ValidationError`` and below) are synchronous rejections surfaced
  to the caller of the catalog search.
- Ingestion errors (``IngestionError`` and below) are absorbed by the ingestion loop
  up to its retry budget and only surface as a failed run status.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain errors.

    Protocol-agnostic. Contains business error information that
    can be translated to HTTP or any other transport format.
    """

    # Default error code (can be used as i18n key)
    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        """Create a domain error.

        Args:
            message: Human-readable error message (default locale)
            **context: Additional context for error (e.g., field names, values)
        """
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured format for protocol translation."""
        return {
            "message": self.message,
            "code": self.error_code,
            **self.context,
        }


class ValidationError(DomainError):
    """Business rule validation error.

    Used for domain invariant violations and cross-field validation.

    Examples:
        - price_min > price_max
        - page < 1
        - Sort field outside the allow-list

    Protocol mappings:
        - REST: 422 Unprocessable Entity
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, str]] | None = None,
        **context: Any,
    ) -> None:
        """Create a validation error.

        Args:
            message: Overall validation error message (optional if errors provided)
            errors: List of field-specific errors, each with 'field' and 'message'
                   Example: [{"field": "sort", "message": "Unsupported sort field"}]
            **context: Additional context
        """
        self.errors: list[dict[str, str]] | None
        if errors:
            self.errors = errors
            msg = message or "Validation failed"
        else:
            self.errors = None
            msg = message or "Validation error"

        super().__init__(msg, **context)

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured format."""
        if self.errors:
            return {
                "message": self.message,
                "code": self.error_code,
                "errors": self.errors,
                **self.context,
            }
        return super().to_dict()


class InvalidQueryError(ValidationError):
    """A catalog query the search refuses to run.

    Never silently corrected: callers show the reason and do not retry.
    """


class NotFoundError(DomainError):
    """Resource not found.

    Protocol mappings:
        - REST: 404 Not Found
    """

    error_code: str = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str | None = None, **context: Any) -> None:
        """Create a not found error.

        Args:
            resource: Type of resource (e.g., "Listing")
            identifier: Resource identifier
            **context: Additional context
        """
        if identifier:
            message = f"{resource} with identifier '{identifier}' not found"
        else:
            message = f"{resource} not found"

        super().__init__(message, resource=resource, identifier=identifier, **context)


class ConflictError(DomainError):
    """Business constraint conflict.

    Examples:
        - Ingestion run already in progress

    Protocol mappings:
        - REST: 409 Conflict
    """

    error_code: str = "CONFLICT"


class InternalError(DomainError):
    """Internal domain error (unexpected conditions).

    Should be logged for investigation.

    Protocol mappings:
        - REST: 500 Internal Server Error
    """

    error_code: str = "INTERNAL_ERROR"


# ==============================================================================
# Ingestion Errors
# ==============================================================================


class IngestionError(DomainError):
    """Base class for failures on the ingestion side."""

    error_code: str = "INGESTION_ERROR"


class FetchError(IngestionError):
    """Upstream page could not be retrieved (network, timeout, HTTP status, bad body).

    Recoverable: the ingestion loop retries the same page with backoff.
    """

    error_code: str = "TRANSPORT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        page: int | None = None,
        status_code: int | None = None,
        **context: Any,
    ) -> None:
        self.page = page
        self.status_code = status_code
        super().__init__(message, page=page, status_code=status_code, **context)


TransportError = FetchError


class StoreWriteError(IngestionError):
    """Upsert of a listing batch into the record store failed."""

    error_code: str = "STORE_WRITE_ERROR"


class MalformedCheckpointError(IngestionError):
    """Persisted checkpoint could not be parsed. Always treated as absent."""

    error_code: str = "MALFORMED_CHECKPOINT"


class MalformedUpstreamRecordError(IngestionError):
    """A single upstream record cannot be normalized and is skipped."""

    error_code: str = "MALFORMED_UPSTREAM_RECORD"
