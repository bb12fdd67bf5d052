"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so handlers can read it without
    # parsing str(exception). Never raise this directly - use a specific subclass so
    # callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    # Used for unknown progress record ids. entity_type/entity_id are kept separately
    # so the exception handler can log them structured.
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class UnsupportedOptionError(DomainException):
    """A migration option is unrecognized or has no implemented mapping.

    HTTP Status: 400 (plain text)

    Example:
        raise UnsupportedOptionError("albums", "migrating albums is not supported yet")
    """

    def __init__(self, option: str, reason: str) -> None:
        super().__init__(f"Unsupported option '{option}': {reason}")
        self.option = option
        self.reason = reason


class AuthenticationError(DomainException):
    """A provider token is missing.

    HTTP Status: 401
    """

    def __init__(self, provider: str) -> None:
        super().__init__(f"No {provider} access token")
        self.provider = provider


class ProgressAllocationError(DomainException):
    """No progress record could be allocated for a new run.

    HTTP Status: 500
    """

    pass


# =============================================================================
# Provider / transport errors
# Hey future me - the gateway raises GatewayError subclasses for transport
# problems, pagination and writers raise ProviderAPIError for non-2xx answers.
# Only NetworkError is ever the result of a retry; timeouts are never retried.
# =============================================================================


class GatewayError(DomainException):
    """Outbound call to a provider failed before a response arrived."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class NetworkError(GatewayError):
    """Transport failure that persisted after the single retry."""

    pass


class RequestTimeoutError(GatewayError):
    """The per-call deadline expired."""

    pass


class ProviderAPIError(DomainException):
    """A provider answered with a non-2xx status.

    details holds the provider-defined error entries as readable strings, e.g.
    "(404) Resource not found" for Tidal JSON:API errors.
    """

    def __init__(
        self,
        provider: str,
        status_code: int,
        details: list[str] | None = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        self.details = details or []
        summary = "; ".join(self.details) if self.details else "no error details"
        super().__init__(f"{provider} API error {status_code}: {summary}")

    @property
    def first_detail(self) -> str | None:
        """First provider error detail, if the body carried any."""
        return self.details[0] if self.details else None


__all__ = [
    "AuthenticationError",
    "DomainException",
    "EntityNotFoundException",
    "GatewayError",
    "NetworkError",
    "ProgressAllocationError",
    "ProviderAPIError",
    "RequestTimeoutError",
    "UnsupportedOptionError",
]
