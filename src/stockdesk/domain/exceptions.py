"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InsufficientStockError(ValidationError):
    """A requested quantity exceeds the cached stock ceiling."""

    def __init__(self, available: int, message: str | None = None) -> None:
        self.available = available
        super().__init__(message or f"Stock insuffisant. Disponible: {available}")


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class AuthorizationError(DomainException):
    """The permission gate refused the action; nothing was attempted."""


class OperationInProgressError(DomainException):
    """An operation of the same kind is already awaiting the server."""


class RemoteError(DomainException):
    """The server rejected a request or could not be reached.

    ``message`` is the server's own message, or None when it gave none;
    callers substitute their operation-specific fallback in that case.
    """

    def __init__(self, message: str | None, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message or "Remote request failed")

    def message_or(self, fallback: str) -> str:
        return self.message or fallback
