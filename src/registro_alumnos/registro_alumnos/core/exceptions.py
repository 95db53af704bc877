class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when an update/delete targets a row that does not exist."""


class AuthenticationError(DomainError):
    """Raised when credentials or the session token are invalid."""


class BackendError(Exception):
    """Error reported by the database driver (network, constraint, permission...)."""


class ServiceError(DomainError):
    """A backend error wrapped with the operation that failed.

    The message is meant to be shown to the operator as-is.
    """
