class DomainError(Exception):
    """Base exception for business rule violations.

    ``status_code`` is what the HTTP layer answers with.
    """

    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class AuthenticationError(DomainError):
    """Raised when credentials are missing, invalid or inactive."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when an entity is absent or filtered out of the caller's view."""

    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(DomainError):
    """Raised on uniqueness violations (duplicate key)."""

    status_code = 409


class ConsistencyError(DomainError):
    """Raised when a multi-step write stopped halfway and needs reconciliation."""

    status_code = 500
