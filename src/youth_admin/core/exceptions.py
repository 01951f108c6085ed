class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400
    code = "validation_error"


class InvalidEmail(ValidationError):
    code = "invalid_email"


class InvalidPhone(ValidationError):
    code = "invalid_phone"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid or no session exists."""

    status_code = 401
    code = "unauthenticated"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 401
    code = "unauthorized"


class NotFoundError(DomainError):
    """Raised when a referenced entity is absent or not visible."""

    status_code = 404
    code = "not_found"


class ConflictError(DomainError):
    """Raised when an action conflicts with the current state of a record."""

    status_code = 409
    code = "conflict"


class AlreadyAssigned(ConflictError):
    code = "already_assigned"


class AlreadyCompleted(ConflictError):
    code = "already_completed"
