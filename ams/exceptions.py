"""
Application error taxonomy.

Every error raised by the domain layer derives from AppError and carries the
HTTP status it maps to. main.py turns them into the standard response envelope.
"""

from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    kind = "InternalError"
    default_message = "Server Error"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    kind = "ValidationError"
    default_message = "Validation failed"


class AuthError(AppError):
    status_code = 401
    kind = "AuthError"
    default_message = "Not authorized to access this route"


class InvalidTokenError(AuthError):
    kind = "AuthError:InvalidToken"
    default_message = "Not authorized to access this route"


class PrincipalNotFoundError(AuthError):
    kind = "AuthError:PrincipalNotFound"
    default_message = "No user found with this token"


class DeactivatedError(AuthError):
    kind = "AuthError:Deactivated"
    default_message = "Account is deactivated"


class ForbiddenError(AuthError):
    status_code = 403
    kind = "AuthError:Forbidden"
    default_message = "Not authorized to perform this action"


class NotFoundError(AppError):
    status_code = 404
    kind = "NotFound"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 400
    kind = "ConflictError"
    default_message = "Duplicate field value entered"


class InvalidStateError(AppError):
    status_code = 400
    kind = "InvalidState"
    default_message = "Operation not allowed in the current state"


class NoTenantContextError(AppError):
    status_code = 400
    kind = "ConfigError:NoTenantContext"
    default_message = "No tenant context found"


class InternalError(AppError):
    pass
