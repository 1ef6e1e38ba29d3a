from typing import Optional


class ServiceError(Exception):
    """Base class for service-layer exceptions mapped to HTTP responses.

    Every error carries a stable machine-readable ``error_code`` next to
    the HTTP status and a human-readable message:
    - unauthorized (401)
    - forbidden (403)
    - not_found (404)
    - conflict / blocked_user (409)
    - validation_error (400)
    - server_error (500)
    """

    status_code: int = 400
    error_code: str = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code


class ValidationError(ServiceError):
    """Malformed input or a forbidden self-modification (400)."""
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(ServiceError):
    """No resolvable caller identity (401)."""
    status_code = 401
    error_code = "unauthorized"


class ForbiddenError(ServiceError):
    """Authenticated, but inactive or lacking the role (403)."""
    status_code = 403
    error_code = "forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    status_code = 409
    error_code = "conflict"


class BlockedUserError(ConflictError):
    """Approval hit a BLOCKED account; the whole transaction is undone."""
    error_code = "blocked_user"


class ServerError(ServiceError):
    status_code = 500
    error_code = "server_error"


class EmailTransportError(Exception):
    """Raised by the mailer; never escapes the notification dispatcher."""


__all__ = [
    "ServiceError",
    "ValidationError",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "BlockedUserError",
    "ServerError",
    "EmailTransportError",
]
