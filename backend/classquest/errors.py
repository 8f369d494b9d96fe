"""Domain exceptions raised by services.

Each exception carries the HTTP status it maps to; `main` registers a
single handler for the base class.
"""


class ClassQuestError(Exception):
    """Base exception for all domain errors."""

    status_code = 500

    def __init__(self, message: str, headers: dict = None):
        self.message = message
        self.headers = headers
        super().__init__(message)


class ValidationError(ClassQuestError):
    """Raised when input is well-formed but breaks a business rule."""

    status_code = 400


class AuthError(ClassQuestError):
    """Raised when credentials are missing, invalid or expired."""

    status_code = 401


class ForbiddenError(ClassQuestError):
    """Raised when the caller lacks the role or ownership required."""

    status_code = 403


class NotFoundError(ClassQuestError):
    """Raised when a requested row does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class ConflictError(ClassQuestError):
    """Raised when a write would violate a uniqueness or state rule."""

    status_code = 409


class RateLimitedError(ClassQuestError):
    status_code = 429

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(
            f"rate limit exceeded; retry after {retry_after}s",
            headers={"Retry-After": str(retry_after)},
        )


class UpstreamError(ClassQuestError):
    """Raised when an external service (the quiz generator model) fails."""

    status_code = 502
