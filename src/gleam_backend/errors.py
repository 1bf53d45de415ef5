"""Error taxonomy shared by services and the HTTP layer."""

from fastapi import status


class GleamError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(GleamError):
    """Missing or invalid bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_message = "Missing or invalid credentials"


class InvalidInput(GleamError):
    """Malformed request body or image."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"
    default_message = "Invalid request"


class NotFound(GleamError):
    """Requested scan does not exist for the caller."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class GenerationFailed(GleamError):
    """Oracle call failed or returned output we could not use."""

    code = "generation_failed"
    default_message = "Generation failed"


class GenerationTimeout(GenerationFailed):
    """Oracle call exceeded its time budget. Safe to retry."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    code = "generation_timeout"
    default_message = "Generation timed out, please retry"


class InternalError(GleamError):
    """Storage or transaction failure surfaced without internals."""


class StorageError(InternalError):
    """A storage call failed."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__()


class TransactionConflict(InternalError):
    """Optimistic transaction could not commit within its retry budget."""

    def __init__(self, operation: str, attempts: int) -> None:
        self.operation = operation
        self.attempts = attempts
        super().__init__()
