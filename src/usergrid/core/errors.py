"""Error types raised by the table services.

Every error carries a user-facing ``message``. None of them is fatal: the
controller reports the message and leaves its state as it was before the
attempt.
"""

from typing import Optional


class TableError(Exception):
    """Base class for recoverable table errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TableError):
    """A draft field failed validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class RemoteError(TableError):
    """The remote store failed to complete an operation."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class InvariantViolation(TableError):
    """An intent was rejected before any remote call was made."""
