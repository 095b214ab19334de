from __future__ import annotations


class TaskApiError(Exception):
    """
    Base class for business errors surfaced to API clients.

    Subclasses carry a user-facing ``message`` that the API returns verbatim
    with a 400 status. Anything that is not a TaskApiError is treated as an
    internal failure.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# PUBLIC_INTERFACE
class ValidationError(TaskApiError):
    """Raised when task fields are missing or malformed."""


# PUBLIC_INTERFACE
class FilterError(TaskApiError):
    """Raised when the order/filter query expressions cannot be parsed."""


# PUBLIC_INTERFACE
class DuplicateError(TaskApiError):
    """Raised when a task would break the name or due date uniqueness rule."""
