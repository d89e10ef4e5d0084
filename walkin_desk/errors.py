"""
Exceptions raised by the walk-in workflow.

Every exception carries a ``message`` fit to show the operator as-is.
"""
from typing import Optional


class WalkInError(Exception):
    """Base class for all walk-in workflow failures."""

    default_message = "Walk-in workflow error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(WalkInError):
    """A caller precondition was violated."""
    default_message = "Invalid input"


class DuplicateSubmission(InvalidInput):
    """submit() was called while a submission is running or already committed."""
    default_message = "This order is already being submitted"


class CatalogUnavailable(WalkInError):
    default_message = "Failed to load services"


class SearchFailed(WalkInError):
    default_message = "Failed to search users"


class TransportError(WalkInError):
    """Network failure, timeout or unusable response from the backend."""
    default_message = "Could not reach the workshop backend"


class MalformedResponse(TransportError):
    default_message = "Invalid data format received from server"


class ApiError(WalkInError):
    """The backend answered with a non-2xx status."""

    default_message = "An error occurred"

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        self.backend_message = message
        super().__init__(message)


class EntityRejected(WalkInError):
    """The backend refused to create a customer or vehicle."""
    default_message = "The backend rejected the request"


class SubmissionRejected(WalkInError):
    """The backend refused the walk-in order (validation or capacity race)."""
    default_message = "Failed to create walk-in order"


class ConfigurationError(WalkInError):
    default_message = "Authentication token not found. Please log in again."


class AuthenticationRequired(ConfigurationError):
    """The backend rejected the bearer token."""
    default_message = "Your session has expired. Please log in again."
