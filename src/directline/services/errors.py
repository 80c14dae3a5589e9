"""Service-layer exceptions.

Learn: Services raise these, routes translate them to HTTP status codes.
An offline recipient is not an error at all: the dispatcher just
returns False, so there is no exception for it here.
"""


class DirectlineError(Exception):
    """Base class for all service errors."""
    pass


class DuplicateHandleError(DirectlineError):
    """Raised when a contact handle is already registered."""
    pass


class ValidationError(DirectlineError):
    """Raised when a referenced user does not exist or a field is empty."""
    pass


class StoreUnavailableError(DirectlineError):
    """Raised when the database fails for reasons other than bad input."""
    pass
