"""
ringside/errors.py - Error taxonomy for match control.

Every error carries a short machine-readable ``code`` so the admin channel
can report it back to the sender without leaking tracebacks.
"""


class RingsideError(Exception):
    """Base exception for scoreboard errors."""

    code = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(RingsideError):
    """Malformed or missing command fields. Raised before any state changes."""

    code = "validation"


class StoreUnavailable(RingsideError):
    """Transient persistence failure."""

    code = "store-unavailable"


class StoreRejected(RingsideError):
    """The store refused an operation, e.g. deleting an id that doesn't exist."""

    code = "store-rejected"
