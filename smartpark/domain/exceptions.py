"""
Domain-specific exception hierarchy for the SmartPark application.
"""


class SmartParkError(Exception):
    """Base class for all application-level errors."""


class ValidationError(SmartParkError):
    """Raised when a required field is missing or invalid."""


class PreconditionError(SmartParkError):
    """Raised when an operation is not allowed in the current state."""


class PersistenceWarning(UserWarning):
    """Storage write failed; the in-memory change still stands."""
