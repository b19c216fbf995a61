"""Domain-specific exceptions for the expense manager core."""

class ValidationError(ValueError):
    """Raised when user input does not meet validation requirements."""


class RecordNotFoundError(LookupError):
    """Raised when a record cannot be located by its identifier."""


class PersistenceError(IOError):
    """Raised when the storage layer cannot read or write a collection."""
