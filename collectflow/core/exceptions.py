"""Custom exceptions for the collections workflow engine."""


class CollectFlowException(Exception):
    """Base exception for the collections workflow engine."""

    pass


class ValidationError(CollectFlowException):
    """Raised when user input is rejected before any write."""

    pass


class NotFoundError(CollectFlowException):
    """Raised when a ledger record is not found."""

    pass


class DatabaseError(CollectFlowException):
    """Raised when a database operation fails."""

    pass


class LedgerUnavailableError(DatabaseError):
    """Raised when the invoice or collection ledger cannot be read or written."""

    pass


class ConfigurationError(CollectFlowException):
    """Raised when configuration is invalid."""

    pass
