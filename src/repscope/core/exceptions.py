"""Custom exceptions for repscope."""


class RepscopeError(Exception):
    """Base exception for all repscope errors."""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


# Retrieval errors
class ProviderError(RepscopeError):
    """Search provider request failed (network, timeout, bad status, bad XML)."""


class ConfigurationError(RepscopeError):
    """Required provider credentials are missing."""


# Processing errors
class ProcessingError(RepscopeError):
    """Base error for processing layer."""


class ClassifierError(ProcessingError):
    """Sentiment backend returned an unusable reply."""


# Storage errors
class PersistenceError(RepscopeError):
    """Project graph could not be read or written."""


# Lookup and request errors
class NotFoundError(RepscopeError):
    """Base error for missing records."""


class EntityNotFoundError(NotFoundError):
    """Project or entity does not exist."""


class ParsingNotFoundError(NotFoundError):
    """Parsing does not exist."""


class ResultNotFoundError(NotFoundError):
    """No result at the requested engine/position."""


class BulkSearchNotFoundError(NotFoundError):
    """Bulk search report does not exist."""


class InvalidRequestError(RepscopeError):
    """Request is missing required fields or carries invalid values."""


class ConflictError(RepscopeError):
    """Operation is already in progress."""
