class LinkDBError(Exception):
    """Base class for datastore errors."""


class NotAuthorizedError(LinkDBError, PermissionError):
    """Raised when an anonymous session tries to change the datastore."""


class LinkValidationError(LinkDBError, ValueError):
    """Raised when a link, key or day does not have the expected shape."""


class CorruptStoreError(LinkDBError):
    """Raised when the datastore file exists but cannot be decoded."""
