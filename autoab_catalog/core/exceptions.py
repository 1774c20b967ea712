"""Exception hierarchy for the catalog core and its storage engines."""


class CatalogError(Exception):
    """Base class for all catalog errors."""


class ValidationError(CatalogError):
    """A request parameter violated a constraint.

    ``constraint`` names the violated rule so callers can surface it
    verbatim (e.g. ``"q.min_length"``).
    """

    def __init__(self, constraint: str, message: str):
        super().__init__(message)
        self.constraint = constraint
        self.message = message


class NotFoundError(CatalogError):
    """The requested record does not exist."""


class StorageUnavailableError(CatalogError):
    """The configured storage backend cannot be opened."""
