from typing import Optional


class TableError(Exception):
    """Base class for the errors raised by the table engine."""


class DuplicateColumnError(TableError, ValueError):
    """Two columns in the same registry share a key.

    Attributes:
        key: The offending key.
    """

    def __init__(self, key: str):
        super().__init__(f"Duplicate column key: {key}")
        self.key = key


class FetchError(TableError):
    """The data source failed to provide rows.

    Attributes:
        message: A message suitable for showing to the user.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class PersistenceError(TableError):
    """Reading or writing persisted settings failed."""
