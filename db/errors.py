"""
db/errors.py
------------
Exception hierarchy raised by the data-access layer.
None of these are retried internally; they abort the calling operation.
"""


class DataAccessError(Exception):
    """Base class for every error raised by the data-access layer."""


class ConfigurationError(DataAccessError):
    """
    The layer is misconfigured.

    Raised when no connection string is configured, or when a record type
    cannot be mapped (not a dataclass, no identifier field, several
    identifier fields).
    """


class DatabaseConnectionError(DataAccessError):
    """A connection to the backing store could not be opened."""


class ExecutionError(DataAccessError):
    """The store rejected a statement (malformed SQL, constraint violation...)."""
