"""
Error taxonomy for the trading journal core.

DataIntegrityError is fatal to a single computation, never to the process.
PersistenceError wraps store failures and is passed through to callers as-is.
"""


class JournalError(Exception):
    """Base class for all journal errors."""


class DataIntegrityError(JournalError):
    """A stored record has an inconsistent shape (e.g. P&L on an open trade)."""

    def __init__(self, message: str, record_id: int | None = None):
        super().__init__(message)
        self.record_id = record_id


class PersistenceError(JournalError):
    """The persistence layer failed to read or write."""


class InvalidQuery(JournalError):
    """A search query could not be interpreted."""
