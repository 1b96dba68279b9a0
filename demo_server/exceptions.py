"""
demo_server/exceptions.py
=========================

Exception hierarchy for configuration and database failures.

``DatabaseError`` is the root for everything raised by the connection
manager.  The tool layer catches it and turns it into response text; nothing
below the tool layer swallows it.
"""

from typing import Optional


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid.

    Fatal at startup: the CLI logs it and exits.
    """


class DatabaseError(Exception):
    """Base exception for all database-related errors.

    Parameters
    ----------
    message:
        Human-readable description.
    code:
        Driver error code (PostgreSQL SQLSTATE, e.g. ``"42P01"``) when the
        driver reported one.
    detail:
        Optional ``DETAIL`` text from the server.
    hint:
        Optional ``HINT`` text from the server.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        detail: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.detail = detail
        self.hint = hint


class DatabaseConnectionError(DatabaseError):
    """Raised when the pool, the Cloud SQL connector, or the liveness probe fails.

    The manager is left uninitialized, so the next call retries cleanly.
    """


class QueryExecutionError(DatabaseError):
    """Raised when the driver rejects or fails a statement.

    This covers syntax errors, missing relations, constraint violations and
    pool checkout timeouts.  The pooled connection has already been released
    when this propagates.
    """
