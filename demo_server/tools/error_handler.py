"""
demo_server/tools/error_handler.py
==================================

User-friendly, actionable error text for database failures.

Design Strategy
---------------
A raw driver message such as ``relation "userz" does not exist`` is fine for
a developer but gives an MCP client nothing to act on.  ``ErrorHandler``
classifies a ``DatabaseError`` and returns:

1. A short error type (``TableNotFound``, ``SQLSyntaxError``, ...).
2. A plain-English ``message``.
3. Concrete ``suggestions``.

Classification tries the PostgreSQL SQLSTATE code first (carried on
``DatabaseError.code``) and falls back to regex patterns on the message, which
is all there is for connection failures raised before the server answers.
"""

import re
from typing import Dict, List, Optional, Tuple

from ..exceptions import DatabaseConnectionError, DatabaseError

_CONNECTION_ERROR = {
    "type": "ConnectionError",
    "message": "Could not reach the PostgreSQL server.",
    "suggestions": [
        "Check DB_HOST and DB_PORT (or INSTANCE_CONNECTION_NAME) in .env",
        "Verify the server is running and reachable from this host",
        "If connecting through Cloud SQL, check DB_IP_TYPE and IAM permissions",
    ],
}


class ErrorHandler:
    """Translates database exceptions into user-friendly messages with suggestions.

    Attributes
    ----------
    POSTGRES_ERRORS:
        Map of SQLSTATE code → ``{type, message, suggestions}``.
    MESSAGE_PATTERNS:
        Map of regex (matched against the lower-cased message) →
        ``{type, message, suggestions}``.
    """

    POSTGRES_ERRORS: Dict[str, dict] = {
        "42P01": {
            "type": "TableNotFound",
            "message": "The table or view you're trying to access doesn't exist.",
            "suggestions": [
                "Check the table name spelling",
                "Qualify the table with its schema (format: schema.table)",
                "Use get_database_schema to list available tables",
            ],
        },
        "42703": {
            "type": "ColumnNotFound",
            "message": "A column referenced in your query doesn't exist.",
            "suggestions": [
                "Check for typos in column names",
                "Use double quotes for mixed-case column names",
                "Use get_database_schema with the table name to list its columns",
            ],
        },
        "42601": {
            "type": "SQLSyntaxError",
            "message": "There's a syntax error in your SQL query.",
            "suggestions": [
                "Check for missing commas or quotes",
                "Verify keywords are spelled correctly",
                "Try simplifying the query to isolate the issue",
            ],
        },
        "22012": {
            "type": "DivisionByZero",
            "message": "Your query attempted to divide by zero.",
            "suggestions": [
                "Add a WHERE clause to filter out zero denominators",
                "Use NULLIF() to handle zero values: field / NULLIF(divisor, 0)",
            ],
        },
        "42501": {
            "type": "PermissionDenied",
            "message": "The database user lacks privileges for this operation.",
            "suggestions": [
                "Verify DB_USER has SELECT permission on the table",
                "Ask a database administrator to grant access",
            ],
        },
        "28P01": {
            "type": "AuthenticationError",
            "message": "Failed to authenticate with PostgreSQL.",
            "suggestions": [
                "Check DB_USER and DB_PASSWORD in .env",
                "Ensure the credentials haven't expired",
            ],
        },
        "3D000": {
            "type": "DatabaseNotFound",
            "message": "The configured database does not exist.",
            "suggestions": [
                "Check DB_NAME in .env",
            ],
        },
        "57014": {
            "type": "QueryCanceled",
            "message": "The query was canceled, usually by a statement timeout.",
            "suggestions": [
                "Add filters or a LIMIT to reduce the work done",
                "Check indexes on the filtered columns",
            ],
        },
        "23505": {
            "type": "UniqueViolation",
            "message": "A row with the same unique key already exists.",
            "suggestions": [
                "Check the values of the unique or primary key columns",
            ],
        },
    }

    MESSAGE_PATTERNS: Dict[str, dict] = {
        "password authentication failed": POSTGRES_ERRORS["28P01"],
        r"queuepool limit|could not acquire a connection": {
            "type": "PoolExhausted",
            "message": "All pooled database connections are busy.",
            "suggestions": [
                "Retry in a moment",
                "Increase DB_MAX_CONNECTIONS or DB_POOL_TIMEOUT",
            ],
        },
        r"could not connect|connection refused|timed out|name or service not known": _CONNECTION_ERROR,
    }

    @staticmethod
    def handle_database_error(error: Exception) -> Tuple[str, str, List[str]]:
        """Match a database exception to a known error category.

        Parameters
        ----------
        error:
            Usually a ``DatabaseError``; any exception is accepted.

        Returns
        -------
        Tuple[str, str, List[str]]
            ``(error_type, user_message, suggestions)``
        """
        code = getattr(error, "code", None)
        if code in ErrorHandler.POSTGRES_ERRORS:
            info = ErrorHandler.POSTGRES_ERRORS[code]
            return info["type"], info["message"], info["suggestions"]

        error_str = str(error).lower()
        for pattern, info in ErrorHandler.MESSAGE_PATTERNS.items():
            if re.search(pattern, error_str):
                return info["type"], info["message"], info["suggestions"]

        if isinstance(error, DatabaseConnectionError):
            info = _CONNECTION_ERROR
            return info["type"], info["message"], info["suggestions"]

        return (
            "DatabaseError",
            "An error occurred while executing your query.",
            [
                "Check the error details below",
                "Verify your SQL syntax is correct",
                "Try breaking down complex queries into simpler parts",
            ],
        )

    @staticmethod
    def format_error_response(
        error: Exception,
        error_type: str,
        message: str,
        suggestions: List[str],
        query: Optional[str] = None,
    ) -> str:
        """Render a user-facing error response string.

        Parameters
        ----------
        error:
            Original exception (used for the technical details section).
        error_type:
            Short error category label.
        message:
            User-friendly description of what went wrong.
        suggestions:
            Ordered list of things to try.
        query:
            Optional SQL query that caused the error.

        Returns
        -------
        str
            Plain-text error response.
        """
        response = f"Error ({error_type}): {message}\n\n"

        if query:
            response += f"Query:\n{query}\n\n"

        response += "Suggestions:\n"
        for i, suggestion in enumerate(suggestions, 1):
            response += f"{i}. {suggestion}\n"

        response += f"\nTechnical details: {error}"
        if isinstance(error, DatabaseError):
            if error.code:
                response += f"\nSQLSTATE: {error.code}"
            if error.detail:
                response += f"\nDetail: {error.detail}"
            if error.hint:
                response += f"\nHint: {error.hint}"
        return response

    @staticmethod
    def suggest_fixes(error_type: str, context: Optional[Dict] = None) -> str:
        """Provide context-aware additional suggestions.

        Parameters
        ----------
        error_type:
            Category label from ``handle_database_error``.
        context:
            Optional dict with ``available_tables``.

        Returns
        -------
        str
            Additional suggestion text, or ``""``.
        """
        if error_type == "TableNotFound" and context and context.get("available_tables"):
            tables = context["available_tables"]
            return "\nAvailable tables:\n" + "\n".join(f"  - {t}" for t in tables[:10])
        return ""
