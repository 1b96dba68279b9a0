"""
demo_server/tools/toolkit.py
============================

Dependency Injection (DI) container for all infrastructure clients.

Why Dependency Injection?
-------------------------
Tool functions (in ``tool_definitions/``) need the connection manager, the
query service, the error handler and, optionally, the SQL drafter.  Without
DI, each tool would construct its own clients, leading to:

- One connection pool per tool call instead of one per process.
- Config objects scattered across the codebase.
- Hard-to-test code (you can't swap out a real DB for a mock).

``Toolkit`` creates **one instance of each client**.  The application root
(``core/server.py``) builds it and installs it for the tool functions via
``tool_definitions/context.py``; tests install a mock instead.
"""

import logging
from typing import Optional

from ..config import Config
from .connection_manager import ConnectionManager
from .error_handler import ErrorHandler
from .query_service import QueryService
from .sql_drafter import SqlDrafter

logger = logging.getLogger(__name__)


class Toolkit:
    """Wires all infrastructure clients together into one injectable container.

    Parameters
    ----------
    config:
        A fully populated ``Config`` instance.

    Attributes
    ----------
    config:
        Application configuration (shared across all clients).
    database:
        The process's single, lazily-connected ``ConnectionManager``.
    queries:
        Catalog introspection on top of ``database``.
    error_handler:
        Stateless error classification and formatting utility.
    drafter:
        ``SqlDrafter`` when Gemini credentials are configured, else ``None``.
    """

    def __init__(self, config: Config):
        self.config = config
        self.database = ConnectionManager(config.database)
        self.queries = QueryService(self.database)
        self.error_handler = ErrorHandler()
        self.drafter: Optional[SqlDrafter] = SqlDrafter(config) if config.llm_enabled else None
        logger.debug(
            "Toolkit initialised for database %s (sql drafting %s)",
            config.database.database,
            "enabled" if self.drafter else "disabled",
        )

    def close(self) -> None:
        """Release the connection pool."""
        self.database.close()
