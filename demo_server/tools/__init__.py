"""
demo_server/tools
=================

The **tools** sub-package contains the database layer and shared utilities.
Nothing in this package is visible to MCP clients directly; these are the
*internal* building blocks that the MCP tool functions (in
``tool_definitions/``) use.

Modules
-------
- ``connection_manager.py``: Pooled PostgreSQL connections and execution.
- ``query_service.py``: Catalog introspection and schema context text.
- ``query_analyzer.py``: Lexical read-only checks and query hints.
- ``formatters.py``: Table / JSON / CSV rendering of results.
- ``models.py``: QueryResult, SchemaInfo and friends.
- ``error_handler.py``: SQLSTATE-matched, user-friendly error text.
- ``sql_drafter.py``: Optional Gemini SQL drafting.
- ``toolkit.py``: Dependency-injection container that wires all
  clients together and passes them to tool functions.
"""

from .toolkit import Toolkit  # noqa: F401
from .formatters import format_result  # noqa: F401
