"""
demo_server/tool_definitions/resources.py
=========================================

The ``server://info`` resource: a plain-text description of the server,
its tools, and the current state of the connection pool.
"""

import logging

from .context import get_toolkit

logger = logging.getLogger(__name__)

SERVER_NAME = "simple-demo-server"
SERVER_VERSION = "1.0.0"

TOOL_SUMMARIES = (
    ("get_current_time", "current date and time, optionally in an IANA timezone"),
    ("calculate", "add, subtract, multiply or divide two numbers"),
    ("execute_sql_query", "run a single read-only SELECT with optional $n parameters"),
    ("get_database_schema", "columns of one table or of every table in a schema"),
    ("list_schemas", "user schemas in the database"),
    ("list_tables", "base tables in a schema"),
    ("natural_language_query", "schema context and a SQL prompt for a plain-language question"),
)


def server_info() -> str:
    """Describe the server and its connection pool.

    Reading this resource never opens a database connection.
    """
    toolkit = get_toolkit()
    status = toolkit.database.pool_status()
    db = toolkit.config.database

    lines = [
        f"{SERVER_NAME} v{SERVER_VERSION}",
        "",
        "Tools:",
    ]
    lines.extend(f"  - {name}: {summary}" for name, summary in TOOL_SUMMARIES)
    lines.extend([
        "",
        "Database:",
        f"  target: {db.instance_connection_name or f'{db.host}:{db.port}'}/{db.database}",
        f"  connected: {'yes' if status['connected'] else 'no'}",
        f"  pool: {status['checked_out']} in use, {status['checked_in']} idle"
        f" (max {db.max_connections})",
        f"  sql drafting: {'enabled' if toolkit.drafter else 'disabled'}",
    ])
    return "\n".join(lines)
