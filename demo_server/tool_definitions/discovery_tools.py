"""
demo_server/tool_definitions/discovery_tools.py
===============================================

Database, schema, and table discovery tools.

These three tools form a discovery hierarchy:
    list_schemas
        └── list_tables(schema)
                └── get_database_schema(table_name, schema)

All catalog work is blocking, so it runs in a worker thread to keep the
event loop free for other tool calls.
"""

import asyncio
import logging
from typing import Optional

from ..tools.query_service import describe_column
from .context import get_toolkit

logger = logging.getLogger(__name__)


def _error_text(toolkit, error: Exception) -> str:
    error_type, message, suggestions = toolkit.error_handler.handle_database_error(error)
    return toolkit.error_handler.format_error_response(error, error_type, message, suggestions)


async def list_schemas() -> str:
    """List the user schemas in the database (system schemas excluded)."""
    toolkit = get_toolkit()
    try:
        schemas = await asyncio.to_thread(toolkit.queries.get_schemas)
    except Exception as e:
        logger.error("Error listing schemas: %s", e)
        return _error_text(toolkit, e)
    if not schemas:
        return "No schemas found."
    return f"Schemas ({len(schemas)}):\n" + "\n".join(f"  - {s}" for s in schemas)


async def list_tables(schema: str = "public") -> str:
    """List the base tables in a schema.

    Parameters
    ----------
    schema:
        Schema to inspect.  Defaults to ``public``.
    """
    toolkit = get_toolkit()
    try:
        tables = await asyncio.to_thread(toolkit.queries.get_tables, schema)
    except Exception as e:
        logger.error("Error listing tables in %s: %s", schema, e)
        return _error_text(toolkit, e)
    if not tables:
        return f"No tables found in schema '{schema}'."
    return f"Tables in '{schema}' ({len(tables)}):\n" + "\n".join(f"  - {t}" for t in tables)


async def get_database_schema(table_name: Optional[str] = None, schema: str = "public") -> str:
    """Describe the columns of one table, or of every table in a schema.

    Parameters
    ----------
    table_name:
        Table to describe.  Omit to describe the whole schema.
    schema:
        Schema containing the table(s).  Defaults to ``public``.

    Returns
    -------
    str
        One block per table listing ``column (type) NULL|NOT NULL`` and any
        column default.
    """
    toolkit = get_toolkit()
    try:
        tables = await asyncio.to_thread(toolkit.queries.get_table_schema, table_name, schema)
    except Exception as e:
        logger.error("Error reading schema %s: %s", schema, e)
        return _error_text(toolkit, e)

    if not tables:
        if table_name:
            return f"Table '{table_name}' not found in schema '{schema}'."
        return f"No tables found in schema '{schema}'."

    blocks = [f"Database schema '{schema}' ({len(tables)} table(s)):"]
    for table in tables:
        lines = [f"Table: {table.schema}.{table.table_name}"]
        for col in table.columns:
            line = f"  {describe_column(col)}"
            if col.column_default is not None:
                line += f" DEFAULT {col.column_default}"
            lines.append(line)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
