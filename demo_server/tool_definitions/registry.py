"""
demo_server/tool_definitions/registry.py
========================================

Single ``FastMCP`` server instance and the registration of every tool and
resource on it.

Tools are registered with ``mcp.tool()(fn)`` rather than as decorators so
the modules keep exporting the plain async functions; tests call those
directly.  FastMCP builds each tool's JSON Schema from the function's type
hints and its description from the docstring.
"""

from fastmcp import FastMCP

from . import basic_tools, discovery_tools, query_tools
from .resources import SERVER_NAME, server_info

INSTRUCTIONS = (
    "Read-only access to a PostgreSQL database. Start with list_schemas and "
    "list_tables, inspect columns with get_database_schema, then query with "
    "execute_sql_query. Only single SELECT statements are accepted."
)

mcp = FastMCP(SERVER_NAME, instructions=INSTRUCTIONS)

for _tool in (
    basic_tools.get_current_time,
    basic_tools.calculate,
    query_tools.execute_sql_query,
    discovery_tools.get_database_schema,
    discovery_tools.list_schemas,
    discovery_tools.list_tables,
    query_tools.natural_language_query,
):
    mcp.tool()(_tool)

mcp.resource(
    "server://info",
    name="server_info",
    description="Server name, version, tools and connection pool status",
    mime_type="text/plain",
)(server_info)
