"""
demo_server/__init__.py
=======================

Entry point for the demo MCP server package.

The server exposes a read-only PostgreSQL database (plus two small demo
tools) over the Model Context Protocol.  Run it with::

    demo-server            # console script
    python -m demo_server  # equivalent

``mcp`` is the configured ``FastMCP`` instance, for clients that want to
talk to it in-process (``fastmcp.Client(mcp)``) or run it themselves.
"""

from .tool_definitions import mcp  # noqa: F401

__version__ = "1.0.0"

__all__ = ["mcp"]
