"""
demo_server/tool_definitions
============================

This sub-package contains every **MCP tool** a client can invoke.

How tools work
--------------
1. Each domain module defines plain async functions whose type hints and
   docstrings describe the tool.
2. ``registry.py`` creates the single ``FastMCP`` server instance (``mcp``)
   and registers those functions, plus the ``server://info`` resource.
3. Tools reach the database through the ``Toolkit`` installed in
   ``context.py`` by the application root.

Tool categories
---------------
- ``basic_tools.py``: Current time and a calculator
- ``query_tools.py``: Read-only SQL execution and natural-language help
- ``discovery_tools.py``: Schema, table and column discovery
- ``resources.py``: The ``server://info`` resource
"""

from .registry import mcp  # noqa: F401
