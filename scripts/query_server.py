import asyncio
import json
import sys

from fastmcp import Client

from demo_server import mcp


async def query_server(tool_name: str, arguments: dict):
    """
    Calls one tool on the server in-process and prints its text output.

    Args:
        tool_name: Name of the tool, e.g. ``list_tables``.
        arguments: Tool arguments as a dict.
    """
    print(f"Calling tool: {tool_name}")
    print(f"Arguments: {arguments}")

    try:
        async with Client(mcp) as client:
            result = await client.call_tool(tool_name, arguments)
    except Exception as e:
        print(f"\n❌ Error calling tool: {e}")
        return 1

    content = getattr(result, "content", result)
    print("\n--- Response ---")
    for block in content:
        print(getattr(block, "text", block))
    print("----------------")
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/query_server.py <tool_name> [json_arguments]")
        print("Example: python scripts/query_server.py execute_sql_query '{\"query\": \"SELECT 1\"}'")
        sys.exit(1)

    tool = sys.argv[1]
    args = json.loads(sys.argv[2]) if len(sys.argv) > 2 else {}

    sys.exit(asyncio.run(query_server(tool, args)))
