"""
demo_server/core/server.py
==========================

Application root: builds the process's ``Toolkit`` from the environment,
hands it to the tools, and runs the MCP server.

Logging goes to stderr.  Under the stdio transport stdout carries the MCP
protocol stream, so nothing else may write to it.
"""

import logging
import sys

from ..config import Config
from ..exceptions import ConfigError
from ..tool_definitions.context import install_toolkit
from ..tool_definitions.registry import mcp
from ..tools.toolkit import Toolkit

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr at ``level`` (an unknown name means INFO)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main() -> int:
    """Run the server until the client disconnects or the process is interrupted."""
    try:
        config = Config.from_env()
    except ConfigError as e:
        configure_logging()
        logger.error("Configuration error: %s", e)
        return 1

    configure_logging(config.log_level)
    toolkit = Toolkit(config)
    install_toolkit(toolkit)
    logger.info(
        "Starting %s (transport=%s, database=%s)",
        mcp.name,
        config.transport,
        config.database.database,
    )
    try:
        mcp.run(transport=config.transport)
    except KeyboardInterrupt:
        logger.info("Shutting down server...")
    finally:
        toolkit.close()
        install_toolkit(None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
