"""
demo_server/tool_definitions/context.py
=======================================

Hands the application's ``Toolkit`` to the tool functions.

The application root (``core/server.py``) builds the one ``Toolkit`` for the
process and installs it here before the server starts; tests install a mock.
If a tool runs before anything was installed (for example under
``fastmcp dev``), a toolkit is built from the environment on first use.
"""

import logging
from typing import Optional

from ..config import Config
from ..tools.toolkit import Toolkit

logger = logging.getLogger(__name__)

_toolkit: Optional[Toolkit] = None


def install_toolkit(toolkit: Optional[Toolkit]) -> None:
    """Install (or with ``None``, remove) the toolkit used by every tool."""
    global _toolkit
    _toolkit = toolkit


def get_toolkit() -> Toolkit:
    """Return the installed Toolkit, building one from the environment if needed."""
    global _toolkit
    if _toolkit is None:
        logger.info("No toolkit installed, building one from the environment")
        _toolkit = Toolkit(Config.from_env())
    return _toolkit
