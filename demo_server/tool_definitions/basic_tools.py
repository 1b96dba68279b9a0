"""
demo_server/tool_definitions/basic_tools.py
===========================================

The two database-free demo tools: current time and a four-function
calculator.
"""

import logging
from datetime import datetime
from typing import Literal, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

Number = Union[int, float]


def _number_text(value: Number) -> str:
    """Render ``5.0`` as ``5`` and leave other numbers alone."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def current_time_text(timezone: Optional[str] = None) -> str:
    """Format the current time, in ``timezone`` if given, else local time.

    An unknown zone name yields an explanatory message with local time
    instead of an exception.
    """
    now = datetime.now().astimezone()
    if not timezone or timezone == "local":
        return now.strftime(TIME_FORMAT)
    try:
        zone = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning("Invalid timezone provided: %s (%s)", timezone, e)
        return f"Invalid timezone: {timezone}. Current time (local): {now.strftime(TIME_FORMAT)}"
    return now.astimezone(zone).strftime(TIME_FORMAT)


def calculate_value(operation: str, a: Number, b: Number) -> Number:
    """Apply ``operation`` to ``a`` and ``b``.

    Raises
    ------
    ValueError
        When dividing by zero or for an unknown operation.
    """
    if operation == "add":
        return a + b
    if operation == "subtract":
        return a - b
    if operation == "multiply":
        return a * b
    if operation == "divide":
        if b == 0:
            raise ValueError("Cannot divide by zero")
        return a / b
    raise ValueError(f'Unknown operation "{operation}"')


async def get_current_time(timezone: Optional[str] = None) -> str:
    """Get the current date and time.

    Parameters
    ----------
    timezone:
        IANA zone name such as ``"UTC"`` or ``"Europe/Paris"``.  Defaults to
        the server's local time.
    """
    return f"Current time: {current_time_text(timezone)}"


async def calculate(
    operation: Literal["add", "subtract", "multiply", "divide"],
    a: float,
    b: float,
) -> str:
    """Perform basic mathematical calculations.

    Parameters
    ----------
    operation:
        The mathematical operation to perform.
    a:
        First number.
    b:
        Second number.
    """
    try:
        result = calculate_value(operation, a, b)
    except ValueError as e:
        return f"Error: {e}"
    return f"{_number_text(a)} {operation} {_number_text(b)} = {_number_text(result)}"
