"""
demo_server/tools/formatters.py
===============================

Shared output formatting utilities.

Every tool that returns rows renders them through ``format_result`` so the
three output modes (``table``, ``json``, ``csv``) look the same everywhere.
Column order is always the key order of the first row.
"""

import json
from decimal import Decimal
from typing import Any, List

from .models import QueryResult, ValueKind, value_kind

NO_ROWS_MESSAGE = "No rows returned."
OUTPUT_FORMATS = ("table", "json", "csv")


def _cell_text(value: Any) -> str:
    """Stringify one cell by its kind.  ``None`` becomes ``""``."""
    kind = value_kind(value)
    if kind is ValueKind.NULL:
        return ""
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind is ValueKind.TIMESTAMP:
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "\\x" + bytes(value).hex()
    return str(value)


def _json_default(value: Any) -> Any:
    """``json.dumps`` fallback for values the encoder cannot handle natively."""
    if isinstance(value, Decimal):
        return float(value) if value.is_finite() else str(value)
    if value_kind(value) is ValueKind.TIMESTAMP:
        return value.isoformat()
    return _cell_text(value)


def format_as_json(result: QueryResult) -> str:
    """Pretty-print the rows as a JSON array of objects (2-space indent)."""
    return json.dumps(result.rows, indent=2, default=_json_default, ensure_ascii=False)


def format_as_csv(result: QueryResult) -> str:
    """Render the rows as CSV.

    Only string values containing a comma are quoted.  Embedded double
    quotes are not escaped.
    """
    columns = list(result.rows[0].keys())
    lines = [",".join(columns)]
    for row in result.rows:
        values = []
        for col in columns:
            val = row.get(col)
            text = _cell_text(val)
            if isinstance(val, str) and "," in val:
                text = f'"{text}"'
            values.append(text)
        lines.append(",".join(values))
    return "\n".join(lines)


def format_as_table(result: QueryResult) -> str:
    """Render the rows as a padded plain-text table.

    Example
    -------
    >>> print(format_as_table(QueryResult(rows=[{"name": "Acme", "revenue": 1250000}])))
    name | revenue
    -----|--------
    Acme | 1250000
    """
    columns = list(result.rows[0].keys())
    cells: List[List[str]] = [
        [_cell_text(row.get(col)) for col in columns] for row in result.rows
    ]
    widths = [
        max([len(col)] + [len(line[i]) for line in cells])
        for i, col in enumerate(columns)
    ]

    header = " | ".join(col.ljust(widths[i]) for i, col in enumerate(columns))
    separator = "-|-".join("-" * w for w in widths)
    body = [
        " | ".join(text.ljust(widths[i]) for i, text in enumerate(line))
        for line in cells
    ]
    return "\n".join([header, separator] + body)


def format_result(result: QueryResult, mode: str = "table") -> str:
    """Format a query result as ``table``, ``json`` or ``csv`` text.

    Parameters
    ----------
    result:
        The ``QueryResult`` to render.
    mode:
        Output mode, case-insensitive.  Unknown modes render as a table.

    Returns
    -------
    str
        The rendered rows, or ``"No rows returned."`` when there are none.
    """
    if not result.rows:
        return NO_ROWS_MESSAGE

    mode = (mode or "table").lower()
    if mode == "json":
        return format_as_json(result)
    if mode == "csv":
        return format_as_csv(result)
    return format_as_table(result)
