"""
demo_server/tools/models.py
===========================

Plain data types passed between the connection manager, the query service
and the formatters.

Rows are ordinary ``dict`` objects whose key order is the column order of the
result set.  Column types are unknown until runtime, so each cell is
classified into one of a small closed set of ``ValueKind`` tags when it has
to be rendered.
"""

import datetime
import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


class ValueKind(enum.Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    TIMESTAMP = "timestamp"


def value_kind(value: Any) -> ValueKind:
    """Classify a cell value returned by the driver.

    ``bool`` is checked before ``int`` because it is a subclass of it.
    Anything that is not a number, boolean or temporal value is ``TEXT``.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, (float, Decimal)):
        return ValueKind.FLOAT
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return ValueKind.TIMESTAMP
    return ValueKind.TEXT


@dataclass
class FieldInfo:
    """Column metadata from the cursor description."""
    name: str
    type_code: Optional[Any] = None


@dataclass
class QueryResult:
    """Outcome of a single statement.

    Attributes
    ----------
    rows:
        Row dicts in result order.  Empty for statements that return no rows.
    row_count:
        Number of rows returned, or rows affected for DML.  Never negative.
    command:
        Leading keyword of the statement, upper-cased (``"SELECT"``,
        ``"INSERT"``, ...).
    fields:
        Column metadata in column order.
    """
    rows: List[Dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    command: str = ""
    fields: List[FieldInfo] = field(default_factory=list)

    @property
    def columns(self) -> List[str]:
        if self.rows:
            return list(self.rows[0].keys())
        return [f.name for f in self.fields]


@dataclass
class ColumnInfo:
    column_name: str
    data_type: str
    is_nullable: bool
    column_default: Optional[str] = None
    character_maximum_length: Optional[int] = None
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None


@dataclass
class SchemaInfo:
    """One table and its columns in ordinal order."""
    table_name: str
    schema: str
    columns: List[ColumnInfo] = field(default_factory=list)
