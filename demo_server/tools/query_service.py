"""
demo_server/tools/query_service.py
==================================

Catalog introspection built on top of ``ConnectionManager``.

All catalog queries go through ``information_schema`` with positional
parameters; schema and table names are never spliced into the SQL text.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .connection_manager import ConnectionManager
from .models import ColumnInfo, QueryResult, SchemaInfo

logger = logging.getLogger(__name__)

SYSTEM_SCHEMAS = ("information_schema", "pg_catalog", "pg_toast")

SCHEMAS_QUERY = """
    SELECT schema_name
    FROM information_schema.schemata
    WHERE schema_name NOT IN ('information_schema', 'pg_catalog', 'pg_toast')
    ORDER BY schema_name
"""

TABLES_QUERY = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = $1 AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

TABLE_SCHEMA_QUERY = """
    SELECT
        t.table_name,
        t.table_schema,
        c.column_name,
        c.data_type,
        c.is_nullable,
        c.column_default,
        c.character_maximum_length,
        c.numeric_precision,
        c.numeric_scale,
        c.ordinal_position
    FROM information_schema.tables t
    JOIN information_schema.columns c
        ON t.table_name = c.table_name AND t.table_schema = c.table_schema
    WHERE t.table_schema = $1 AND t.table_type = 'BASE TABLE'
"""


def group_columns(rows: List[Dict[str, Any]]) -> List[SchemaInfo]:
    """Group flat catalog rows into one ``SchemaInfo`` per table.

    Tables appear in the order they are first seen; columns keep row order.
    """
    tables: Dict[str, SchemaInfo] = {}
    for row in rows:
        name = row["table_name"]
        if name not in tables:
            tables[name] = SchemaInfo(table_name=name, schema=row["table_schema"])
        tables[name].columns.append(
            ColumnInfo(
                column_name=row["column_name"],
                data_type=row["data_type"],
                is_nullable=row["is_nullable"] == "YES",
                column_default=row.get("column_default"),
                character_maximum_length=row.get("character_maximum_length"),
                numeric_precision=row.get("numeric_precision"),
                numeric_scale=row.get("numeric_scale"),
            )
        )
    return list(tables.values())


def describe_column(column: ColumnInfo) -> str:
    """One-line column summary, e.g. ``name (character varying(50)) NOT NULL``."""
    length = f"({column.character_maximum_length})" if column.character_maximum_length else ""
    nullability = "NULL" if column.is_nullable else "NOT NULL"
    return f"{column.column_name} ({column.data_type}{length}) {nullability}"


class QueryService:
    """Schema discovery and raw query pass-through.

    Parameters
    ----------
    manager:
        The shared ``ConnectionManager``.
    """

    def __init__(self, manager: ConnectionManager):
        self.manager = manager

    def get_schemas(self) -> List[str]:
        """Return user schema names in alphabetical order."""
        result = self.manager.execute_query(SCHEMAS_QUERY)
        return [
            row["schema_name"]
            for row in result.rows
            if row["schema_name"] not in SYSTEM_SCHEMAS
        ]

    def get_tables(self, schema: str = "public") -> List[str]:
        """Return base-table names in ``schema`` in alphabetical order."""
        result = self.manager.execute_query(TABLES_QUERY, [schema])
        return [row["table_name"] for row in result.rows]

    def get_table_schema(self, table_name: Optional[str] = None, schema: str = "public") -> List[SchemaInfo]:
        """Return column metadata for one table, or every table in ``schema``.

        Parameters
        ----------
        table_name:
            Restrict the result to this table.  ``None`` returns all tables.
        schema:
            Schema to inspect.

        Returns
        -------
        List[SchemaInfo]
            One entry per table; columns in ordinal position order.
        """
        query = TABLE_SCHEMA_QUERY
        params: List[Any] = [schema]
        if table_name:
            query += "    AND t.table_name = $2\n"
            params.append(table_name)
        query += "    ORDER BY t.table_name, c.ordinal_position\n"

        result = self.manager.execute_query(query, params)
        return group_columns(result.rows)

    def execute_raw_query(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Run ``query`` unchanged.  Safety checks belong to the caller."""
        return self.manager.execute_query(query, params)

    def get_schema_context(self, suggested_tables: Optional[List[str]] = None) -> str:
        """Build schema text for an LLM prompt.

        Lists the columns of each suggested table, or just the table names of
        the ``public`` schema when no tables are suggested.  This feeds
        prompt text, so failures come back as an error string instead of an
        exception.
        """
        try:
            lines: List[str] = []
            if suggested_tables:
                for table_name in suggested_tables:
                    tables = self.get_table_schema(table_name)
                    if not tables:
                        continue
                    table = tables[0]
                    lines.append(f"\nTable: {table.table_name}")
                    lines.extend(f"  {describe_column(col)}" for col in table.columns)
                    lines.append("")
                context = "\n".join(lines)
            else:
                names = self.get_tables()
                context = "Available tables: " + ", ".join(names) if names else ""
            return context or "No schema information available."
        except Exception as e:
            logger.warning("Could not build schema context: %s", e)
            return f"Error getting schema: {e}"
