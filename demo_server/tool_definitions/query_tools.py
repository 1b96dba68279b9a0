"""
demo_server/tool_definitions/query_tools.py
===========================================

Tools that run SQL, or help a client write it.

- ``execute_sql_query``: runs caller-supplied SQL after the read-only
  guards.
- ``natural_language_query``: builds an NL→SQL prompt from live schema
  context plus keyword hints.  When Gemini is configured it also drafts
  the SQL and can run it.

Guardrails
----------
Every statement, typed or drafted, goes through
``query_analyzer.check_read_only`` first: a single statement that starts
with SELECT/WITH and contains no mutating keyword.  Rejections never touch
the database.  These are lexical checks; the database role should still be
read-only.
"""

import asyncio
import logging
from typing import List, Literal, Optional, Union

from ..core.prompt_loader import build_sql_prompt
from ..tools.formatters import format_result
from ..tools.query_analyzer import check_read_only, get_query_suggestions
from .context import get_toolkit

logger = logging.getLogger(__name__)

OutputFormat = Literal["table", "json", "csv"]
ParamValue = Union[str, int, float, bool, None]


async def _run_query(toolkit, query: str, params: Optional[List[ParamValue]], format: str) -> str:
    """Execute an already-vetted statement and render the outcome as text."""
    try:
        result = await asyncio.to_thread(toolkit.queries.execute_raw_query, query, params or [])
    except Exception as e:
        error_type, message, suggestions = toolkit.error_handler.handle_database_error(e)
        response = toolkit.error_handler.format_error_response(e, error_type, message, suggestions, query)
        if error_type == "TableNotFound":
            tables = await asyncio.to_thread(_public_tables, toolkit)
            response += toolkit.error_handler.suggest_fixes(error_type, {"available_tables": tables})
        return response
    return (
        f"Query executed successfully. {result.row_count} row(s) returned.\n\n"
        f"{format_result(result, format)}"
    )


async def execute_sql_query(
    query: str,
    format: OutputFormat = "table",
    params: Optional[List[ParamValue]] = None,
) -> str:
    """Execute a read-only SQL query against the PostgreSQL database.

    Only a single SELECT (or WITH ... SELECT) statement is accepted.

    Parameters
    ----------
    query:
        SQL to run.  Use ``$1``, ``$2``, ... for parameters.
    format:
        ``table`` (default), ``json`` or ``csv``.
    params:
        Values for the positional parameters, in order.

    Returns
    -------
    str
        A success header followed by the formatted rows, or an error message.
    """
    rejection = check_read_only(query)
    if rejection:
        logger.warning("Rejected query: %.200s", query)
        return rejection
    return await _run_query(get_toolkit(), query, params, format)


def _public_tables(toolkit) -> List[str]:
    try:
        return toolkit.queries.get_tables()
    except Exception as e:
        logger.warning("Could not list tables: %s", e)
        return []


def _mentioned_tables(toolkit, question_lower: str) -> List[str]:
    """Tables of the public schema whose names occur in the question."""
    return [t for t in _public_tables(toolkit) if t.lower() in question_lower]


async def natural_language_query(
    question: str,
    format: OutputFormat = "table",
    execute: bool = False,
) -> str:
    """Analyse a natural-language question about the database.

    Returns the relevant schema context, SQL hints, and a ready-to-use
    prompt for generating the SQL.  When the server has Gemini credentials
    it also drafts the SQL; with ``execute=true`` a drafted statement that
    passes the read-only guards is run and its rows are included.

    Parameters
    ----------
    question:
        The question, in plain language.
    format:
        Output format for rows if the drafted SQL is executed.
    execute:
        Run the drafted SQL.  Ignored when no SQL can be drafted.
    """
    toolkit = get_toolkit()
    question_lower = question.lower()

    tables = await asyncio.to_thread(_mentioned_tables, toolkit, question_lower)
    schema_context = await asyncio.to_thread(toolkit.queries.get_schema_context, tables)
    suggestions = get_query_suggestions(question_lower)
    prompt = build_sql_prompt(question, schema_context)

    sections = [
        "Natural Language Query Analysis\n"
        "===============================\n"
        f"Question: {question}",
        f"Schema Context:\n{schema_context.strip()}",
    ]
    if suggestions:
        sections.append("Suggestions:\n" + "\n".join(suggestions))

    if toolkit.drafter is None:
        sections.append(f"Prompt for SQL generation:\n{prompt}")
        sections.append(
            "Generate the SQL from the prompt above, then run it with execute_sql_query."
        )
        return "\n\n".join(sections)

    try:
        sql = await asyncio.to_thread(toolkit.drafter.draft_sql, prompt)
    except Exception as e:
        logger.error("SQL drafting failed: %s", e)
        sections.append(f"SQL drafting failed: {e}")
        sections.append(f"Prompt for SQL generation:\n{prompt}")
        return "\n\n".join(sections)

    if not sql:
        sections.append("The model did not return a SQL statement.")
        return "\n\n".join(sections)

    sections.append(f"Drafted SQL:\n{sql}")
    rejection = check_read_only(sql)
    if rejection:
        sections.append(rejection)
    elif execute:
        sections.append(await _run_query(toolkit, sql, None, format))
    else:
        sections.append("Review the SQL, then run it with execute_sql_query or call again with execute=true.")
    return "\n\n".join(sections)
