"""
demo_server/tools/query_analyzer.py
===================================

Lexical checks run on SQL text before it reaches the database, plus the
keyword hints shown for natural-language questions.

These are heuristics, not a parser.  Keywords hidden in comments or string
literals, or glued to punctuation (``SELECT*FROM t;DROP TABLE x``), are not
seen by ``is_safe_query``; the multiple-statement guard catches the latter
case at the tool layer.
"""

import re
from typing import List, Optional

DANGEROUS_KEYWORDS = ("drop", "delete", "update", "insert", "alter", "create", "truncate")

MULTIPLE_STATEMENTS_MESSAGE = "Error: Multiple SQL statements are not allowed."
READ_ONLY_MESSAGE = "Error: Only SELECT queries are allowed for safety reasons."

# (trigger words, hint)
_SUGGESTIONS = (
    (("count", "how many"),
     "💡 This looks like a COUNT query. Consider using: SELECT COUNT(*) FROM table_name WHERE condition"),
    (("average", "avg"),
     "💡 This looks like an AVERAGE query. Consider using: SELECT AVG(column_name) FROM table_name WHERE condition"),
    (("sum", "total"),
     "💡 This looks like a SUM query. Consider using: SELECT SUM(column_name) FROM table_name WHERE condition"),
    (("group", "by"),
     "💡 Consider using GROUP BY for aggregated results: SELECT column, COUNT(*) FROM table_name GROUP BY column"),
    (("join", "related"),
     "💡 For joining tables: SELECT * FROM table1 t1 JOIN table2 t2 ON t1.id = t2.foreign_id"),
)


def is_select_query(sql: str) -> bool:
    """True when the statement starts with ``SELECT`` or ``WITH``."""
    trimmed = sql.strip().lower()
    return trimmed.startswith("select") or trimmed.startswith("with")


def is_safe_query(sql: str) -> bool:
    """False when a mutating keyword appears as a space-bounded token.

    Whitespace runs are collapsed to single spaces and the text lower-cased
    first.  A keyword matches when surrounded by spaces or when it opens the
    statement (``"drop table x"``).
    """
    normalized = re.sub(r"\s+", " ", sql.lower())
    for keyword in DANGEROUS_KEYWORDS:
        if f" {keyword} " in normalized or normalized.startswith(f"{keyword} "):
            return False
    return True


def has_multiple_statements(sql: str) -> bool:
    """True when splitting on ``;`` yields more than one non-blank segment."""
    if ";" not in sql:
        return False
    segments = [s for s in sql.split(";") if s.strip()]
    return len(segments) > 1


def check_read_only(sql: str) -> Optional[str]:
    """Return the rejection message for ``sql``, or ``None`` if it may run."""
    if has_multiple_statements(sql):
        return MULTIPLE_STATEMENTS_MESSAGE
    if not is_select_query(sql) or not is_safe_query(sql):
        return READ_ONLY_MESSAGE
    return None


def get_query_suggestions(question_lower: str) -> List[str]:
    """Return static SQL hints triggered by words in a lower-cased question."""
    return [
        hint
        for triggers, hint in _SUGGESTIONS
        if any(word in question_lower for word in triggers)
    ]
