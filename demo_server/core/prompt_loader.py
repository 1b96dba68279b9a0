"""
prompt_loader.py
================

Single-responsibility module: load the natural-language-to-SQL prompt
template from disk.

The template lives in ``prompts.md`` rather than inside Python source so it
can be tuned without touching code, and prompt changes show up as Markdown
diffs.  It contains two placeholders, ``{schema_context}`` and
``{question}``, filled by ``build_sql_prompt``.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Resolve the path relative to this file so it works regardless of where
# the process is launched from.
_PROMPT_PATH = Path(__file__).parent.parent / "prompts.md"

_FALLBACK_PROMPT = (
    "You are an expert PostgreSQL developer. Using the schema below, write a "
    "single read-only SELECT statement that answers the question. Return only "
    "the SQL.\n\nSchema:\n{schema_context}\n\nQuestion: {question}\n"
)


def load_prompt() -> str:
    """Read and return the prompt template from ``prompts.md``.

    Falls back to a minimal built-in template if the file is missing.

    Returns
    -------
    str
        The prompt template with ``{schema_context}`` and ``{question}``
        placeholders.
    """
    try:
        text = _PROMPT_PATH.read_text(encoding="utf-8")
        logger.debug("Prompt template loaded from %s (%d chars)", _PROMPT_PATH, len(text))
        return text
    except FileNotFoundError:
        logger.warning("prompts.md not found at %s, using fallback prompt.", _PROMPT_PATH)
        return _FALLBACK_PROMPT


def build_sql_prompt(question: str, schema_context: str) -> str:
    """Fill the template with a question and its schema context."""
    return load_prompt().format(question=question, schema_context=schema_context.strip())
