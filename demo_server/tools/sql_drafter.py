"""
demo_server/tools/sql_drafter.py
================================

Optional Gemini-backed drafting of SQL from a natural-language prompt.

The drafter only *proposes* a statement.  Whatever it returns still goes
through the read-only guards in ``query_analyzer`` before anything runs, and
the ``natural_language_query`` tool runs it only when asked to.

Auth strategy (in priority order):
1. ``GOOGLE_API_KEY``                      → direct API key auth
2. ``GOOGLE_CLOUD_PROJECT`` + ``GOOGLE_CLOUD_LOCATION`` → Vertex AI / ADC
"""

import logging
import re
from typing import Optional

from google import genai
from google.genai import types

from ..config import Config

logger = logging.getLogger(__name__)

_SQL_FENCE = re.compile(r"```(?:sql|postgresql)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_sql(response_text: str) -> str:
    """Pull the SQL statement out of an LLM reply.

    Prefers the first fenced code block; otherwise returns the stripped text.
    Trailing semicolons are dropped.
    """
    match = _SQL_FENCE.search(response_text or "")
    sql = match.group(1) if match else (response_text or "")
    return sql.strip().rstrip(";").strip()


class SqlDrafter:
    """Asks Gemini for a single PostgreSQL statement answering a question.

    Parameters
    ----------
    config:
        Application config; supplies credentials and the model name.
    """

    def __init__(self, config: Config):
        self.config = config
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> genai.Client:
        """Return the Gemini API client, constructing it on first access."""
        if self._client is None:
            if self.config.google_api_key:
                self._client = genai.Client(api_key=self.config.google_api_key)
            else:
                self._client = genai.Client(
                    vertexai=True,
                    project=self.config.google_cloud_project,
                    location=self.config.google_cloud_location or "us-central1",
                )
        return self._client

    def draft_sql(self, prompt: str) -> str:
        """Send ``prompt`` to the model and return the extracted SQL.

        Returns an empty string if the model produced no text.  SDK errors
        propagate to the caller.
        """
        logger.info("Drafting SQL with %s", self.config.sql_draft_model)
        response = self.client.models.generate_content(
            model=self.config.sql_draft_model,
            contents=[prompt],
            # temperature=0 → deterministic SQL
            config=types.GenerateContentConfig(temperature=0.0),
        )
        sql = extract_sql(getattr(response, "text", None) or "")
        logger.debug("Drafted SQL: %.200s", sql)
        return sql
