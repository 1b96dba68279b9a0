"""
demo_server/tools/connection_manager.py
=======================================

PostgreSQL connection pooling and statement execution.

Connection Strategy
-------------------
The manager uses a **lazy connection** pattern: no pool exists until
``initialize()`` runs, either explicitly at startup or implicitly on the
first query.  Two routes are supported:

- **Cloud SQL connector** when ``INSTANCE_CONNECTION_NAME`` is set.  The
  connector opens authenticated pg8000 connections and SQLAlchemy pools them.
- **Direct TCP** to ``DB_HOST:DB_PORT`` otherwise, with optional TLS.

Either way the pool is a SQLAlchemy ``QueuePool`` of ``DB_MAX_CONNECTIONS``
connections with no overflow, so a caller that finds every connection busy
waits until one is returned.

Connection Lifecycle
--------------------
Each ``execute_query()`` checks out one connection, runs one statement,
commits, and returns the connection to the pool, on success and on failure.
Only ``get_client()`` hands a connection to the caller, who must close it.
"""

import logging
import re
import ssl
import threading
from typing import Any, Dict, Optional, Sequence, Tuple

from google.cloud.sql.connector import Connector, IPTypes
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool
from sqlalchemy.sql.elements import TextClause

from ..config import DatabaseConfig
from ..exceptions import DatabaseConnectionError, QueryExecutionError
from .models import FieldInfo, QueryResult

logger = logging.getLogger(__name__)

LIVENESS_QUERY = "SELECT 1"

# Quoted literals and identifiers are matched whole so placeholders inside them stay text
_SQL_TOKEN = re.compile(r"""'(?:[^']|'')*'|"[^"]*"|\$(\d+)|:""")
_COMMAND_TAG = re.compile(r"\s*([A-Za-z]+)")


def bind_positional(query: str, params: Sequence[Any]) -> Tuple[TextClause, Dict[str, Any]]:
    """Turn ``$1, $2, ...`` placeholders into SQLAlchemy named binds.

    Placeholders inside quoted literals and identifiers are left alone, so
    ``'costs $1'`` stays text.  Every literal colon is escaped so that
    ``'10:30'`` or a ``::int`` cast is never mistaken for a bind parameter.
    """
    def rewrite(match):
        if match.group(1):
            return f":p{match.group(1)}"
        return match.group(0).replace(":", r"\:")

    statement = _SQL_TOKEN.sub(rewrite, query)
    binds = {f"p{i}": value for i, value in enumerate(params, start=1)}
    return text(statement), binds


def command_tag(query: str) -> str:
    match = _COMMAND_TAG.match(query)
    return match.group(1).upper() if match else ""


def driver_error_fields(error: Exception) -> Tuple[str, Optional[str], Optional[str], Optional[str]]:
    """Extract ``(message, sqlstate, detail, hint)`` from a driver failure.

    SQLAlchemy wraps DBAPI exceptions and keeps the original on ``.orig``.
    pg8000 reports server errors as a dict of PostgreSQL protocol fields
    (``C`` code, ``M`` message, ``D`` detail, ``H`` hint); psycopg-style
    drivers expose ``pgcode`` / ``sqlstate`` attributes instead.
    """
    orig = getattr(error, "orig", None) or error
    message = str(orig)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    detail = hint = None

    args = getattr(orig, "args", ())
    if args and isinstance(args[0], dict):
        fields = args[0]
        message = fields.get("M", message)
        code = code or fields.get("C")
        detail = fields.get("D")
        hint = fields.get("H")
    return message, code, detail, hint


class ConnectionManager:
    """Owns the process's single connection pool for one PostgreSQL target.

    Parameters
    ----------
    config:
        Validated ``DatabaseConfig``.

    The application root builds exactly one of these (see ``Toolkit``) and
    hands the same instance to every collaborator.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._engine: Optional[Engine] = None
        self._connector: Optional[Connector] = None
        self._lock = threading.Lock()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def initialize(self) -> None:
        """Create the pool and verify it with a liveness probe.

        Does nothing if the pool already exists.

        Raises
        ------
        DatabaseConnectionError
            If the pool or connector cannot be built or the probe fails.  No
            partial state is kept, so calling ``initialize()`` again retries
            from scratch.
        """
        self._ensure_engine()

    def _ensure_engine(self) -> Engine:
        """Return the pool engine, building it first if needed."""
        with self._lock:
            if self._engine is not None:
                return self._engine

            engine: Optional[Engine] = None
            try:
                if self.config.instance_connection_name:
                    engine = self._create_cloud_sql_engine()
                else:
                    engine = self._create_direct_engine()
                self._test_connection(engine)
            except Exception as e:
                logger.error("Database connection failed: %s", e)
                if engine is not None:
                    engine.dispose()
                self._close_connector()
                raise DatabaseConnectionError(f"Database initialization failed: {e}") from e

            self._engine = engine
            logger.info(
                "Database connected successfully (pool_size=%d, via=%s)",
                self.config.max_connections,
                "cloud-sql-connector" if self._connector is not None else "tcp",
            )
            return engine

    def _pool_options(self) -> Dict[str, Any]:
        return {
            "poolclass": QueuePool,
            "pool_size": self.config.max_connections,
            "max_overflow": 0,
            "pool_timeout": self.config.pool_timeout,
            "pool_pre_ping": True,
        }

    def _create_direct_engine(self) -> Engine:
        url = URL.create(
            "postgresql+pg8000",
            username=self.config.user,
            password=self.config.password,
            host=self.config.host,
            port=self.config.port,
            database=self.config.database,
        )
        connect_args: Dict[str, Any] = {}
        if self.config.ssl:
            # TLS without certificate verification
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            connect_args["ssl_context"] = context

        logger.info(
            "Opening direct connection pool to %s:%s/%s",
            self.config.host, self.config.port, self.config.database,
        )
        return create_engine(url, connect_args=connect_args, **self._pool_options())

    def _create_cloud_sql_engine(self) -> Engine:
        connector = Connector(
            ip_type=IPTypes[self.config.ip_type],
            quota_project=self.config.google_cloud_project,
        )
        self._connector = connector
        instance = self.config.instance_connection_name

        def getconn():
            return connector.connect(
                instance,
                "pg8000",
                user=self.config.user,
                password=self.config.password,
                db=self.config.database,
            )

        logger.info("Opening Cloud SQL connector pool for instance: %s", instance)
        return create_engine("postgresql+pg8000://", creator=getconn, **self._pool_options())

    def _test_connection(self, engine: Engine) -> None:
        with engine.connect() as conn:
            conn.execute(text(LIVENESS_QUERY))

    def _close_connector(self) -> None:
        if self._connector is not None:
            self._connector.close()
            self._connector = None

    def close(self) -> None:
        """Dispose of the pool and the connector.  Safe to call repeatedly."""
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                logger.info("Database pool closed")
            self._close_connector()

    def is_connected(self) -> bool:
        """True if a pool exists.  Does not check that the server is reachable."""
        return self._engine is not None

    def __enter__(self) -> "ConnectionManager":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── Queries ───────────────────────────────────────────────────────────────

    def execute_query(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Run one statement on a pooled connection and return its rows.

        Parameters
        ----------
        query:
            SQL text.  Positional parameters are written ``$1``, ``$2``, ...
        params:
            Values for the positional parameters, in order.

        Returns
        -------
        QueryResult
            Rows, row count, command tag and column metadata.

        Raises
        ------
        DatabaseConnectionError
            If the pool has to be created and that fails.
        QueryExecutionError
            If the driver or connector fails the statement, or no connection frees up
            within ``pool_timeout``.  ``code`` carries the SQLSTATE when known.
        """
        engine = self._engine or self._ensure_engine()
        statement, binds = bind_positional(query, params or ())
        logger.debug("Executing SQL: %.200s", query)
        try:
            with engine.connect() as conn:
                result = conn.execute(statement, binds)
                query_result = self._to_query_result(query, result)
                conn.commit()
        except SQLAlchemyError as e:
            message, code, detail, hint = driver_error_fields(e)
            logger.error("Query failed (sqlstate=%s): %s", code, message)
            raise QueryExecutionError(
                f"Query execution failed: {message}", code=code, detail=detail, hint=hint
            ) from e
        except Exception as e:
            # Errors raised by a pool creator (Cloud SQL connector) arrive unwrapped
            logger.error("Query failed: %s", e)
            raise QueryExecutionError(f"Query execution failed: {e}") from e

        logger.info("%s returned %d rows.", query_result.command or "Statement", query_result.row_count)
        return query_result

    @staticmethod
    def _to_query_result(query: str, result: CursorResult) -> QueryResult:
        command = command_tag(query)
        if not result.returns_rows:
            return QueryResult(rows=[], row_count=max(result.rowcount, 0), command=command)

        columns = list(result.keys())
        cursor = getattr(result, "cursor", None)
        description = getattr(cursor, "description", None) or []
        type_codes = [d[1] for d in description] if len(description) == len(columns) else [None] * len(columns)
        fields = [FieldInfo(name=col, type_code=code) for col, code in zip(columns, type_codes)]

        rows = [dict(zip(columns, row)) for row in result.fetchall()]
        return QueryResult(rows=rows, row_count=len(rows), command=command, fields=fields)

    def get_client(self) -> Connection:
        """Check out a raw pooled connection for multi-statement work.

        The caller owns the connection and must ``close()`` it (or use it as
        a context manager) to return it to the pool.
        """
        engine = self._engine or self._ensure_engine()
        try:
            return engine.connect()
        except SQLAlchemyError as e:
            message, code, detail, hint = driver_error_fields(e)
            raise QueryExecutionError(
                f"Could not acquire a connection: {message}", code=code, detail=detail, hint=hint
            ) from e
        except Exception as e:
            raise QueryExecutionError(f"Could not acquire a connection: {e}") from e

    def pool_status(self) -> Dict[str, Any]:
        """Report pool counters (all zero when not connected)."""
        status = {"connected": False, "pool_size": 0, "checked_in": 0, "checked_out": 0}
        engine = self._engine
        if engine is None:
            return status
        pool = engine.pool
        status.update(
            connected=True,
            pool_size=pool.size(),
            checked_in=pool.checkedin(),
            checked_out=pool.checkedout(),
        )
        return status
