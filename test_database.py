import unittest
import os
import shutil
import sqlite3
import tempfile
import threading
import time
from unittest.mock import MagicMock, patch

from sqlalchemy import create_engine as real_create_engine
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.pool import QueuePool

from demo_server.config import Config, DatabaseConfig
from demo_server.exceptions import ConfigError, DatabaseConnectionError, QueryExecutionError
from demo_server.tools.connection_manager import (
    ConnectionManager,
    bind_positional,
    command_tag,
    driver_error_fields,
)
from demo_server.tools.error_handler import ErrorHandler
from demo_server.tools.models import QueryResult
from demo_server.tools.query_service import QueryService, describe_column


def sqlite_factory(path):
    """Stand-in for ``create_engine`` that pools a SQLite file with the manager's pool options."""
    def factory(*args, **kwargs):
        return real_create_engine(
            f"sqlite:///{path}",
            poolclass=QueuePool,
            pool_size=kwargs["pool_size"],
            max_overflow=kwargs["max_overflow"],
            pool_timeout=kwargs["pool_timeout"],
            connect_args={"check_same_thread": False},
        )
    return factory


def database_config(**overrides):
    values = dict(host="localhost", database="demo", user="postgres", password="secret",
                  max_connections=1, pool_timeout=5)
    values.update(overrides)
    return DatabaseConfig(**values)


class TestConnectionManager(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.tmpdir, "demo.db")
        self.patcher = patch(
            "demo_server.tools.connection_manager.create_engine",
            side_effect=sqlite_factory(self.db_path),
        )
        self.mock_create_engine = self.patcher.start()
        self.manager = ConnectionManager(database_config())

    def tearDown(self):
        self.manager.close()
        self.patcher.stop()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_select_one(self):
        result = self.manager.execute_query("SELECT 1 AS test_value")
        self.assertEqual(result.rows, [{"test_value": 1}])
        self.assertEqual(result.row_count, 1)
        self.assertEqual(result.command, "SELECT")
        self.assertEqual(result.columns, ["test_value"])

    def test_positional_parameters_and_literal_colons(self):
        created = self.manager.execute_query("CREATE TABLE users (id INTEGER, name TEXT, opens TEXT)")
        self.assertEqual(created.command, "CREATE")
        self.assertEqual(created.rows, [])

        inserted = self.manager.execute_query("INSERT INTO users VALUES ($1, $2, '10:30')", [7, "Ada"])
        self.assertEqual(inserted.row_count, 1)

        result = self.manager.execute_query("SELECT name, opens FROM users WHERE id = $1", [7])
        self.assertEqual(result.rows, [{"name": "Ada", "opens": "10:30"}])

    def test_placeholders_inside_quotes_stay_text(self):
        result = self.manager.execute_query("SELECT 'costs $1' AS note")
        self.assertEqual(result.rows, [{"note": "costs $1"}])

        result = self.manager.execute_query(
            "SELECT 'it''s $2' AS note, $1 AS n, 1 AS \"a:$1\"", [5]
        )
        self.assertEqual(result.rows, [{"note": "it's $2", "n": 5, "a:$1": 1}])

    def test_failures_release_connections(self):
        for _ in range(3):
            with self.assertRaises(QueryExecutionError) as ctx:
                self.manager.execute_query("SELECT * FROM missing_table")
            self.assertIn("missing_table", str(ctx.exception))
        self.assertEqual(self.manager.pool_status()["checked_out"], 0)
        # With a pool of one, a leaked connection would make this time out
        self.assertEqual(self.manager.execute_query("SELECT 1 AS ok").rows, [{"ok": 1}])

    def test_initialize_is_idempotent(self):
        self.manager.initialize()
        self.manager.initialize()
        self.manager.execute_query("SELECT 1")
        self.assertEqual(self.mock_create_engine.call_count, 1)
        self.assertTrue(self.manager.is_connected())

    def test_failed_probe_leaves_manager_uninitialized(self):
        bad_path = os.path.join(self.tmpdir, "missing", "demo.db")
        with patch("demo_server.tools.connection_manager.create_engine", side_effect=sqlite_factory(bad_path)):
            with self.assertRaises(DatabaseConnectionError) as ctx:
                self.manager.initialize()
        self.assertTrue(str(ctx.exception).startswith("Database initialization failed: "))
        self.assertFalse(self.manager.is_connected())

        # The next call retries from scratch
        self.manager.initialize()
        self.assertTrue(self.manager.is_connected())

    def test_close_and_reinitialize(self):
        self.manager.execute_query("SELECT 1")
        self.manager.close()
        self.assertFalse(self.manager.is_connected())
        self.assertFalse(self.manager.pool_status()["connected"])
        self.manager.close()

        self.assertEqual(self.manager.execute_query("SELECT 2 AS two").rows, [{"two": 2}])
        self.assertEqual(self.mock_create_engine.call_count, 2)

    def test_context_manager(self):
        with ConnectionManager(database_config()) as manager:
            self.assertTrue(manager.is_connected())
        self.assertFalse(manager.is_connected())

    def test_pool_of_one_waits_for_a_free_connection(self):
        results = []
        held = self.manager.get_client()
        self.assertEqual(self.manager.pool_status()["checked_out"], 1)

        worker = threading.Thread(target=lambda: results.append(self.manager.execute_query("SELECT 3 AS n")))
        worker.start()
        time.sleep(0.2)
        self.assertTrue(worker.is_alive())

        held.close()
        worker.join(timeout=5)
        self.assertFalse(worker.is_alive())
        self.assertEqual(results[0].rows, [{"n": 3}])
        self.assertEqual(self.manager.pool_status()["checked_out"], 0)

    def test_connector_failure_on_a_new_connection_is_wrapped(self):
        calls = []

        def creator():
            calls.append(1)
            if len(calls) > 1:
                raise RuntimeError("connector refresh failed")
            return sqlite3.connect(self.db_path, check_same_thread=False)

        def factory(*args, **kwargs):
            return real_create_engine(
                "sqlite://",
                creator=creator,
                poolclass=QueuePool,
                pool_size=kwargs["pool_size"],
                max_overflow=0,
                pool_timeout=kwargs["pool_timeout"],
            )

        manager = ConnectionManager(database_config(max_connections=2))
        with patch("demo_server.tools.connection_manager.create_engine", side_effect=factory):
            manager.initialize()
        held = manager.get_client()
        try:
            with self.assertRaises(QueryExecutionError) as ctx:
                manager.execute_query("SELECT 1")
            with self.assertRaises(QueryExecutionError):
                manager.get_client()
        finally:
            held.close()
            manager.close()
        self.assertIn("connector refresh failed", str(ctx.exception))

    def test_pool_timeout_is_reported_as_pool_exhaustion(self):
        manager = ConnectionManager(database_config(pool_timeout=0.2))
        held = manager.get_client()
        try:
            with self.assertRaises(QueryExecutionError) as ctx:
                manager.execute_query("SELECT 1")
        finally:
            held.close()
            manager.close()
        error_type, _, _ = ErrorHandler.handle_database_error(ctx.exception)
        self.assertEqual(error_type, "PoolExhausted")


class TestSqlHelpers(unittest.TestCase):

    def test_bind_positional(self):
        statement, binds = bind_positional("SELECT $1::int, '10:30', $2", [5, "x"])
        self.assertEqual(binds, {"p1": 5, "p2": "x"})
        self.assertEqual(set(statement.compile().params), {"p1", "p2"})

    def test_bind_positional_skips_quoted_text(self):
        statement, binds = bind_positional("SELECT 'costs $1', \"col$2\", $3", [1, 2, 3])
        self.assertEqual(set(statement.compile().params), {"p3"})
        self.assertEqual(binds, {"p1": 1, "p2": 2, "p3": 3})

    def test_command_tag(self):
        self.assertEqual(command_tag("  select 1"), "SELECT")
        self.assertEqual(command_tag("WITH t AS (SELECT 1) SELECT * FROM t"), "WITH")
        self.assertEqual(command_tag(""), "")

    def test_driver_error_fields_from_protocol_dict(self):
        orig = Exception({"S": "ERROR", "C": "42P01", "M": 'relation "userz" does not exist', "H": "Check the name"})
        error = ProgrammingError("SELECT * FROM userz", {}, orig)
        message, code, detail, hint = driver_error_fields(error)
        self.assertEqual(message, 'relation "userz" does not exist')
        self.assertEqual(code, "42P01")
        self.assertIsNone(detail)
        self.assertEqual(hint, "Check the name")


class TestQueryService(unittest.TestCase):

    def setUp(self):
        self.manager = MagicMock()
        self.service = QueryService(self.manager)

    def test_get_schemas_excludes_system_schemas(self):
        self.manager.execute_query.return_value = QueryResult(rows=[
            {"schema_name": "pg_catalog"}, {"schema_name": "public"}, {"schema_name": "sales"},
        ])
        self.assertEqual(self.service.get_schemas(), ["public", "sales"])

    def test_get_table_schema_groups_columns(self):
        self.manager.execute_query.return_value = QueryResult(rows=[
            {"table_name": "users", "table_schema": "public", "column_name": "id", "data_type": "integer",
             "is_nullable": "NO", "column_default": None, "character_maximum_length": None,
             "numeric_precision": 32, "numeric_scale": 0, "ordinal_position": 1},
            {"table_name": "users", "table_schema": "public", "column_name": "name",
             "data_type": "character varying", "is_nullable": "NO", "column_default": None,
             "character_maximum_length": 50, "numeric_precision": None, "numeric_scale": None,
             "ordinal_position": 2},
        ])
        tables = self.service.get_table_schema("users")

        query, params = self.manager.execute_query.call_args[0]
        self.assertIn("AND t.table_name = $2", query)
        self.assertEqual(params, ["public", "users"])

        self.assertEqual(len(tables), 1)
        self.assertEqual(tables[0].table_name, "users")
        self.assertEqual([c.column_name for c in tables[0].columns], ["id", "name"])
        self.assertFalse(tables[0].columns[0].is_nullable)
        self.assertEqual(describe_column(tables[0].columns[1]), "name (character varying(50)) NOT NULL")

    def test_schema_context_lists_tables(self):
        self.manager.execute_query.return_value = QueryResult(rows=[{"table_name": "orders"}, {"table_name": "users"}])
        self.assertEqual(self.service.get_schema_context(), "Available tables: orders, users")

    def test_schema_context_reports_errors(self):
        self.manager.execute_query.side_effect = QueryExecutionError("Query execution failed: boom")
        self.assertEqual(self.service.get_schema_context(), "Error getting schema: Query execution failed: boom")


class TestConfig(unittest.TestCase):

    @patch.dict(os.environ, {"DB_PASSWORD": "", "DB_HOST": "db.internal"}, clear=True)
    @patch("demo_server.config.load_dotenv")
    def test_missing_password_is_a_config_error(self, _load_dotenv):
        with self.assertRaises(ConfigError) as ctx:
            Config.from_env()
        self.assertIn("Database password is required", str(ctx.exception))

    @patch.dict(os.environ, {
        "DB_PASSWORD": "secret", "DB_PORT": "6543", "DB_SSL": "false",
        "DB_MAX_CONNECTIONS": "3", "DB_IP_TYPE": "public",
    }, clear=True)
    @patch("demo_server.config.load_dotenv")
    def test_from_env(self, _load_dotenv):
        config = Config.from_env()
        self.assertEqual(config.database.host, "localhost")
        self.assertEqual(config.database.port, 6543)
        self.assertFalse(config.database.ssl)
        self.assertEqual(config.database.max_connections, 3)
        self.assertEqual(config.database.ip_type, "PUBLIC")
        self.assertIsNone(config.database.instance_connection_name)
        self.assertFalse(config.llm_enabled)


if __name__ == '__main__':
    unittest.main()
