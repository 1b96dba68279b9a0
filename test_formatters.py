import unittest
import datetime
import json
from decimal import Decimal

from demo_server.tools.formatters import NO_ROWS_MESSAGE, format_result
from demo_server.tools.models import QueryResult, ValueKind, value_kind
from demo_server.tools.query_analyzer import (
    DANGEROUS_KEYWORDS,
    MULTIPLE_STATEMENTS_MESSAGE,
    READ_ONLY_MESSAGE,
    check_read_only,
    get_query_suggestions,
    has_multiple_statements,
    is_safe_query,
    is_select_query,
)
from demo_server.tools.sql_drafter import extract_sql


class TestFormatters(unittest.TestCase):

    def test_no_rows_in_every_mode(self):
        for mode in ("table", "json", "csv", "TABLE", "xml"):
            self.assertEqual(format_result(QueryResult(), mode), NO_ROWS_MESSAGE)

    def test_json(self):
        result = QueryResult(rows=[{
            "id": 1,
            "price": Decimal("9.50"),
            "created": datetime.datetime(2024, 1, 2, 3, 4, 5),
            "note": None,
        }])
        data = json.loads(format_result(result, "json"))
        self.assertEqual(data, [{"id": 1, "price": 9.5, "created": "2024-01-02T03:04:05", "note": None}])

    def test_csv_quotes_only_values_with_commas(self):
        result = QueryResult(rows=[
            {"name": "Acme, Inc", "city": "Oslo", "active": True},
            {"name": "Globex", "city": None, "active": False},
        ])
        self.assertEqual(
            format_result(result, "csv"),
            'name,city,active\n"Acme, Inc",Oslo,true\nGlobex,,false',
        )

    def test_table(self):
        result = QueryResult(rows=[{"test_value": 1}])
        lines = format_result(result, "table").split("\n")
        self.assertEqual(len(lines), 3)
        self.assertEqual(lines[0], "test_value")
        self.assertEqual(lines[1], "-" * 10)
        self.assertEqual(lines[2], "1".ljust(10))

    def test_table_pads_to_widest_cell(self):
        result = QueryResult(rows=[{"a": "long value", "b": 2}, {"a": "x", "b": 30}])
        self.assertEqual(
            format_result(result, "Table"),
            "a          | b \n"
            "-----------|---\n"
            "long value | 2 \n"
            "x          | 30",
        )

    def test_unknown_mode_falls_back_to_table(self):
        result = QueryResult(rows=[{"n": 1}])
        self.assertEqual(format_result(result, "yaml"), format_result(result, "table"))

    def test_value_kind(self):
        self.assertIs(value_kind(None), ValueKind.NULL)
        self.assertIs(value_kind(True), ValueKind.BOOLEAN)
        self.assertIs(value_kind(3), ValueKind.INTEGER)
        self.assertIs(value_kind(Decimal("1.5")), ValueKind.FLOAT)
        self.assertIs(value_kind(datetime.date(2024, 1, 1)), ValueKind.TIMESTAMP)
        self.assertIs(value_kind("text"), ValueKind.TEXT)


class TestQueryAnalyzer(unittest.TestCase):

    def test_select_detection(self):
        self.assertTrue(is_select_query("  select * from users"))
        self.assertTrue(is_select_query("WITH t AS (SELECT 1) SELECT * FROM t"))
        self.assertFalse(is_select_query("EXPLAIN SELECT 1"))

    def test_safety_tokens(self):
        self.assertTrue(is_safe_query("SELECT * FROM users"))
        self.assertTrue(is_safe_query("SELECT created_at, updated_by FROM audit"))
        self.assertFalse(is_safe_query("drop table users"))
        self.assertFalse(is_safe_query("SELECT 1 FROM t WHERE x IN (SELECT 1)\n\tDELETE FROM t"))

    def test_every_mutating_keyword_is_flagged(self):
        for keyword in DANGEROUS_KEYWORDS:
            with self.subTest(keyword=keyword):
                self.assertFalse(is_safe_query(f"{keyword} table users"))
                self.assertFalse(is_safe_query(f"{keyword.upper()}   TABLE users"))
                self.assertFalse(is_safe_query(f"SELECT 1 FROM t WHERE x = 1 {keyword} y"))
                self.assertFalse(is_safe_query(f"SELECT 1\n{keyword}\tx"))

    def test_keywords_inside_longer_words_are_not_flagged(self):
        self.assertTrue(is_safe_query(
            "SELECT inserted_at, updated_by, created_at, deleted, dropped, altered, truncated_name FROM audit"
        ))
        self.assertTrue(is_safe_query("select recreate_count, undelete from log"))

    def test_multiple_statements(self):
        self.assertFalse(has_multiple_statements("SELECT 1;"))
        self.assertFalse(has_multiple_statements("SELECT 1;   ;"))
        self.assertTrue(has_multiple_statements("SELECT 1; SELECT 2"))

    def test_check_read_only(self):
        self.assertIsNone(check_read_only("SELECT * FROM users"))
        self.assertEqual(check_read_only("UPDATE users SET name = 'x'"), READ_ONLY_MESSAGE)
        self.assertEqual(check_read_only("SELECT * FROM t;DROP TABLE x"), MULTIPLE_STATEMENTS_MESSAGE)

    def test_suggestions(self):
        hints = get_query_suggestions("how many orders per customer, grouped by month?")
        self.assertEqual(len(hints), 2)
        self.assertIn("COUNT", hints[0])
        self.assertIn("GROUP BY", hints[1])
        self.assertEqual(get_query_suggestions("list the products"), [])


class TestExtractSql(unittest.TestCase):

    def test_fenced_block(self):
        text = "Here you go:\n```sql\nSELECT COUNT(*) FROM users;\n```\nDone."
        self.assertEqual(extract_sql(text), "SELECT COUNT(*) FROM users")

    def test_bare_sql(self):
        self.assertEqual(extract_sql("  SELECT 1;  "), "SELECT 1")


if __name__ == '__main__':
    unittest.main()
