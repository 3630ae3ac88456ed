from concurrent.futures import ThreadPoolExecutor

import pytest

from sqlmeta.analysis import JoinInfo, MetadataAnalyzer, QueryMetadata, analyze
from sqlmeta.sql import Parser, SQLParseError


def test_aggregate_query():
    metadata = analyze("SELECT SUM(price) FROM orders")

    assert metadata.tables == {"orders"}
    assert metadata.columns == {"price"}
    assert metadata.functions == {"SUM"}
    assert metadata.aggregates == {"SUM"}
    assert metadata.joins == []


def test_table_alias():
    metadata = analyze("SELECT name FROM users u")

    assert metadata.tables == {"users"}
    assert metadata.aliases == {"u": "users"}
    assert metadata.columns == {"name"}


def test_table_alias_with_as():
    metadata = analyze("SELECT u.name FROM users AS u WHERE u.age >= 18")

    assert metadata.aliases == {"u": "users"}
    assert metadata.columns == {"u.name", "u.age"}


def test_insert_query():
    metadata = analyze("INSERT INTO users (id, name) VALUES (1, 'John'), (2, 'Jane')")

    assert metadata.tables == {"users"}
    assert metadata.columns == {"id", "name"}
    assert metadata.functions == set()


def test_insert_with_function():
    metadata = analyze("INSERT INTO logs (id, ts) VALUES (1, NOW())")

    assert metadata.tables == {"logs"}
    assert metadata.functions == {"NOW"}
    assert metadata.aggregates == set()


def test_update_query():
    metadata = analyze("UPDATE users SET name = 'John', age = 25 WHERE id = 1")

    assert metadata.tables == {"users"}
    assert metadata.columns == {"name", "age", "id"}


def test_delete_query():
    metadata = analyze("DELETE FROM users WHERE id = 1")

    assert metadata.tables == {"users"}
    assert metadata.columns == {"id"}


def test_join_query():
    metadata = analyze(
        "SELECT u.name, COUNT(o.id) FROM users u "
        "LEFT OUTER JOIN orders o ON o.user_id = u.id GROUP BY u.name"
    )

    # Joined tables are only reported by the join itself.
    assert metadata.tables == {"users"}
    assert metadata.aliases == {"u": "users", "o": "orders"}
    assert metadata.columns == {"u.name", "o.id", "o.user_id", "u.id"}
    assert metadata.aggregates == {"COUNT"}
    assert metadata.joins == [
        JoinInfo(
            join_type="LEFT OUTER",
            table="orders",
            alias="o",
            condition="o.user_id = u.id",
        )
    ]


def test_multiple_joins():
    metadata = analyze(
        "SELECT * FROM users u JOIN orders ON orders.user_id = u.id "
        "INNER JOIN payments p ON p.order_id = orders.id"
    )

    assert [(j.join_type, j.table, j.alias) for j in metadata.joins] == [
        (None, "orders", None),
        ("INNER", "payments", "p"),
    ]
    assert metadata.aliases == {"u": "users", "p": "payments"}


def test_join_using():
    metadata = analyze("SELECT id FROM a JOIN b USING (id, kind)")

    assert metadata.joins == [
        JoinInfo(join_type=None, table="b", alias=None, condition="USING (id, kind)")
    ]
    assert metadata.columns == {"id", "kind"}


def test_alias_rebinding():
    metadata = analyze("SELECT t.x FROM first t JOIN second t ON t.id = t.ref")

    assert metadata.aliases == {"t": "second"}


def test_comma_separated_tables():
    metadata = analyze("SELECT u.id FROM users u, orders o WHERE o.user_id = u.id")

    assert metadata.tables == {"users", "orders"}
    assert metadata.aliases == {"u": "users", "o": "orders"}


def test_union_query():
    metadata = analyze("SELECT id FROM users UNION ALL SELECT id FROM admins;")

    assert metadata.tables == {"users", "admins"}
    assert metadata.columns == {"id"}


def test_grouping_clauses():
    metadata = analyze(
        "SELECT dept, COUNT(*) FROM employees GROUP BY dept "
        "HAVING COUNT(*) > 5 ORDER BY dept DESC LIMIT 10"
    )

    assert metadata.tables == {"employees"}
    assert metadata.columns == {"dept"}
    assert metadata.functions == {"COUNT"}


def test_nested_functions():
    metadata = analyze("SELECT ROUND(AVG(price), 2) FROM products")

    assert metadata.functions == {"ROUND", "AVG"}
    assert metadata.aggregates == {"AVG"}
    assert metadata.columns == {"price"}


def test_aggregates_preserve_case():
    metadata = analyze("SELECT count(id), Max(age), lower(name) FROM users")

    assert metadata.functions == {"count", "Max", "lower"}
    assert metadata.aggregates == {"count", "Max"}


def test_bare_identifiers_are_tables():
    analyzer = MetadataAnalyzer(Parser("orders, o").parse("identifier_list"))
    analyzer.metadata.aliases["o"] = "customers"

    metadata = analyzer.analyze()

    assert metadata.tables == {"orders"}


def test_new_metadata_for_each_analysis():
    first = analyze("SELECT a FROM t1 x")
    second = analyze("SELECT b FROM t2")

    assert first.tables == {"t1"}
    assert second.tables == {"t2"}
    assert second.aliases == {}


def test_analysis_is_deterministic():
    query = "SELECT u.name, SUM(o.total) FROM users u JOIN orders o ON o.uid = u.id"
    tree = Parser(query).parse()

    assert MetadataAnalyzer(tree).analyze() == MetadataAnalyzer(tree).analyze()
    assert analyze(query) == analyze(query)


def test_invalid_query():
    with pytest.raises(SQLParseError):
        analyze("SELECT FROM users")


def test_concurrent_analysis():
    queries = [
        "SELECT SUM(price) FROM orders",
        "SELECT name FROM users u",
        "DELETE FROM users WHERE id = 1",
        "SELECT a FROM t JOIN s ON s.id = t.id",
    ] * 10

    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(analyze, queries))

    assert results == [analyze(query) for query in queries]
    assert all(isinstance(result, QueryMetadata) for result in results)


def test_deeply_nested_query():
    query = (
        "SELECT "
        + "ROUND(" * 100
        + "SUM(price)"
        + ")" * 100
        + " FROM orders WHERE "
        + "(" * 100
        + "o.id = 1"
        + ")" * 100
    )

    metadata = analyze(query)

    assert metadata.tables == {"orders"}
    assert metadata.columns == {"price", "o.id"}
    assert metadata.functions == {"ROUND", "SUM"}
    assert metadata.aggregates == {"SUM"}
