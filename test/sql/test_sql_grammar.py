import sys

import pytest

from sqlmeta.sql import KEYWORDS, SQL_GRAMMAR, Parser, SQLParseError

RULE_SAMPLES = [
    ("WHITESPACE", " "),
    ("NEWLINE", "\n"),
    ("COMMENT", "-- demo\n"),
    ("sql", "SELECT id FROM users"),
    ("statement", "SELECT id FROM users"),
    ("compound_select", "SELECT id FROM users UNION SELECT id FROM posts"),
    ("union_clause", "UNION SELECT id FROM users"),
    ("select_stmt", "SELECT id FROM users WHERE id = 1"),
    ("insert_stmt", "INSERT INTO users VALUES (1)"),
    ("update_stmt", "UPDATE users SET name = 'John' WHERE id = 1"),
    ("delete_stmt", "DELETE FROM users WHERE id = 1"),
    ("column_list", "(id, name)"),
    ("value_rows", "(1),(2)"),
    ("value_row", "(1, 2)"),
    ("set_list", "name = 1, age = 2"),
    ("set_item", "name = 1"),
    ("distinct", "DISTINCT"),
    ("projection", "*"),
    ("projection_list", "id, name"),
    ("projection_item", "COUNT(id) AS total"),
    ("from_item", "users u"),
    ("table_factor", "users AS u"),
    ("join_clause", "JOIN posts p ON u.id = p.user_id AND p.user_id = u.id"),
    ("join_using", "USING (id, kind)"),
    ("where_clause", "WHERE id = 1"),
    ("group_by_clause", "GROUP BY id, name"),
    ("having_clause", "HAVING COUNT(id) > 1"),
    ("order_by_clause", "ORDER BY id DESC, name"),
    ("limit_clause", "LIMIT 10"),
    ("order_list", "id DESC, name"),
    ("order_item", "id DESC"),
    ("identifier_list", "id, name, age"),
    ("expr_list", "id, 1, func(2)"),
    ("expr", "id + 1"),
    ("or_expr", "id = 1 OR name = 'a'"),
    ("and_expr", "id = 1 AND name = 'a'"),
    ("not_expr", "NOT id = 1"),
    ("comparison", "id = 1"),
    ("comparison_suffix", "= 1"),
    ("in_rhs", "1, 2"),
    ("comp_op", "="),
    ("addition", "1 + 2 - 3"),
    ("multiplication", "1 * 2 / 3"),
    ("unary", "-id"),
    ("primary", "(1)"),
    ("function_call", "func(1, 2)"),
    ("function_args", "DISTINCT id"),
    ("column", "users.id"),
    ("literal", "'abc'"),
    ("boolean", "TRUE"),
    ("number", "-42"),
    ("string", "'abc'"),
    ("alias", "alias_name"),
    ("identifier", "table_name"),
    ("JOIN_TYPE", "LEFT OUTER"),
    ("SPACE", " "),
    ("RESERVED_KEYWORD", "SELECT"),
    ("alias_identifier", "users"),
] + [(f"{word}_KEY", word) for word in KEYWORDS]


@pytest.mark.parametrize("rule,text", RULE_SAMPLES)
def test_rule_accepts_sample(rule, text):
    tree = Parser(text).parse(rule)
    assert tree.root.rule == rule


def test_every_production_has_a_sample():
    sampled = {rule for rule, _ in RULE_SAMPLES}
    productions = {production.name for production in SQL_GRAMMAR}
    assert productions - sampled == {"skip"}


def test_select_with_join_and_filters():
    Parser(
        "SELECT DISTINCT u.id, name "
        "FROM users u JOIN posts p ON u.id = p.user_id "
        "WHERE p.kind = 'blog' "
        "GROUP BY u.id, name "
        "HAVING COUNT(p.id) > 1 "
        "ORDER BY u.id DESC "
        "LIMIT 10 OFFSET 20"
    ).parse("select_stmt")


@pytest.mark.parametrize(
    "rule,text",
    [
        ("insert_stmt", "INSERT INTO metrics VALUES (sum(value))"),
        ("insert_stmt", "INSERT INTO users (id, name) VALUES (1, 'John'), (2, 'Jane')"),
        ("update_stmt", "UPDATE users SET name = 'Alice', age = 42 WHERE id = 10"),
        ("delete_stmt", "DELETE FROM audit_logs WHERE created_at < '2024-01-01'"),
        ("delete_stmt", "DELETE FROM audit_logs"),
    ],
)
def test_modification_statements(rule, text):
    Parser(text).parse(rule)


@pytest.mark.parametrize(
    "text",
    [
        "SELECT * FROM users",
        "select Id from Users where ID = 1",
        "SELECT id FROM users;",
        "SELECT a FROM t UNION ALL SELECT b FROM u UNION SELECT c FROM v",
        "SELECT a.x, b.y FROM a, b WHERE a.id = b.id",
        "SELECT COUNT(*), COUNT(DISTINCT kind) FROM events",
        "SELECT NOW() FROM dual",
        "SELECT ((1 + 2) * -3) / 4 FROM t",
        "SELECT id FROM t WHERE id IN (1, 2, 3) AND name NOT IN ('a')",
        "SELECT id FROM t WHERE age BETWEEN 18 AND 65 AND age NOT BETWEEN 30 AND 40",
        "SELECT id FROM t WHERE name LIKE 'J%' OR name NOT LIKE '%x'",
        "SELECT id FROM t WHERE deleted_at IS NULL AND created_at IS NOT NULL",
        "SELECT id FROM t WHERE NOT active = TRUE OR flag <> FALSE",
        "SELECT price * 1.5 AS total FROM t ORDER BY total ASC",
        "SELECT a FROM t INNER JOIN u ON t.id = u.id",
        "SELECT a FROM t LEFT JOIN u ON t.id = u.id RIGHT OUTER JOIN v ON v.id = u.id",
        "SELECT a FROM t FULL JOIN u USING (id)",
        "SELECT a FROM t OUTER JOIN u AS x ON t.id = x.id",
        "SELECT order_id, index FROM selection",
    ],
)
def test_select_variants(text):
    assert Parser(text).parse().root.rule == "sql"


def test_comments_and_whitespace():
    text = "-- leading comment\nSELECT id -- the id\n\tFROM users -- trailing"
    tree = Parser(text).parse()

    assert "COMMENT" not in {node.rule for node in tree.walk()}
    assert [node.text for node in tree.find_all("identifier")] == ["id", "users"]


def test_keywords_are_not_identifiers():
    with pytest.raises(SQLParseError) as excinfo:
        Parser("SELECT id FROM select").parse()

    assert excinfo.value.position == 15
    assert "identifier" in excinfo.value.expected


def test_invalid_insert_syntax_is_rejected():
    with pytest.raises(SQLParseError) as excinfo:
        Parser("INSERT INTO users VALUES").parse("insert_stmt")

    assert excinfo.value.position == 24
    assert excinfo.value.expected == ("'('",)


def test_incomplete_where_expression_is_rejected():
    with pytest.raises(SQLParseError) as excinfo:
        Parser("WHERE )").parse("where_clause")

    assert excinfo.value.position == 6
    assert "identifier" in excinfo.value.expected
    assert "'('" in excinfo.value.expected


def test_invalid_statements_are_rejected():
    with pytest.raises(SQLParseError):
        Parser("INSERT INTO users VALUES").parse()
    with pytest.raises(SQLParseError):
        Parser("").parse()
    with pytest.raises(SQLParseError):
        Parser("SELECT id FROM users WHERE").parse()


def test_empty_query_expects_a_statement():
    with pytest.raises(SQLParseError) as excinfo:
        Parser("   ").parse()

    assert excinfo.value.position == 3
    assert excinfo.value.expected == ("SELECT", "INSERT", "UPDATE", "DELETE")


def test_trailing_input_is_rejected():
    with pytest.raises(SQLParseError) as excinfo:
        Parser("SELECT id FROM users u v").parse()

    assert excinfo.value.position == 23
    assert "end of input" in excinfo.value.expected
    assert "JOIN" in excinfo.value.expected


def test_error_position_on_multiple_lines():
    with pytest.raises(SQLParseError) as excinfo:
        Parser("SELECT id\nFROM users\nWHERE id = = 1").parse()

    assert (excinfo.value.line, excinfo.value.column) == (3, 12)
    assert str(excinfo.value).startswith("expected ")


def test_deeply_nested_input_is_a_syntax_error():
    text = "SELECT " + "(" * 1000 + "1" + ")" * 1000 + " FROM t"
    with pytest.raises(SQLParseError):
        Parser(text).parse()


@pytest.mark.parametrize(
    "text",
    [
        "SELECT " + "(" * 100 + "a" + ")" * 100 + " FROM t",
        "SELECT " + "f(" * 100 + "a" + ")" * 100 + " FROM t",
        "SELECT a FROM t WHERE " + "NOT (" * 100 + "a = 1" + ")" * 100,
    ],
)
def test_nested_input(text):
    limit = sys.getrecursionlimit()

    tree = Parser(text).parse()

    assert tree.root.span == (0, len(text))
    assert next(tree.find_all("column")).text == "a"
    assert sys.getrecursionlimit() == limit


def test_recursion_limit_is_restored_after_failure():
    limit = sys.getrecursionlimit()
    text = "SELECT " + "(" * 1000 + "1" + ")" * 1000 + " FROM t"

    with pytest.raises(SQLParseError) as excinfo:
        Parser(text).parse()

    assert excinfo.value.expected == ("less deeply nested input",)
    assert sys.getrecursionlimit() == limit
