"""The grammar of the supported SQL dialect.

The grammar is expressed through the primitives of :mod:`sqlmeta.peg`
and recognizes SELECT, INSERT, UPDATE and DELETE statements,
SELECT statements can be combined through UNION.

In PEG notation the main productions look like::

    sql             = statement union_clause* ";"?
    statement       = select_stmt / insert_stmt / update_stmt / delete_stmt
    select_stmt     = SELECT distinct? projection FROM from_item ("," from_item)*
                      join_clause* where_clause? group_by_clause? having_clause?
                      order_by_clause? limit_clause?
    insert_stmt     = INSERT INTO identifier column_list? VALUES value_rows
    update_stmt     = UPDATE identifier SET set_list where_clause?
    delete_stmt     = DELETE FROM identifier where_clause?
    table_factor    = identifier (AS? alias_identifier)?
    join_clause     = JOIN_TYPE? JOIN table_factor (ON expr / join_using)

Expressions are organized by precedence, each level
is a production that repeats the higher precedence one::

    expr            = or_expr
    or_expr         = and_expr (OR and_expr)*
    and_expr        = not_expr (AND not_expr)*
    not_expr        = NOT? comparison
    comparison      = addition comparison_suffix?
    addition        = multiplication (("+" / "-") multiplication)*
    multiplication  = unary (("*" / "/") unary)*
    unary           = "-"? primary
    primary         = function_call / column / literal / "(" expr ")"

Keywords are case insensitive and can't be used as identifiers.
Whitespace and ``--`` comments can appear between any two tokens.

The whole grammar can be printed with ``print(SQL_GRAMMAR)``.
"""

from ..peg.expressions import (
    Choice,
    Keyword,
    Literal,
    NotAhead,
    OneOrMore,
    Optional,
    Pattern,
    Ref,
    Sequence,
    ZeroOrMore,
)
from ..peg.grammar import Grammar, Production

KEYWORDS = (
    "SELECT",
    "FROM",
    "WHERE",
    "GROUP",
    "BY",
    "HAVING",
    "ORDER",
    "LIMIT",
    "OFFSET",
    "AS",
    "JOIN",
    "INNER",
    "LEFT",
    "RIGHT",
    "FULL",
    "OUTER",
    "USING",
    "ON",
    "DISTINCT",
    "ASC",
    "DESC",
    "AND",
    "OR",
    "NOT",
    "LIKE",
    "TRUE",
    "FALSE",
    "NULL",
    "INSERT",
    "INTO",
    "VALUES",
    "UPDATE",
    "SET",
    "DELETE",
    "UNION",
    "ALL",
    "BETWEEN",
    "IN",
    "IS",
)

IDENTIFIER_PATTERN = r"[A-Za-z_][A-Za-z0-9_]*"


def kw(word: str) -> Ref:
    """Reference the production of a keyword."""
    return Ref(f"{word}_KEY")


def delimited(name: str, separator: str = ",") -> Sequence:
    """A list of ``name`` productions, like ``name ("," name)*``"""
    return Sequence(Ref(name), ZeroOrMore(Sequence(Literal(separator), Ref(name))))


def parenthesized(name: str) -> Sequence:
    return Sequence(Literal("("), Ref(name), Literal(")"))


def name_token(name: str, label: str) -> Production:
    """A token matching a name that is not a reserved keyword."""
    return Production(
        name,
        Sequence(NotAhead(Ref("RESERVED_KEYWORD")), Pattern(IDENTIFIER_PATTERN)),
        token=True,
        label=label,
    )


LEXICAL_PRODUCTIONS = [
    Production("SPACE", Choice(Literal(" "), Literal("\t")), token=True),
    Production("NEWLINE", Pattern(r"\r\n|\n|\r"), token=True),
    Production("WHITESPACE", Choice(Ref("SPACE"), Ref("NEWLINE")), token=True),
    Production("COMMENT", Pattern(r"--[^\r\n]*(\r\n|\n|\r)?"), token=True),
    Production("skip", ZeroOrMore(Choice(Ref("WHITESPACE"), Ref("COMMENT"))), silent=True),
    *(
        Production(f"{word}_KEY", Keyword(word), token=True, label=word)
        for word in KEYWORDS
    ),
    Production(
        "RESERVED_KEYWORD", Choice(*(kw(word) for word in KEYWORDS)), token=True
    ),
    name_token("identifier", "identifier"),
    name_token("alias", "alias"),
    name_token("alias_identifier", "alias"),
    Production("number", Pattern(r"-?[0-9]+(\.[0-9]+)?"), token=True),
    Production("string", Pattern(r"'[^']*'"), token=True),
    Production("boolean", Choice(kw("TRUE"), kw("FALSE")), token=True),
    Production(
        "comp_op",
        Choice(*(Literal(op) for op in ("<=", ">=", "<>", "!=", "=", "<", ">"))),
        token=True,
        label="comparison operator",
    ),
]

STATEMENT_PRODUCTIONS = [
    Production(
        "sql",
        Sequence(
            Ref("statement"), ZeroOrMore(Ref("union_clause")), Optional(Literal(";"))
        ),
    ),
    Production(
        "compound_select", Sequence(Ref("select_stmt"), OneOrMore(Ref("union_clause")))
    ),
    Production(
        "union_clause", Sequence(kw("UNION"), Optional(kw("ALL")), Ref("select_stmt"))
    ),
    Production(
        "statement",
        Choice(
            Ref("select_stmt"),
            Ref("insert_stmt"),
            Ref("update_stmt"),
            Ref("delete_stmt"),
        ),
    ),
    Production(
        "select_stmt",
        Sequence(
            kw("SELECT"),
            Optional(Ref("distinct")),
            Ref("projection"),
            kw("FROM"),
            delimited("from_item"),
            ZeroOrMore(Ref("join_clause")),
            Optional(Ref("where_clause")),
            Optional(Ref("group_by_clause")),
            Optional(Ref("having_clause")),
            Optional(Ref("order_by_clause")),
            Optional(Ref("limit_clause")),
        ),
    ),
    Production(
        "insert_stmt",
        Sequence(
            kw("INSERT"),
            kw("INTO"),
            Ref("identifier"),
            Optional(Ref("column_list")),
            kw("VALUES"),
            Ref("value_rows"),
        ),
    ),
    Production(
        "update_stmt",
        Sequence(
            kw("UPDATE"),
            Ref("identifier"),
            kw("SET"),
            Ref("set_list"),
            Optional(Ref("where_clause")),
        ),
    ),
    Production(
        "delete_stmt",
        Sequence(
            kw("DELETE"), kw("FROM"), Ref("identifier"), Optional(Ref("where_clause"))
        ),
    ),
    Production("column_list", parenthesized("identifier_list")),
    Production("value_rows", delimited("value_row")),
    Production("value_row", parenthesized("expr_list")),
    Production("set_list", delimited("set_item")),
    Production("set_item", Sequence(Ref("identifier"), Literal("="), Ref("expr"))),
]

CLAUSE_PRODUCTIONS = [
    Production("distinct", kw("DISTINCT")),
    Production("projection", Choice(Literal("*"), Ref("projection_list"))),
    Production("projection_list", delimited("projection_item")),
    Production(
        "projection_item",
        Sequence(Ref("expr"), Optional(Sequence(Optional(kw("AS")), Ref("alias")))),
    ),
    Production("from_item", Ref("table_factor")),
    Production(
        "table_factor",
        Sequence(
            Ref("identifier"),
            Optional(Sequence(Optional(kw("AS")), Ref("alias_identifier"))),
        ),
    ),
    Production(
        "join_clause",
        Sequence(
            Optional(Ref("JOIN_TYPE")),
            kw("JOIN"),
            Ref("table_factor"),
            Choice(Sequence(kw("ON"), Ref("expr")), Ref("join_using")),
        ),
    ),
    Production(
        "join_using", Sequence(kw("USING"), parenthesized("identifier_list"))
    ),
    Production(
        "JOIN_TYPE",
        Choice(
            Sequence(Choice(kw("LEFT"), kw("RIGHT"), kw("FULL")), Optional(kw("OUTER"))),
            kw("INNER"),
            kw("OUTER"),
        ),
    ),
    Production("where_clause", Sequence(kw("WHERE"), Ref("expr"))),
    Production("group_by_clause", Sequence(kw("GROUP"), kw("BY"), Ref("expr_list"))),
    Production("having_clause", Sequence(kw("HAVING"), Ref("expr"))),
    Production("order_by_clause", Sequence(kw("ORDER"), kw("BY"), Ref("order_list"))),
    Production("order_list", delimited("order_item")),
    Production(
        "order_item", Sequence(Ref("expr"), Optional(Choice(kw("ASC"), kw("DESC"))))
    ),
    Production(
        "limit_clause",
        Sequence(
            kw("LIMIT"), Ref("number"), Optional(Sequence(kw("OFFSET"), Ref("number")))
        ),
    ),
    Production("identifier_list", delimited("identifier")),
    Production("expr_list", delimited("expr")),
]

EXPRESSION_PRODUCTIONS = [
    Production("expr", Ref("or_expr")),
    Production(
        "or_expr",
        Sequence(Ref("and_expr"), ZeroOrMore(Sequence(kw("OR"), Ref("and_expr")))),
    ),
    Production(
        "and_expr",
        Sequence(Ref("not_expr"), ZeroOrMore(Sequence(kw("AND"), Ref("not_expr")))),
    ),
    Production("not_expr", Sequence(Optional(kw("NOT")), Ref("comparison"))),
    Production(
        "comparison", Sequence(Ref("addition"), Optional(Ref("comparison_suffix")))
    ),
    Production(
        "comparison_suffix",
        Choice(
            Sequence(Ref("comp_op"), Ref("addition")),
            Sequence(
                Optional(kw("NOT")),
                kw("BETWEEN"),
                Ref("addition"),
                kw("AND"),
                Ref("addition"),
            ),
            Sequence(Optional(kw("NOT")), kw("IN"), parenthesized("in_rhs")),
            Sequence(Optional(kw("NOT")), kw("LIKE"), Ref("string")),
            Sequence(kw("IS"), Optional(kw("NOT")), kw("NULL")),
        ),
    ),
    Production("in_rhs", Ref("expr_list")),
    Production(
        "addition",
        Sequence(
            Ref("multiplication"),
            ZeroOrMore(
                Sequence(Choice(Literal("+"), Literal("-")), Ref("multiplication"))
            ),
        ),
    ),
    Production(
        "multiplication",
        Sequence(
            Ref("unary"),
            ZeroOrMore(Sequence(Choice(Literal("*"), Literal("/")), Ref("unary"))),
        ),
    ),
    Production("unary", Sequence(Optional(Literal("-")), Ref("primary"))),
    Production(
        "primary",
        Choice(
            Ref("function_call"),
            Ref("column"),
            Ref("literal"),
            parenthesized("expr"),
        ),
    ),
    Production(
        "function_call",
        Sequence(
            Ref("identifier"),
            Literal("("),
            Optional(Ref("function_args")),
            Literal(")"),
        ),
    ),
    Production(
        "function_args",
        Choice(Literal("*"), Sequence(Optional(Ref("distinct")), Ref("expr_list"))),
    ),
    Production(
        "column",
        Sequence(Ref("identifier"), Optional(Sequence(Literal("."), Ref("identifier")))),
    ),
    Production(
        "literal",
        Choice(Ref("number"), Ref("string"), Ref("boolean"), kw("NULL")),
    ),
]

SQL_GRAMMAR = Grammar(
    LEXICAL_PRODUCTIONS
    + STATEMENT_PRODUCTIONS
    + CLAUSE_PRODUCTIONS
    + EXPRESSION_PRODUCTIONS,
    skip="skip",
)
