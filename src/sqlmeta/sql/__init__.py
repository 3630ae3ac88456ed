"""Support for parsing SQL queries into Parse Trees.

The SQL support is constituted by two components:

1. Grammar
2. Parser

The **Grammar** (:data:`sqlmeta.sql.grammar.SQL_GRAMMAR`) describes the supported
SQL dialect through the productions of a Parsing Expression Grammar,
from the lexical ones like ``identifier``, ``number`` and ``SELECT_KEY``
up to complete statements like ``select_stmt`` or ``update_stmt``.

The **Parser** (:class:`sqlmeta.sql.parser.Parser`) matches a query
against the grammar and produces a :class:`sqlmeta.peg.tree.ParseTree`,
or raises :class:`sqlmeta.sql.parser.SQLParseError` when the query is invalid::

    tree = Parser("SELECT id, name FROM users WHERE age >= 18").parse()
    print(tree.pretty())

The supported dialect is intentionally restricted, there are no
subqueries, CTEs or window functions. On production projects
you would typically use a dedicated library like SQLGlot.
"""

from .grammar import KEYWORDS, SQL_GRAMMAR
from .parser import Parser, SQLParseError, parse

__all__ = ("Parser", "SQLParseError", "parse", "SQL_GRAMMAR", "KEYWORDS")
