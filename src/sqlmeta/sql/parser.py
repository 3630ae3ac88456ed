"""Parse SQL queries into Parse Trees.

Given a SQL Query like ``"SELECT name FROM users u WHERE u.age >= 18"``,
the parser will produce a :class:`sqlmeta.peg.tree.ParseTree` like::

    sql [0:42] 'SELECT name FROM users u WHERE u.age >= 18'
      statement [0:42]
        select_stmt [0:42]
          SELECT_KEY [0:6] 'SELECT'
          projection [7:11]
            projection_list [7:11]
              projection_item [7:11]
                expr [7:11]
                  ...
                            column [7:11]
                              identifier [7:11] 'name'
          FROM_KEY [12:16] 'FROM'
          from_item [17:24]
            table_factor [17:24]
              identifier [17:22] 'users'
              alias_identifier [23:24] 'u'
          where_clause [25:42]
            WHERE_KEY [25:30] 'WHERE'
            expr [31:42]
              ...

Each node is tagged with the name of the grammar production
that matched it, see :mod:`sqlmeta.sql.grammar` for the
full list of productions.

Any production of the grammar can be used as the starting point,
so fragments of queries can be parsed too::

    Parser("u.id = p.user_id").parse("expr")

The text must always be matched entirely by the requested production,
otherwise a :class:`SQLParseError` is raised pointing to the furthest
position the parser was able to reach.
"""

import logging

from ..peg.engine import GrammarParser, ParseError
from ..peg.grammar import GrammarError
from ..peg.tree import ParseTree
from .grammar import SQL_GRAMMAR

logger = logging.getLogger(__name__)


class Parser:
    """Parse a SQL query using :data:`sqlmeta.sql.grammar.SQL_GRAMMAR`.

    The parser holds no state besides the text,
    each call to :meth:`parse` starts from scratch.
    """

    def __init__(self, text: str, memoize: bool = True) -> None:
        """
        :param text: The input SQL query text to parse.
        :param memoize: Remember the result of each production at each position,
                        avoids reparsing the same text when backtracking.
        """
        self.text = text
        self.engine = GrammarParser(SQL_GRAMMAR, memoize=memoize)

    def parse(self, rule: str = "sql") -> ParseTree:
        """Parse the query and return its Parse Tree.

        :param rule: The grammar production the whole text must match,
                     by default a complete SQL statement.
        """
        if rule not in SQL_GRAMMAR:
            raise GrammarError(f"Unknown production: {rule}")

        try:
            tree = self.engine.parse(self.text, rule)
        except ParseError as e:
            logger.debug("Failed to parse %r as %s: %s", self.text, rule, e)
            raise SQLParseError(
                e.position, e.line, e.column, e.expected, e.text
            ) from None

        logger.debug("Parsed %d characters as %s", len(self.text), rule)
        return tree


def parse(text: str, rule: str = "sql") -> ParseTree:
    """Parse ``text`` as the ``rule`` production.

    Shortcut for ``Parser(text).parse(rule)``.
    """
    return Parser(text).parse(rule)


class SQLParseError(ParseError):
    """An exception raised when a SQL query doesn't match the grammar.

    Reports the position of the furthest point the parser
    could reach and what was expected there::

        >>> parse("SELECT id FROM")
        Traceback (most recent call last):
          ...
        sqlmeta.sql.parser.SQLParseError: expected identifier at line 1, column 15, found end of input
    """

    pass
