"""Extract metadata from the Parse Tree of a SQL query.

The :class:`MetadataAnalyzer` walks the parse tree depth first,
visiting each node before its children (pre-order).
Each node is dispatched to a handler based on the name of the
production that created it, nodes without a dedicated handler
are simply traversed, so productions added to the grammar
never prevent the analysis from completing.

The handlers record what they find in a :class:`sqlmeta.analysis.metadata.QueryMetadata`:

- ``table_factor`` (``users u``) records the table and its alias.
- ``join_clause`` records a :class:`sqlmeta.analysis.metadata.JoinInfo`
  and the alias of the joined table. The joined table itself
  is only recorded in the JoinInfo.
- ``column`` (``u.id``) records the column as written.
- ``function_call`` (``SUM(price)``) records the function name and,
  if it is one of ``SUM``, ``COUNT``, ``AVG``, ``MIN``, ``MAX``, also
  records it as an aggregate.
- ``identifier`` nodes that are not handled by any of the above,
  and are not a known alias, are considered table names.
- ``insert_stmt``, ``update_stmt`` and ``delete_stmt`` record their
  target table, UPDATE also records the columns being set.

As the tree is traversed in source order, aliases defined in the FROM
clause are already known when the JOIN clauses that follow are visited.
"""

import logging
from typing import Sequence

from ..peg.tree import ParseNode, ParseTree
from ..sql.parser import Parser
from .metadata import JoinInfo, QueryMetadata

logger = logging.getLogger(__name__)

AGGREGATE_FUNCTIONS = frozenset(("SUM", "COUNT", "AVG", "MIN", "MAX"))

# Nodes a handler leaves to the traversal, in source order.
Children = Sequence[ParseNode]


class MetadataAnalyzer:
    """Collect the metadata of a query from its Parse Tree.

    Each analyzer owns the :class:`QueryMetadata` it fills,
    so a new analyzer must be created for each tree::

        tree = Parser("SELECT name FROM users u").parse()
        metadata = MetadataAnalyzer(tree).analyze()
    """

    def __init__(self, tree: ParseTree) -> None:
        """
        :param tree: The parse tree to analyze, as returned by :class:`sqlmeta.sql.Parser`.
        """
        self.tree = tree
        self.metadata = QueryMetadata()
        self.handlers = {
            "table_factor": self.visit_table_factor,
            "join_clause": self.visit_join_clause,
            "insert_stmt": self.visit_insert_stmt,
            "update_stmt": self.visit_update_stmt,
            "delete_stmt": self.visit_delete_stmt,
            "set_item": self.visit_set_item,
            "column_list": self.visit_column_names,
            "join_using": self.visit_column_names,
            "column": self.visit_column,
            "function_call": self.visit_function_call,
            "identifier": self.visit_identifier,
        }

    def analyze(self) -> QueryMetadata:
        """Traverse the whole tree and return the collected metadata.

        The traversal keeps its own stack of pending nodes, so deeply
        nested queries don't exhaust the interpreter recursion limit.
        Each handler returns the children that still have to be visited.
        """
        pending = [self.tree.root]
        while pending:
            node = pending.pop()
            handler = self.handlers.get(node.rule, self.visit_children)
            pending.extend(reversed(handler(node)))
        logger.debug(
            "Analyzed query: %d tables, %d columns, %d functions, %d joins",
            len(self.metadata.tables),
            len(self.metadata.columns),
            len(self.metadata.functions),
            len(self.metadata.joins),
        )
        return self.metadata

    def visit_children(self, node: ParseNode) -> Children:
        return node.children

    def visit_table_factor(self, node: ParseNode) -> Children:
        """``users AS u`` registers the ``users`` table and the ``u`` alias."""
        table, alias = self.resolve_table_factor(node)
        if table is not None:
            self.metadata.tables.add(table)
            if alias is not None:
                self.metadata.aliases[alias] = table
        return ()

    def visit_join_clause(self, node: ParseNode) -> Children:
        """Record a :class:`JoinInfo` for ``LEFT JOIN orders o ON o.user_id = u.id``.

        The condition is recorded as written and is also traversed,
        so that columns and functions it contains are collected.
        """
        join_type = table = alias = None
        condition = ""
        visit = []
        for child in node.children:
            if child.rule == "JOIN_TYPE":
                join_type = " ".join(keyword.text for keyword in child.children)
            elif child.rule == "table_factor":
                table, alias = self.resolve_table_factor(child)
            elif child.rule in ("expr", "join_using"):
                condition = child.text
                visit.append(child)

        if table is not None:
            if alias is not None:
                self.metadata.aliases[alias] = table
            self.metadata.joins.append(
                JoinInfo(join_type=join_type, table=table, alias=alias, condition=condition)
            )
        return visit

    def visit_insert_stmt(self, node: ParseNode) -> Children:
        return self.visit_target_statement(node)

    def visit_update_stmt(self, node: ParseNode) -> Children:
        return self.visit_target_statement(node)

    def visit_delete_stmt(self, node: ParseNode) -> Children:
        return self.visit_target_statement(node)

    def visit_target_statement(self, node: ParseNode) -> Children:
        """Statements that modify a table, the first identifier is the table.

        The rest of the statement (columns, values, SET list, WHERE clause)
        is traversed normally.
        """
        target = node.child("identifier")
        if target is not None:
            self.metadata.tables.add(target.text)
        return [child for child in node.children if child is not target]

    def visit_set_item(self, node: ParseNode) -> Children:
        """``name = 'John'``, the assigned identifier is a column."""
        target = node.child("identifier")
        if target is not None:
            self.metadata.columns.add(target.text)
        return [child for child in node.children if child is not target]

    def visit_column_names(self, node: ParseNode) -> Children:
        """Lists of plain column names, like INSERT ``(id, name)`` or ``USING (id)``."""
        for child in node.walk():
            if child.rule == "identifier":
                self.metadata.columns.add(child.text)
        return ()

    def visit_column(self, node: ParseNode) -> Children:
        self.metadata.columns.add(node.text)
        return ()

    def visit_function_call(self, node: ParseNode) -> Children:
        """Record the function, then traverse its arguments.

        The function name is taken as written, aggregates
        are detected case-insensitively but preserve the original case.
        """
        name = node.child("identifier")
        if name is not None:
            self.metadata.functions.add(name.text)
            if name.text.upper() in AGGREGATE_FUNCTIONS:
                self.metadata.aggregates.add(name.text)
        return [child for child in node.children if child is not name]

    def visit_identifier(self, node: ParseNode) -> Children:
        """A bare identifier that isn't a known alias is assumed to be a table."""
        if node.text not in self.metadata.aliases:
            self.metadata.tables.add(node.text)
        return ()

    @staticmethod
    def resolve_table_factor(node: ParseNode) -> tuple[str | None, str | None]:
        """Return the ``(table, alias)`` named by a ``table_factor`` node.

        The first identifier is the table, the alias is either
        the ``alias_identifier`` or a second identifier.
        """
        names = [
            child.text
            for child in node.children
            if child.rule in ("identifier", "alias_identifier")
        ]
        table = names[0] if names else None
        alias = names[1] if len(names) > 1 else None
        return table, alias


def analyze(text: str) -> QueryMetadata:
    """Parse a SQL query and extract its metadata.

    Raises :class:`sqlmeta.sql.SQLParseError` if the query is invalid.

    >>> metadata = analyze("SELECT name FROM users u")
    >>> metadata.tables, metadata.aliases
    ({'users'}, {'u': 'users'})
    """
    tree = Parser(text).parse()
    return MetadataAnalyzer(tree).analyze()
