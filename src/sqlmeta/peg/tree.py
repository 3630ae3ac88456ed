"""Parse Tree produced by the PEG engine.

Every production that matches some input produces a :class:`ParseNode`,
which knows the name of the production that created it, the span
of text it matched and the nodes produced by the productions it contains.

For a query like ``"SELECT id FROM users"`` the tree looks like::

    sql [0:20] 'SELECT id FROM users'
      statement [0:20]
        select_stmt [0:20]
          SELECT_KEY [0:6] 'SELECT'
          projection [7:9]
            ...
          FROM_KEY [10:14] 'FROM'
          from_item [15:20]
            table_factor [15:20]
              identifier [15:20] 'users'

Whitespace and comments are never part of the tree and
anonymous punctuation like ``(`` or ``,`` doesn't produce nodes either.

The tree is read only, nodes expose their data through properties
and children are stored in tuples, so consumers can only traverse it.
"""

from typing import Iterator


class ParseNode:
    """A node of the parse tree.

    >>> node = ParseNode("identifier", "SELECT id", 7, 9)
    >>> node.text
    'id'
    >>> node
    ParseNode('identifier', 7, 9, 'id')
    """

    __slots__ = ("_rule", "_source", "_start", "_end", "_children")

    def __init__(
        self,
        rule: str,
        source: str,
        start: int,
        end: int,
        children: tuple["ParseNode", ...] = (),
    ) -> None:
        """
        :param rule: The name of the production that matched.
        :param source: The whole text that was parsed.
        :param start: Index of the first character matched.
        :param end: Index after the last character matched.
        :param children: The nodes of the nested productions, in source order.
        """
        self._rule = rule
        self._source = source
        self._start = start
        self._end = end
        self._children = tuple(children)

    @property
    def rule(self) -> str:
        """Name of the production that produced the node."""
        return self._rule

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    @property
    def span(self) -> tuple[int, int]:
        """The ``[start, end)`` range of source text matched by the node."""
        return self._start, self._end

    @property
    def children(self) -> tuple["ParseNode", ...]:
        return self._children

    @property
    def text(self) -> str:
        """The source text matched by the node."""
        return self._source[self._start : self._end]

    def child(self, rule: str) -> "ParseNode | None":
        """Return the first direct child produced by ``rule``, if any."""
        for child in self._children:
            if child.rule == rule:
                return child
        return None

    def walk(self) -> Iterator["ParseNode"]:
        """Iterate over the node and all its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseNode):
            return NotImplemented
        return (
            self._rule == other._rule
            and self.span == other.span
            and self.text == other.text
            and self._children == other._children
        )

    def __hash__(self) -> int:
        return hash((self._rule, self._start, self._end, self._children))

    def __repr__(self) -> str:
        return f"ParseNode({self._rule!r}, {self._start}, {self._end}, {self.text!r})"


class ParseTree:
    """The result of parsing a text.

    Owns the root :class:`ParseNode` and the text it was parsed from.
    """

    def __init__(self, source: str, root: ParseNode) -> None:
        """
        :param source: The text that was parsed.
        :param root: The node produced by the start production.
        """
        self.source = source
        self.root = root

    def walk(self) -> Iterator[ParseNode]:
        """Iterate over all the nodes of the tree in pre-order."""
        return self.root.walk()

    def find_all(self, rule: str) -> Iterator[ParseNode]:
        """Iterate over all the nodes produced by ``rule``, in source order."""
        return (node for node in self.walk() if node.rule == rule)

    def pretty(self, indent: str = "  ") -> str:
        """Render the tree as indented text, one node per line.

        Leaf nodes also report the text they matched::

            table_factor [15:22]
              identifier [15:20] 'users'
              alias_identifier [21:22] 'u'
        """
        lines = []
        stack = [(self.root, 0)]
        while stack:
            node, depth = stack.pop()
            line = f"{indent * depth}{node.rule} [{node.start}:{node.end}]"
            if not node.children or depth == 0:
                line += f" {node.text!r}"
            lines.append(line)
            stack.extend((child, depth + 1) for child in reversed(node.children))
        return "\n".join(lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseTree):
            return NotImplemented
        return self.source == other.source and self.root == other.root

    def __repr__(self) -> str:
        return f"ParseTree({self.root!r})"
