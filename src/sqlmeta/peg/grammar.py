"""Grammars, as collections of named productions.

A :class:`Production` gives a name to a parsing expression.
When it matches, the production wraps whatever the expression matched
in a :class:`sqlmeta.peg.tree.ParseNode` tagged with its name.

Productions come in three flavours:

- **Syntax** productions (the default) skip whitespace and comments
  between the elements of their sequences and their node contains
  the nodes of the nested productions.
- **Token** productions (``token=True``) match text as is, no skipping
  happens inside them and their node is always a leaf.
  Identifiers, numbers, keywords are tokens.
- **Silent** productions (``silent=True``) match input but produce no node,
  their nested nodes (if any) are returned to the parent production.

The :class:`Grammar` is validated when built: all referenced productions
must exist and no production can be left recursive. A left recursive
production like ``expr = expr "+" term`` would make a recursive descent
parser recurse forever, so it must be expressed through repetition
instead: ``expr = term ("+" term)*``.
"""

from typing import TYPE_CHECKING, Iterable, Iterator

from .expressions import Expression, Match, resolve
from .tree import ParseNode

if TYPE_CHECKING:
    from .engine import ParsingState


class Production:
    """A named grammar rule.

    :param name: The name of the production, used as the tag of its parse nodes.
    :param body: The parsing expression the production matches.
    :param token: If the production is lexical (no skipping, leaf node).
    :param silent: If the production shouldn't emit a node.
    :param label: How the production is reported when expected in syntax errors,
                  only used by token productions. Defaults to the name.
    """

    def __init__(
        self,
        name: str,
        body: Expression,
        token: bool = False,
        silent: bool = False,
        label: str | None = None,
    ) -> None:
        self.name = name
        self.body = body
        self.token = token
        self.silent = silent
        self.label = label or name
        self.matcher: "Expression | Production" = body

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        """Match the production body at ``pos`` and wrap the result in a node.

        Results are memoized by the parsing state, so a production
        attempted multiple times at the same position is matched only once.
        """
        key = state.memo_key(self.name, pos)
        if key in state.memo:
            return state.memo[key]

        if self.token:
            with state.atomic():
                result = self.matcher.match(state, pos)
            if result is None:
                state.expect(pos, self.label)
        else:
            result = self.matcher.match(state, pos)

        if result is not None and not self.silent:
            end, children = result
            if self.token:
                children = ()
            result = end, (ParseNode(self.name, state.text, pos, end, children),)

        state.memo[key] = result
        return result

    def bind(self, productions: dict[str, "Production"]) -> None:
        """Resolve the references of the body to the productions of the grammar."""
        self.matcher = resolve(self.body, productions)

    def __str__(self) -> str:
        marker = "@" if self.token else ("_" if self.silent else "")
        return f"{self.name} = {marker}{{ {self.body} }}"

    def __repr__(self) -> str:
        return f"Production({self.name!r})"


class Grammar:
    """A set of productions that can be used to parse text.

    :param productions: The productions of the grammar.
    :param skip: Name of the production matching insignificant text
                 (whitespace, comments) that can occur between tokens.

    Once validated, the references between productions are resolved,
    so productions shouldn't be shared between different grammars.
    """

    def __init__(self, productions: Iterable[Production], skip: str | None = None) -> None:
        self.productions: dict[str, Production] = {}
        for production in productions:
            if production.name in self.productions:
                raise GrammarError(f"Duplicate production: {production.name}")
            self.productions[production.name] = production
        self.skip = skip
        self.validate()
        for production in self:
            production.bind(self.productions)

    def __getitem__(self, name: str) -> Production:
        try:
            return self.productions[name]
        except KeyError:
            raise GrammarError(f"Unknown production: {name}") from None

    def __contains__(self, name: str) -> bool:
        return name in self.productions

    def __iter__(self) -> Iterator[Production]:
        return iter(self.productions.values())

    def __str__(self) -> str:
        return "\n".join(str(production) for production in self)

    def validate(self) -> None:
        """Check that the grammar can be used by a recursive descent parser.

        Raises :class:`GrammarError` when a production references
        an unknown production, or when a production is left recursive.
        """
        if self.skip is not None and self.skip not in self.productions:
            raise GrammarError(f"Unknown skip production: {self.skip}")

        for production in self:
            for name in production.body.references():
                if name not in self.productions:
                    raise GrammarError(
                        f"Production {production.name} references unknown production {name}"
                    )

        nullables = self.nullable_productions()
        leftmost = {
            production.name: set(production.body.leftmost(nullables))
            for production in self
        }
        for name in self.productions:
            cycle = self._find_cycle(name, leftmost)
            if cycle:
                raise GrammarError(f"Left recursion: {' -> '.join(cycle)}")

    def nullable_productions(self) -> set[str]:
        """Names of the productions that can match the empty string.

        Computed as a fixed point, as a production nullability
        depends on the nullability of the productions it references.
        """
        nullables: set[str] = set()
        changed = True
        while changed:
            changed = False
            for production in self:
                if production.name in nullables:
                    continue
                if production.body.nullable(nullables):
                    nullables.add(production.name)
                    changed = True
        return nullables

    @staticmethod
    def _find_cycle(start: str, leftmost: dict[str, set[str]]) -> list[str] | None:
        """Depth first search for a path of leftmost references leading back to ``start``."""
        stack = [(start, [start])]
        visited = set()
        while stack:
            name, path = stack.pop()
            for target in sorted(leftmost[name]):
                if target == start:
                    return path + [start]
                if target not in visited:
                    visited.add(target)
                    stack.append((target, path + [target]))
        return None


class GrammarError(ValueError):
    """An exception raised when a grammar is malformed."""

    pass
