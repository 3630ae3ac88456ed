"""The engine that matches text against a grammar.

:class:`GrammarParser` takes a :class:`sqlmeta.peg.grammar.Grammar`
and parses texts starting from one of its productions.

Parsing is a recursive descent over the parsing expressions of the grammar:
each production invokes its body, which in turn invokes the productions
it references. All the state of a single parse lives in a :class:`ParsingState`
that is created for each invocation of :meth:`GrammarParser.parse`,
so the same parser can be used for multiple texts, even concurrently.

When parsing fails, the error reports the furthest position that any
alternative was able to reach and what was expected there.
Given ``"SELECT id FROM"`` the parser is able to match ``SELECT id FROM``
before failing, so the error will point to the end of the text saying
that an ``identifier`` was expected, which is usually the most
helpful place to look at.
"""

import contextlib
import sys
import threading
from typing import Iterator

from .grammar import Grammar
from .tree import ParseTree

# Each level of nesting in the parsed text costs a few calls per production
# involved, the default interpreter limit would only allow a few dozen levels.
RECURSION_LIMIT = 10000


class ParsingState:
    """The state of a single parse.

    Tracks the text being parsed, the furthest failure met so far,
    the memoized results of the productions and if skipping of
    insignificant text and error reporting are currently enabled.
    """

    def __init__(self, grammar: Grammar, text: str, memoize: bool = True) -> None:
        """
        :param grammar: The grammar driving the parse.
        :param text: The text being parsed.
        :param memoize: Remember the result of each production at each position.
        """
        self.grammar = grammar
        self.text = text
        self.furthest = 0
        self.expected: dict[str, None] = {}
        self.memo: dict = {} if memoize else _NoMemo()
        self._atomic = 0
        self._quiet = 0
        self._skip_cache: dict[int, int] = {}

    def expect(self, pos: int, description: str) -> None:
        """Record that ``description`` was expected at ``pos`` but not found.

        Only failures at the furthest position are kept,
        as those are the ones reported in the syntax error.
        """
        if self._atomic or self._quiet:
            return
        if pos > self.furthest:
            self.furthest = pos
            self.expected = {description: None}
        elif pos == self.furthest:
            self.expected[description] = None

    def skip(self, pos: int) -> int:
        """Skip insignificant text starting at ``pos``, return the position after it."""
        if self._atomic or self.grammar.skip is None:
            return pos
        if pos not in self._skip_cache:
            with self.atomic():
                result = self.grammar[self.grammar.skip].match(self, pos)
            self._skip_cache[pos] = pos if result is None else result[0]
        return self._skip_cache[pos]

    @contextlib.contextmanager
    def atomic(self) -> Iterator[None]:
        """Disable skipping and error reporting, used while matching tokens."""
        self._atomic += 1
        try:
            yield
        finally:
            self._atomic -= 1

    @contextlib.contextmanager
    def quiet(self) -> Iterator[None]:
        """Disable error reporting, used by lookaheads."""
        self._quiet += 1
        try:
            yield
        finally:
            self._quiet -= 1

    def memo_key(self, name: str, pos: int) -> tuple:
        """Key identifying the result of a production in the current mode."""
        return name, pos, self._atomic > 0, self._quiet > 0

    def location(self, pos: int) -> tuple[int, int]:
        """Convert a position in the text to 1-based ``(line, column)``."""
        line = self.text.count("\n", 0, pos) + 1
        column = pos - (self.text.rfind("\n", 0, pos) + 1) + 1
        return line, column


class _NoMemo(dict):
    """A memo that never remembers anything, used when memoization is disabled."""

    def __setitem__(self, key, value) -> None:
        pass


class _RecursionHeadroom:
    """Raise the interpreter recursion limit while parses are running.

    The limit is global to the process, so the original value is
    restored only when the last running parse completes.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running = 0
        self._saved_limit = 0

    @contextlib.contextmanager
    def at_least(self, limit: int) -> Iterator[None]:
        with self._lock:
            if not self._running:
                self._saved_limit = sys.getrecursionlimit()
            self._running += 1
            if limit > sys.getrecursionlimit():
                sys.setrecursionlimit(limit)
        try:
            yield
        finally:
            with self._lock:
                self._running -= 1
                if not self._running:
                    sys.setrecursionlimit(self._saved_limit)


_headroom = _RecursionHeadroom()


class GrammarParser:
    """Parse texts using a grammar.

    >>> from sqlmeta.peg.expressions import Pattern
    >>> from sqlmeta.peg.grammar import Grammar, Production
    >>> grammar = Grammar([Production("number", Pattern(r"[0-9]+"), token=True)])
    >>> GrammarParser(grammar).parse("42", "number").root
    ParseNode('number', 0, 2, '42')
    """

    def __init__(
        self,
        grammar: Grammar,
        memoize: bool = True,
        recursion_limit: int = RECURSION_LIMIT,
    ) -> None:
        """
        :param grammar: The grammar to parse with.
        :param memoize: Enable memoization of production results (packrat parsing),
                        which bounds the cost of backtracking.
        :param recursion_limit: Minimum interpreter recursion limit while parsing,
                                bounds how deeply nested the text can be.
        """
        self.grammar = grammar
        self.memoize = memoize
        self.recursion_limit = recursion_limit

    def parse(self, text: str, start: str) -> ParseTree:
        """Parse the whole ``text`` as the ``start`` production.

        Insignificant text is allowed before and after the start production,
        unless the start production is a token, in which case the
        text must match exactly.

        Raises :class:`ParseError` if the text doesn't match
        or if there is unmatched text left after the match.
        """
        production = self.grammar[start]
        state = ParsingState(self.grammar, text, memoize=self.memoize)

        begin = 0 if production.token else state.skip(0)
        try:
            with _headroom.at_least(self.recursion_limit):
                result = production.match(state, begin)
        except RecursionError:
            raise self._error(
                state, state.furthest, ("less deeply nested input",)
            ) from None

        if result is not None:
            end, nodes = result
            trailing = end if production.token else state.skip(end)
            if trailing == len(text) and len(nodes) == 1:
                return ParseTree(text, nodes[0])
            state.expect(trailing, "end of input")

        raise self._error(state, state.furthest, tuple(state.expected))

    @staticmethod
    def _error(state: ParsingState, pos: int, expected: tuple[str, ...]) -> "ParseError":
        line, column = state.location(pos)
        return ParseError(pos, line, column, expected, state.text)


class ParseError(Exception):
    """An exception raised when a text doesn't match the grammar.

    :param position: Offset of the furthest character the parser could reach.
    :param line: 1-based line of ``position``.
    :param column: 1-based column of ``position``.
    :param expected: Descriptions of what was expected at ``position``.
    :param text: The text that was being parsed.
    """

    def __init__(
        self,
        position: int,
        line: int,
        column: int,
        expected: tuple[str, ...],
        text: str,
    ) -> None:
        self.position = position
        self.line = line
        self.column = column
        self.expected = expected
        self.text = text
        super().__init__(self.describe())

    def describe(self) -> str:
        """Human readable description of the error."""
        found = self.text[self.position : self.position + 10]
        found = repr(found) if found else "end of input"
        if not self.expected:
            expectation = "unexpected input"
        elif len(self.expected) == 1:
            expectation = f"expected {self.expected[0]}"
        else:
            expectation = f"expected one of {', '.join(self.expected)}"
        return f"{expectation} at line {self.line}, column {self.column}, found {found}"
