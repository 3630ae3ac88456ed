"""Parsing expressions, the building blocks of a PEG grammar.

A Parsing Expression Grammar is made of productions, each production
has a body that is a parsing expression. Parsing expressions are
combined to recognize more complex syntaxes:

- :class:`Literal` matches an exact piece of text, like ``(`` or ``,``.
- :class:`Keyword` matches a word case-insensitively, like ``SELECT``.
- :class:`Pattern` matches a regular expression, like identifiers.
- :class:`Sequence` matches all its expressions one after the other.
- :class:`Choice` tries its expressions in order, the first that matches wins.
- :class:`ZeroOrMore` and :class:`OneOrMore` match an expression greedily.
- :class:`Optional` matches an expression or nothing.
- :class:`NotAhead` succeeds only when an expression does **not** match.
- :class:`Ref` delegates to another production of the grammar by name.

Each expression implements a ``match(state, pos)`` method that receives
the :class:`sqlmeta.peg.engine.ParsingState` and the position where the
expression should start matching. It returns ``None`` when the expression
doesn't match, or a tuple ``(end, nodes)`` with the position
after the matched text and the parse nodes produced while matching.

Positions are plain integers, so backtracking is just a matter of
trying the next alternative from the same position. No expression ever
mutates the cursor of its caller.

The grammar for ``("+" / "-") number`` would be written as::

    Sequence(Choice(Literal("+"), Literal("-")), Ref("number"))
"""

import abc
import re
from typing import TYPE_CHECKING, Iterator

from .tree import ParseNode

if TYPE_CHECKING:
    from .engine import ParsingState
    from .grammar import Production

Match = tuple[int, tuple[ParseNode, ...]]

WORD_CHARS = re.compile(r"[A-Za-z0-9_]")


class Expression(abc.ABC):
    """A parsing expression.

    Subclasses must implement :meth:`match` and ``__str__``,
    the latter returning the expression in PEG notation.

    The other methods are used by :class:`sqlmeta.peg.grammar.Grammar`
    to validate the grammar before it's used and
    have sensible defaults for terminal expressions.
    """

    @abc.abstractmethod
    def match(self, state: "ParsingState", pos: int) -> Match | None:
        """Try to match the expression at ``pos``.

        On failure the expression should notify the state of what
        it was expecting through :meth:`sqlmeta.peg.engine.ParsingState.expect`
        so that meaningful errors can be reported.
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """The expression in PEG notation."""
        ...

    def references(self) -> Iterator[str]:
        """Names of all the productions referenced by the expression."""
        return iter(())

    def nullable(self, nullables: set[str]) -> bool:
        """If the expression can succeed without consuming any input.

        :param nullables: Names of the productions known to be nullable.
        """
        return False

    def leftmost(self, nullables: set[str]) -> Iterator[str]:
        """Productions that could be invoked without consuming any input first.

        Used to detect left recursion: if a production can reach itself
        through its leftmost references the parser would never terminate.
        """
        return iter(())

    def bind(self, productions: dict[str, "Production"]) -> None:
        """Resolve the references to other productions once the grammar is complete."""
        pass


class Literal(Expression):
    """Matches an exact text.

    :param text: The text to match.
    :param ignore_case: Match the text case-insensitively.
    """

    def __init__(self, text: str, ignore_case: bool = False) -> None:
        if not text:
            raise ValueError("Literal text can't be empty")
        self.text = text
        self.ignore_case = ignore_case

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        candidate = state.text[pos : pos + len(self.text)]
        if candidate == self.text or (
            self.ignore_case and candidate.upper() == self.text.upper()
        ):
            return pos + len(self.text), ()
        state.expect(pos, repr(self.text))
        return None

    def __str__(self) -> str:
        return repr(self.text)


class Keyword(Expression):
    """Matches a whole word case-insensitively.

    The word must not be directly followed by another identifier
    character, so ``Keyword("IN")`` doesn't match the start of ``INNER``.
    """

    def __init__(self, word: str) -> None:
        self.word = word.upper()

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        end = pos + len(self.word)
        if state.text[pos:end].upper() == self.word and not WORD_CHARS.match(
            state.text, end
        ):
            return end, ()
        state.expect(pos, self.word)
        return None

    def __str__(self) -> str:
        return f'"{self.word}"i'


class Pattern(Expression):
    """Matches a regular expression.

    :param regex: The regular expression, anchored at the current position.
    :param description: How the pattern is reported in syntax errors.
    """

    def __init__(self, regex: str, description: str | None = None) -> None:
        self.regex = re.compile(regex)
        self.description = description or f"/{regex}/"

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        found = self.regex.match(state.text, pos)
        if found is None:
            state.expect(pos, self.description)
            return None
        return found.end(), ()

    def nullable(self, nullables: set[str]) -> bool:
        return self.regex.match("") is not None

    def __str__(self) -> str:
        return f"/{self.regex.pattern}/"


class Ref(Expression):
    """Matches the production with the given name."""

    def __init__(self, name: str) -> None:
        self.name = name

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        return state.grammar[self.name].match(state, pos)

    def references(self) -> Iterator[str]:
        yield self.name

    def nullable(self, nullables: set[str]) -> bool:
        return self.name in nullables

    def leftmost(self, nullables: set[str]) -> Iterator[str]:
        yield self.name

    def __str__(self) -> str:
        return self.name


class _Composite(Expression):
    """Base for expressions wrapping other expressions."""

    def __init__(self, *items: Expression) -> None:
        if not items:
            raise ValueError(f"{type(self).__name__} requires at least one expression")
        self.items = items
        # What is actually invoked while matching, see :meth:`bind`.
        self.matchers: tuple = items

    def references(self) -> Iterator[str]:
        for item in self.items:
            yield from item.references()

    def bind(self, productions: dict[str, "Production"]) -> None:
        """Replace the :class:`Ref` items with the productions they name.

        Matching a nested expression then invokes the production directly,
        which saves a call for each reference and allows deeper nesting
        before reaching the interpreter recursion limit.
        """
        self.matchers = tuple(resolve(item, productions) for item in self.items)

    def _format_items(self, separator: str) -> str:
        return separator.join(_grouped(item) for item in self.items)


class Sequence(_Composite):
    """Matches all the expressions one after the other.

    Insignificant text (whitespace, comments) is skipped between
    the expressions, unless the sequence is part of a token.
    When the last expressions matched nothing, the skipped text
    is not considered part of the sequence.
    """

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        end = pos
        nodes = []
        for idx, item in enumerate(self.matchers):
            start = state.skip(end) if idx else end
            result = item.match(state, start)
            if result is None:
                return None
            item_end, item_nodes = result
            if item_end > start:
                end = item_end
            nodes.extend(item_nodes)
        return end, tuple(nodes)

    def nullable(self, nullables: set[str]) -> bool:
        return all(item.nullable(nullables) for item in self.items)

    def leftmost(self, nullables: set[str]) -> Iterator[str]:
        for item in self.items:
            yield from item.leftmost(nullables)
            if not item.nullable(nullables):
                break

    def __str__(self) -> str:
        return self._format_items(" ")


class Choice(_Composite):
    """Ordered choice, the first expression that matches wins.

    Later alternatives are not attempted once one matched,
    even if the match leads to a failure later on.
    """

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        for item in self.matchers:
            result = item.match(state, pos)
            if result is not None:
                return result
        return None

    def nullable(self, nullables: set[str]) -> bool:
        return any(item.nullable(nullables) for item in self.items)

    def leftmost(self, nullables: set[str]) -> Iterator[str]:
        for item in self.items:
            yield from item.leftmost(nullables)

    def __str__(self) -> str:
        return self._format_items(" / ")


class ZeroOrMore(_Composite):
    """Greedily matches an expression as many times as possible.

    Repetitions are never given back, if what follows
    needed part of the repeated text the match fails.
    """

    minimum = 0
    suffix = "*"

    def __init__(self, item: Expression) -> None:
        super().__init__(item)
        self.item = item

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        end = pos
        nodes = []
        count = 0
        while True:
            start = state.skip(end) if count else end
            result = self.matchers[0].match(state, start)
            if result is None:
                break
            item_end, item_nodes = result
            if item_end == start:
                # An empty match would repeat forever.
                break
            end = item_end
            nodes.extend(item_nodes)
            count += 1
        if count < self.minimum:
            return None
        return end, tuple(nodes)

    def nullable(self, nullables: set[str]) -> bool:
        return self.minimum == 0 or self.item.nullable(nullables)

    def leftmost(self, nullables: set[str]) -> Iterator[str]:
        return self.item.leftmost(nullables)

    def __str__(self) -> str:
        return f"{_grouped(self.item)}{self.suffix}"


class OneOrMore(ZeroOrMore):
    """Greedily matches an expression at least once."""

    minimum = 1
    suffix = "+"


class Optional(_Composite):
    """Matches an expression if possible, otherwise matches nothing."""

    def __init__(self, item: Expression) -> None:
        super().__init__(item)
        self.item = item

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        result = self.matchers[0].match(state, pos)
        if result is None:
            return pos, ()
        return result

    def nullable(self, nullables: set[str]) -> bool:
        return True

    def leftmost(self, nullables: set[str]) -> Iterator[str]:
        return self.item.leftmost(nullables)

    def __str__(self) -> str:
        return f"{_grouped(self.item)}?"


class NotAhead(_Composite):
    """Negative lookahead, succeeds without consuming input if the expression fails.

    Failures of the wrapped expression are not reported as syntax
    errors as failing is what the lookahead wants.
    """

    def __init__(self, item: Expression) -> None:
        super().__init__(item)
        self.item = item

    def match(self, state: "ParsingState", pos: int) -> Match | None:
        with state.quiet():
            result = self.matchers[0].match(state, pos)
        if result is None:
            return pos, ()
        return None

    def nullable(self, nullables: set[str]) -> bool:
        return True

    def leftmost(self, nullables: set[str]) -> Iterator[str]:
        return self.item.leftmost(nullables)

    def __str__(self) -> str:
        return f"!{_grouped(self.item)}"


def _grouped(item: Expression) -> str:
    """Wrap composite expressions in parentheses when nested."""
    if isinstance(item, (Sequence, Choice)) and len(item.items) > 1:
        return f"({item})"
    return str(item)


def resolve(item: Expression, productions: dict[str, "Production"]) -> "Expression | Production":
    """The production a :class:`Ref` names, or the expression itself bound to the productions."""
    if isinstance(item, Ref):
        return productions[item.name]
    item.bind(productions)
    return item
