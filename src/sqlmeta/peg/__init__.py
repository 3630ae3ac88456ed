"""A small Parsing Expression Grammar (PEG) engine.

PEG grammars describe a language through productions made of
ordered choices: alternatives are tried in order and the first one
that matches wins. That makes them unambiguous and straightforward
to execute by a recursive descent parser that backtracks to the
starting position when an alternative fails.

The engine is constituted by:

1. Parsing expressions (:mod:`sqlmeta.peg.expressions`), the building blocks
   like sequences, choices and repetitions.
2. The Grammar (:mod:`sqlmeta.peg.grammar`), a validated set of named productions.
3. The Parser (:mod:`sqlmeta.peg.engine`), which matches a text against
   a production of the grammar.
4. The Parse Tree (:mod:`sqlmeta.peg.tree`), the result of a successful parse.

A grammar for comma separated numbers could look like::

    grammar = Grammar(
        [
            Production("numbers", Sequence(Ref("number"), ZeroOrMore(Sequence(Literal(","), Ref("number"))))),
            Production("number", Pattern(r"[0-9]+"), token=True),
            Production("skip", Pattern(r"\\s*"), silent=True),
        ],
        skip="skip",
    )
    tree = GrammarParser(grammar).parse("1, 2, 3", "numbers")

The engine is not specific to SQL, the SQL dialect is defined
in :mod:`sqlmeta.sql.grammar` on top of it.
"""

from .engine import GrammarParser, ParseError, ParsingState
from .expressions import (
    Choice,
    Expression,
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
from .grammar import Grammar, GrammarError, Production
from .tree import ParseNode, ParseTree

__all__ = (
    "GrammarParser",
    "ParseError",
    "ParsingState",
    "Expression",
    "Choice",
    "Keyword",
    "Literal",
    "NotAhead",
    "OneOrMore",
    "Optional",
    "Pattern",
    "Ref",
    "Sequence",
    "ZeroOrMore",
    "Grammar",
    "GrammarError",
    "Production",
    "ParseNode",
    "ParseTree",
)
