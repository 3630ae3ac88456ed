"""sqlmeta

Parse SQL queries and extract their metadata.

sqlmeta parses a restricted SQL dialect through a Parsing Expression Grammar
and then inspects the resulting Parse Tree to discover which
tables, columns, aliases, functions and joins a query references.

The library is constituted by multiple components, each isolated within its own
package and each self documented:

* The PEG engine (:mod:`sqlmeta.peg`), a generic grammar driven parser.
* The SQL grammar and parser (:mod:`sqlmeta.sql`), built on top of the engine.
* The Metadata Analyzer (:mod:`sqlmeta.analysis`), which walks parse trees.
* The ``sqlmeta`` command line tool (:mod:`sqlmeta.commands`).

The two main entry points are :func:`parse` and :func:`analyze`::

    >>> import sqlmeta
    >>> sqlmeta.parse("SELECT id FROM users").root.rule
    'sql'
    >>> sorted(sqlmeta.analyze("SELECT id FROM users").columns)
    ['id']
"""

__version__ = "0.1.0"

from .analysis import JoinInfo, MetadataAnalyzer, QueryMetadata, analyze
from .sql import Parser, SQLParseError, parse

__all__ = (
    "parse",
    "analyze",
    "Parser",
    "MetadataAnalyzer",
    "SQLParseError",
    "QueryMetadata",
    "JoinInfo",
)
