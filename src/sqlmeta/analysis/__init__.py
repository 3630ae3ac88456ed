"""Extraction of metadata from SQL queries.

Once a query was parsed, the :class:`sqlmeta.analysis.analyzer.MetadataAnalyzer`
traverses its Parse Tree a single time and collects what the
query references in a :class:`sqlmeta.analysis.metadata.QueryMetadata`:

- the tables and their aliases,
- the columns,
- the invoked functions and which of them are aggregates,
- the JOIN clauses, with their type, table, alias and condition.

The :func:`analyze` function combines parsing and analysis::

    metadata = analyze("SELECT u.name, COUNT(o.id) FROM users u LEFT JOIN orders o ON o.user_id = u.id")
    print(metadata.to_json())
"""

from .analyzer import AGGREGATE_FUNCTIONS, MetadataAnalyzer, analyze
from .metadata import JoinInfo, MetadataSerializationError, QueryMetadata

__all__ = (
    "AGGREGATE_FUNCTIONS",
    "MetadataAnalyzer",
    "analyze",
    "JoinInfo",
    "MetadataSerializationError",
    "QueryMetadata",
)
