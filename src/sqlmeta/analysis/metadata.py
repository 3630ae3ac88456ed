"""Metadata extracted from SQL queries.

:class:`QueryMetadata` is what :func:`sqlmeta.analysis.analyze` returns,
it gathers what a query references::

    >>> from sqlmeta.analysis import analyze
    >>> metadata = analyze("SELECT COUNT(o.id) FROM users u JOIN orders o ON o.user_id = u.id")
    >>> sorted(metadata.columns)
    ['o.id', 'o.user_id', 'u.id']
    >>> metadata.aliases
    {'u': 'users', 'o': 'orders'}
    >>> metadata.joins
    [JoinInfo(join_type=None, table='orders', alias='o', condition='o.user_id = u.id')]

Metadata can be converted to plain dictionaries and JSON,
to be consumed by other tools. Sets are converted to sorted lists,
as JSON has no notion of sets::

    >>> print(analyze("SELECT SUM(price) FROM orders").to_json(indent=None))
    {"tables": ["orders"], "columns": ["price"], "aliases": {}, "functions": ["SUM"], "aggregates": ["SUM"], "joins": []}
"""

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class JoinInfo:
    """A JOIN clause of a SELECT statement.

    :param join_type: The join type keywords as written, like ``LEFT OUTER``,
                      ``None`` for a bare ``JOIN``.
    :param table: The joined table.
    :param alias: The alias the joined table was given, if any.
    :param condition: The text of the ``ON`` condition.
    """

    join_type: str | None
    table: str
    alias: str | None
    condition: str

    def to_dict(self) -> dict[str, str | None]:
        return {
            "join_type": self.join_type,
            "table": self.table,
            "alias": self.alias,
            "condition": self.condition,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JoinInfo":
        """Build a JoinInfo from the output of :meth:`to_dict`."""
        try:
            table = data["table"]
            condition = data["condition"]
        except (KeyError, TypeError) as e:
            raise MetadataSerializationError(f"Invalid join: {data!r}") from e
        if not isinstance(table, str) or not table:
            raise MetadataSerializationError(f"Invalid join table: {table!r}")
        if not isinstance(condition, str):
            raise MetadataSerializationError(f"Invalid join condition: {condition!r}")

        join_type = data.get("join_type")
        alias = data.get("alias")
        for name, value in (("join type", join_type), ("alias", alias)):
            if value is not None and not isinstance(value, str):
                raise MetadataSerializationError(f"Invalid join {name}: {value!r}")
        return cls(join_type=join_type, table=table, alias=alias, condition=condition)


@dataclass
class QueryMetadata:
    """The tables, columns, aliases, functions and joins referenced by a query.

    A new instance is created by each analysis and filled
    while the parse tree is traversed.
    """

    tables: set[str] = field(default_factory=set)
    columns: set[str] = field(default_factory=set)
    aliases: dict[str, str] = field(default_factory=dict)
    functions: set[str] = field(default_factory=set)
    aggregates: set[str] = field(default_factory=set)
    joins: list[JoinInfo] = field(default_factory=list)

    SET_FIELDS = ("tables", "columns", "functions", "aggregates")

    def to_dict(self) -> dict[str, Any]:
        """Convert the metadata to a dictionary of JSON compatible values."""
        return {
            "tables": sorted(self.tables),
            "columns": sorted(self.columns),
            "aliases": dict(self.aliases),
            "functions": sorted(self.functions),
            "aggregates": sorted(self.aggregates),
            "joins": [join.to_dict() for join in self.joins],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QueryMetadata":
        """Build the metadata back from the output of :meth:`to_dict`.

        Missing fields are considered empty, the order
        of the entries of set fields is irrelevant.
        """
        if not isinstance(data, dict):
            raise MetadataSerializationError(
                f"Expected a dictionary, got {type(data).__name__}"
            )

        metadata = cls()
        for name in cls.SET_FIELDS:
            values = data.get(name, [])
            if not isinstance(values, list) or not all(
                isinstance(v, str) for v in values
            ):
                raise MetadataSerializationError(f"Invalid {name}: {values!r}")
            setattr(metadata, name, set(values))

        aliases = data.get("aliases", {})
        if not isinstance(aliases, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in aliases.items()
        ):
            raise MetadataSerializationError(f"Invalid aliases: {aliases!r}")
        metadata.aliases = dict(aliases)

        joins = data.get("joins", [])
        if not isinstance(joins, list):
            raise MetadataSerializationError(f"Invalid joins: {joins!r}")
        metadata.joins = [JoinInfo.from_dict(join) for join in joins]
        return metadata

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize the metadata to JSON."""
        try:
            return json.dumps(self.to_dict(), indent=indent)
        except (TypeError, ValueError) as e:
            raise MetadataSerializationError(f"Unable to encode metadata: {e}") from e

    @classmethod
    def from_json(cls, text: str) -> "QueryMetadata":
        """Deserialize metadata previously serialized with :meth:`to_json`."""
        try:
            data = json.loads(text)
        except ValueError as e:
            raise MetadataSerializationError(f"Invalid JSON: {e}") from e
        return cls.from_dict(data)


class MetadataSerializationError(Exception):
    """An exception raised when metadata can't be converted to or from JSON."""

    pass
