"""Command line interface for parsing and analyzing SQL queries.

This module provides the ``sqlmeta`` command, based on
:class:`sqlmeta.sql.Parser` and :class:`sqlmeta.analysis.MetadataAnalyzer`.

The query can be provided with ``--query``, read from a file with ``--file``
or piped through the standard input. The result is printed to the console
as a parse tree, as tables formatted by :mod:`sqlmeta.utils.tabulate`
or as JSON depending on ``--format``.
"""

import argparse
import logging
import sys

import pyarrow as pa

from .. import __version__
from ..analysis import MetadataAnalyzer, MetadataSerializationError, QueryMetadata
from ..sql import SQL_GRAMMAR, Parser, SQLParseError
from ..utils import tabulate

FORMATS = ("parse", "analyze", "json")

CREDITS = f"""sqlmeta v{__version__}

Parse SQL queries through a PEG grammar and extract their metadata.

FEATURES:
    SQL syntax parsing (SELECT, INSERT, UPDATE, DELETE, UNION)
    JOIN operations support
    Metadata extraction (tables, columns, functions, aliases)
    JSON serialization of analysis results
    File and stdin input support"""


def main(argv: list[str] | None = None) -> int:
    """Parse the command line arguments and run the requested command.

    Returns the exit status of the command.
    """
    parser = argparse.ArgumentParser(
        prog="sqlmeta",
        description="Parse and analyze SQL queries with metadata extraction.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug information."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    parse_cmd = commands.add_parser("parse", help="Parse a SQL query and display results.")
    parse_cmd.add_argument("-q", "--query", help="SQL query to parse.")
    parse_cmd.add_argument("-f", "--file", help="Read SQL query from file.")
    parse_cmd.add_argument(
        "--format",
        choices=FORMATS,
        default="parse",
        help="Output format: the parse tree, the extracted metadata or the metadata as JSON.",
    )
    parse_cmd.add_argument(
        "--rule",
        default="sql",
        help="Grammar production the query must match, only used by the parse format.",
    )

    commands.add_parser("grammar", help="Print the SQL grammar in PEG notation.")
    commands.add_parser("credits", help="Display credits and project information.")

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.command == "grammar":
        print(SQL_GRAMMAR)
        return 0
    if args.command == "credits":
        print(CREDITS)
        return 0

    if args.query is not None and args.file is not None:
        print("Error: Cannot specify both --query and --file", file=sys.stderr)
        return 1

    try:
        query = read_query(args.query, args.file)
    except OSError as e:
        print(f"Error reading file '{args.file}': {e}", file=sys.stderr)
        return 1

    if not query.strip():
        print(
            "Error: No SQL query provided. Use --query, --file, or pipe input.",
            file=sys.stderr,
        )
        return 1

    if args.rule not in SQL_GRAMMAR:
        print(f"Error: Unknown grammar production '{args.rule}'", file=sys.stderr)
        return 1

    try:
        if args.format == "parse":
            tree = Parser(query).parse(args.rule)
            print(tree.pretty())
        else:
            metadata = MetadataAnalyzer(Parser(query).parse()).analyze()
            if args.format == "json":
                print(metadata.to_json())
            else:
                print(render_metadata(metadata))
    except SQLParseError as e:
        print(f"Invalid SQL, {e}", file=sys.stderr)
        return 1
    except MetadataSerializationError as e:
        print(f"Failed to generate JSON: {e}", file=sys.stderr)
        return 1
    return 0


def read_query(query: str | None, filename: str | None) -> str:
    """Get the query from the command line, a file or the standard input."""
    if query is not None:
        return query
    if filename is not None:
        with open(filename, encoding="utf-8") as f:
            return f.read()
    return sys.stdin.read().strip()


def render_metadata(metadata: QueryMetadata) -> str:
    """Format the metadata as console tables, one for the summary and one for the joins."""
    summary = pa.RecordBatch.from_pydict(
        {
            "field": ["tables", "columns", "aliases", "functions", "aggregates"],
            "value": [
                sorted(metadata.tables),
                sorted(metadata.columns),
                [f"{alias} -> {table}" for alias, table in metadata.aliases.items()],
                sorted(metadata.functions),
                sorted(metadata.aggregates),
            ],
        }
    )
    output = ["SQL Query Analysis:", tabulate.tabulate(summary, max_width=80)]

    if metadata.joins:
        joins = pa.RecordBatch.from_pylist([join.to_dict() for join in metadata.joins])
        output += ["", "Joins:", tabulate.tabulate(joins, max_rows=joins.num_rows, max_width=80)]
    else:
        output += ["", "Joins: none"]
    return "\n".join(output)


if __name__ == "__main__":
    sys.exit(main())
