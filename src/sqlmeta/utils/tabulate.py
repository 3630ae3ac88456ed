"""Format tabular data into a text table for print.

The `tabulate` function takes a `pyarrow.RecordBatch` and formats it into a text table.
It will truncate long strings, render missing values as empty cells and limit the number of rows to display.
The function is used by the ``sqlmeta`` command to display the metadata of a query.

Example:

    >>> import pyarrow as pa
    >>> data = {
    ...     "join_type": ["LEFT", None],
    ...     "table": ["orders", "payments"],
    ...     "alias": ["o", "p"],
    ... }
    >>> table = pa.RecordBatch.from_pydict(data)
    >>> print(tabulate(table))
    join_type | table    | alias
    --------- | -------- | -----
    LEFT      | orders   | o
              | payments | p
"""

from typing import Any

from pyarrow import RecordBatch


def tabulate(recordbatch: RecordBatch, max_rows: int = 20, max_width: int = 30) -> str:
    """Format a RecordBatch into a text table.

    Will produce a string like::

        field     | value
        --------- | ------------
        tables    | orders, users
        functions | COUNT

    :param recordbatch: The data to format.
    :param max_rows: Rows after this amount are omitted.
    :param max_width: Values longer than this are truncated.
    """
    cols = recordbatch.column_names
    rows = [
        [format_value(row[c], max_width) for c in cols]
        for row in recordbatch.slice(length=max_rows).to_pylist()
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    textrows = [maketablerow(row, colsizes=colsizes) for row in rows]

    table = "\n".join(header + separator + textrows)
    if recordbatch.num_rows > max_rows:
        table += f"\n... and {recordbatch.num_rows - max_rows} more rows"
    return table


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx])])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(cols: list[str], colsizes: list[int], fillvalue: str = " ") -> str:
    """Make a table row with the given column sizes.

    Trailing padding is removed, so the last column doesn't end with spaces.
    """
    return " | ".join(
        [col.ljust(colsizes[idx], fillvalue) for idx, col in enumerate(cols)]
    ).rstrip()


def format_value(v: Any, max_width: int = 30) -> str:
    """Format a value to be printed in the table.

    Missing values become empty strings, lists are
    joined by commas and long strings are truncated.
    """
    if v is None:
        return ""
    elif isinstance(v, list):
        v = ", ".join(format_value(item, max_width) for item in v)

    v = str(v)
    if len(v) > max_width:
        v = v[: max_width - 3] + "..."
    return v
