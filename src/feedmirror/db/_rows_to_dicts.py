"""Convert DuckDB query results to dictionaries."""

from __future__ import annotations

import json
from collections.abc import Iterable

import duckdb


def _decode_json(value: object) -> object:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def _rows_to_dicts(
    result: duckdb.DuckDBPyConnection | duckdb.DuckDBPyRelation,
    json_columns: Iterable[str] = (),
) -> list[dict[str, object]]:
    """Return rows as dictionaries, decoding the named JSON text columns.

    Text that fails to decode is returned unchanged.
    """
    columns = [desc[0] for desc in result.description]
    decoded = set(json_columns)
    rows = []
    for values in result.fetchall():
        row = dict(zip(columns, values, strict=True))
        for name in decoded.intersection(row):
            row[name] = _decode_json(row[name])
        rows.append(row)
    return rows
