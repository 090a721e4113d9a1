"""Statement marshalling for the remote data-API backend.

The gateway only accepts named parameters with an explicit type tag per
value, and returns each cell as a tagged field. This module converts
between that wire format and the ``$1..$n`` / plain-value form the rest of
orgquery uses.

    >>> rewrite_placeholders("SELECT * FROM t WHERE a = $1 AND b = $2")
    'SELECT * FROM t WHERE a = :p1 AND b = :p2'
"""

import json
import re
from datetime import date, datetime
from typing import Any, Optional, Sequence

_ORDINAL = re.compile(r"\$(\d+)")


def rewrite_placeholders(sql: str) -> str:
    """Replace every ``$k`` token with ``:pk``.

    Purely textual: the statement is not parsed, and a ``$`` that is not
    followed by digits is left alone.
    """
    return _ORDINAL.sub(lambda m: f":p{m.group(1)}", sql)


def encode_value(value: Any) -> dict[str, Any]:
    """Encode one Python value as a typed data-API field."""
    if value is None:
        return {"isNull": True}
    if isinstance(value, str):
        return {"stringValue": value}
    # bool first: it is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"longValue": value}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, (dict, list, tuple)):
        return {"stringValue": json.dumps(value, default=str)}
    if isinstance(value, (datetime, date)):
        return {"stringValue": value.isoformat()}
    return {"stringValue": str(value)}


def encode_parameters(params: Sequence[Any]) -> list[dict[str, Any]]:
    """Name parameter *k* (1-based) ``pk`` and encode its value."""
    return [
        {"name": f"p{index}", "value": encode_value(value)}
        for index, value in enumerate(params, start=1)
    ]


def _decode_array(array: dict[str, Any]) -> list[Any]:
    if "arrayValues" in array:
        return [_decode_array(item) for item in array["arrayValues"]]
    for key in ("stringValues", "longValues", "doubleValues", "booleanValues"):
        if key in array:
            return list(array[key])
    return []


def decode_field(field: Optional[dict[str, Any]]) -> Any:
    """Decode one tagged field to a plain value. Unknown or empty → ``None``."""
    if not field or field.get("isNull"):
        return None
    for key in ("stringValue", "longValue", "doubleValue", "booleanValue", "blobValue"):
        if key in field:
            return field[key]
    if "arrayValue" in field:
        return _decode_array(field["arrayValue"])
    return None


def records_to_rows(
    records: Sequence[Sequence[dict[str, Any]]],
    column_metadata: Optional[Sequence[dict[str, Any]]] = None,
) -> list[dict[str, Any]]:
    """Zip each record with the column metadata by position.

    A column without a name (or label) is keyed ``col_{index}`` so no cell
    is dropped.
    """
    metadata = list(column_metadata or [])
    rows = []
    for record in records:
        row: dict[str, Any] = {}
        for index, field in enumerate(record):
            meta = metadata[index] if index < len(metadata) else {}
            name = meta.get("name") or meta.get("label") or f"col_{index}"
            row[name] = decode_field(field)
        rows.append(row)
    return rows
