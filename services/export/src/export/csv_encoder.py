"""CSV encoding for export artifacts.

Header is the column list; one line per row in input order. A field is
quoted only when it contains a comma, a double quote or a newline, and
embedded quotes are doubled. No trailing newline.
"""

from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

_NEEDS_QUOTES = (",", '"', "\n")


def _stringify(value: Any) -> str:
    # Match ClickHouse's text output: DateTime64 milliseconds only when set,
    # whole-number floats without a trailing ".0".
    if isinstance(value, datetime):
        text = value.strftime("%Y-%m-%d %H:%M:%S")
        if value.microsecond:
            text += f".{value.microsecond // 1000:03d}"
        return text
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    text = _stringify(value)
    if any(ch in text for ch in _NEEDS_QUOTES):
        return '"' + text.replace('"', '""') + '"'
    return text


def format_row(row: Mapping[str, Any], columns: Sequence[str]) -> str:
    return ",".join(format_value(row.get(column)) for column in columns)


def to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """Encode rows as CSV text; returns "" when there are no rows."""
    lines = [format_row(row, columns) for row in rows]
    if not lines:
        return ""
    return "\n".join([",".join(columns)] + lines)
