"""
solrclient Utilities — Escaping and Date Normalization
======================================================

Small pure helpers shared by the query builders and the client:

    escape_lucene_chars   → make user text safe inside a Lucene clause
    convert_dates_to_iso  → turn datetimes anywhere in a structure into strings
    format_value          → render a scalar the way Solr expects on the wire
"""

import re
from datetime import date, datetime, timezone
from typing import Any, List, Optional
from urllib.parse import quote_plus


_LUCENE_SPECIAL = re.compile(r'([+\-!(){}\[\]^"~*?:\\/])')


def escape_lucene_chars(text: Any) -> Any:
    """
    Escape Lucene special characters in a query string.

    Non-string input is returned unchanged.

    Args:
        text: Text to escape

    Returns:
        Escaped text
    """
    if not isinstance(text, str):
        return text

    escaped = _LUCENE_SPECIAL.sub(r"\\\1", text)
    return escaped.replace("&&", r"\&\&").replace("||", r"\|\|")


def format_date_to_iso(value: date) -> Optional[str]:
    """
    Format a date or datetime as a UTC ISO-8601 string.

    Naive datetimes are taken as UTC. Returns None when the value
    cannot be represented in UTC.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    try:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None

    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}T"
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}."
        f"{value.microsecond // 1000:03d}Z"
    )


def convert_dates_to_iso(value: Any) -> Any:
    """
    Recursively replace dates in a nested structure with ISO strings.

    Lists, tuples and dicts are copied, never mutated.

    Args:
        value: Any value (scalar, list, tuple, dict)

    Returns:
        A new structure with every date converted
    """
    if isinstance(value, list):
        return [convert_dates_to_iso(v) for v in value]
    if isinstance(value, tuple):
        return tuple(convert_dates_to_iso(v) for v in value)
    if isinstance(value, dict):
        return {k: convert_dates_to_iso(v) for k, v in value.items()}
    if isinstance(value, date):
        return format_date_to_iso(value)
    return value


def to_list(value: Any) -> List[Any]:
    """Wrap a single value in a list; lists and tuples become lists."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def join_values(value: Any, sep: str = ",") -> str:
    """Join a single value or a sequence of values into one string."""
    return sep.join(format_value(v) for v in to_list(value))


def format_value(value: Any) -> str:
    """
    Render a scalar for the wire.

    Booleans become ``true``/``false``, dates become ISO strings,
    None becomes ``null``; everything else goes through ``str``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        converted = format_date_to_iso(value)
        return "null" if converted is None else converted
    if value is None:
        return "null"
    return str(value)


def encode(value: Any) -> str:
    """Form-encode a single value."""
    return quote_plus(format_value(value))


def encode_params(params: dict) -> str:
    """
    Encode a mapping as a form query string.

    List values are repeated under the same key; None values are skipped.
    """
    fragments = []
    for key, value in params.items():
        if value is None:
            continue
        for item in to_list(value):
            fragments.append(f"{quote_plus(str(key))}={encode(item)}")
    return "&".join(fragments)
