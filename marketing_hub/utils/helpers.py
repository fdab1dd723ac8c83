"""
Helper utilities
"""
from datetime import date, datetime
from typing import Any, Optional
import re

from dateutil import parser as date_parser

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def format_ratio(numerator: float, denominator: float, scale: float = 1.0, digits: int = 2) -> str:
    """
    Fixed-decimal string of numerator / denominator * scale.

    Returns "0" (not "0.00") when the denominator is zero, which is the
    sentinel dashboards key off for "no data".
    """
    if not denominator:
        return "0"
    return f"{numerator / denominator * scale:.{digits}f}"


def format_percent(numerator: float, denominator: float, digits: int = 2) -> str:
    return format_ratio(numerator, denominator, scale=100.0, digits=digits)


def is_numeric_string(value: str) -> bool:
    """True when the whole string is a plain decimal/scientific number."""
    return bool(_NUMERIC_RE.match(value.strip())) if value else False


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce a vendor value (number, numeric string, None) to float."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().replace(",", "")
    if text.endswith("%"):
        text = text[:-1]
    if not is_numeric_string(text):
        return default
    return float(text)


def to_int(value: Any, default: int = 0) -> int:
    """Coerce to int, truncating decimals ("12.7" -> 12)."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    number = to_float(value, default=None)
    return int(number) if number is not None else default


def to_number(value: Any) -> Any:
    """Numeric coercion keeping integral values as int; anything unparseable becomes 0."""
    number = to_float(value)
    return int(number) if number.is_integer() else number


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date from a vendor value.

    Accepts ISO dates and timestamps, other common spellings
    ("01/15/2024", "Jan 15 2024") and compact YYYYMMDD values, including
    the float 20240115.0 a CSV number cell becomes. Empty values give
    None. Anything unparseable raises ValueError so callers can reject
    the record.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid date value: {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) or len(str(value)) != 8:
            raise ValueError(f"Invalid date value: {value!r}")
        value = str(value)

    text = str(value).strip()
    try:
        return date_parser.isoparse(text).date()
    except ValueError:
        pass
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Invalid date value: {value!r}") from e


def truncate(text: Optional[str], max_chars: int) -> Optional[str]:
    """Cap free text stored in audit columns."""
    if text is None or len(text) <= max_chars:
        return text
    return text[:max_chars - 3] + "..."
