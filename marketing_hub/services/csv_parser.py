"""
CSV Parser

Turns a raw CSV export (Drive, Marketing Cloud, manual uploads) into a list
of records keyed by normalised header name.

Rules:
- The first line is the header row; fewer than two lines gives no records.
- Quoted fields may contain commas; "" inside quotes is a literal quote.
  Quoted newlines are not supported: every physical line is one row.
- Rows whose field count differs from the header count are skipped.
- A field that is entirely a number becomes a float; anything else
  (including the empty string) stays the original string.
- Headers are lowercased with whitespace runs collapsed to "_".
"""
import csv
import re
from typing import Any, Dict, List

from marketing_hub.utils.helpers import is_numeric_string

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_header(header: str) -> str:
    """'Open Rate ' -> 'open_rate'"""
    return _WHITESPACE_RE.sub("_", header.strip().lower())


def parse_csv_line(line: str) -> List[str]:
    """Split one physical line into trimmed fields, honouring double quotes."""
    rows = list(csv.reader([line], skipinitialspace=True))
    if not rows:
        return []
    return [field.strip() for field in rows[0]]


def coerce_value(token: str) -> Any:
    """Numeric-looking tokens become floats; everything else is kept verbatim."""
    if is_numeric_string(token):
        return float(token)
    return token


def parse_csv(csv_text: str) -> List[Dict[str, Any]]:
    """
    Parse CSV text into records.

    Args:
        csv_text: Raw file content

    Returns:
        Records in file order, one per well-formed data line
    """
    lines = [line.rstrip("\r") for line in csv_text.strip().split("\n")]
    if len(lines) < 2:
        return []

    headers = [normalize_header(h) for h in parse_csv_line(lines[0])]
    records: List[Dict[str, Any]] = []

    for line in lines[1:]:
        values = parse_csv_line(line)
        if len(values) != len(headers):
            continue
        records.append({header: coerce_value(value) for header, value in zip(headers, values)})

    return records


def csv_headers(records: List[Dict[str, Any]]) -> List[str]:
    """Column names of a parsed batch (taken from the first record)."""
    return list(records[0].keys()) if records else []
