"""Cell-id helpers plus JavaScript-compatible number parsing and formatting."""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any

from sheetcalc._errors import InvalidCellError, InvalidRangeError

_A1_RE = re.compile(r"^([A-Za-z])([1-9][0-9]*)$")

# Leading numeric prefix accepted by JavaScript's parseFloat
_FLOAT_PREFIX_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INFINITY_RE = re.compile(r"([+-]?)Infinity")


def a1_to_rowcol(ref: str) -> tuple[int, str]:
    """``"b7"`` -> ``(7, "B")``.  Single-letter columns only."""
    m = _A1_RE.match(ref.strip())
    if not m:
        raise InvalidCellError(f"Invalid cell reference: {ref!r}")
    return int(m.group(2)), m.group(1).upper()


def rowcol_to_a1(row: int, col: str) -> str:
    return f"{col.upper()}{row}"


def number_range(start: float, end: float) -> list[float]:
    """``start, start + 1, ..., end`` (inclusive).

    Empty when *end* is below *start*.  Raises :class:`InvalidRangeError`
    when the span is not a whole number (fractional or NaN bounds).
    """
    count = end - start + 1
    if math.isnan(count) or math.isinf(count) or count != int(count):
        raise InvalidRangeError(f"Invalid range length: {start!r}..{end!r}")
    if count <= 0:
        return []
    return [start + i for i in range(int(count))]


def char_range(start: str, end: str) -> list[str]:
    """Letters from *start* to *end* inclusive, by code point."""
    return [chr(int(code)) for code in number_range(ord(start), ord(end))]


def parse_float(text: Any) -> float:
    """Parse the leading number of *text* like JavaScript's ``parseFloat``.

    Returns ``nan`` when *text* has no numeric prefix.
    """
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return float(text)
    s = str(text).lstrip()
    m = _FLOAT_PREFIX_RE.match(s)
    if m:
        return float(m.group(0))
    m = _INFINITY_RE.match(s)
    if m:
        return -math.inf if m.group(1) == "-" else math.inf
    return math.nan


def format_number(value: float) -> str:
    """Render a number the way JavaScript's ``String(number)`` does."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    text = repr(float(value))
    if 1e-6 <= abs(value) < 1e21:
        text = format(Decimal(text), "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text
    mantissa, _, exponent = text.partition("e")
    if mantissa.endswith(".0"):
        mantissa = mantissa[:-2]
    return f"{mantissa}e{int(exponent):+d}"


def format_value(value: Any) -> str:
    """Textual form of a function result: numbers, booleans or lists."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(v) for v in value)
    if isinstance(value, (int, float)):
        return format_number(float(value))
    return str(value)
