"""Reference handling: range expansion, reference extraction and cell substitution."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from sheetcalc._utils import a1_to_rowcol, char_range, number_range, rowcol_to_a1

if TYPE_CHECKING:
    from sheetcalc.calc._protocol import CellStore

# ---------------------------------------------------------------------------
# Regex patterns for the A-J x 1-99 grid
# ---------------------------------------------------------------------------

_CELL_REF = r"([A-J])([1-9][0-9]?)"
_SINGLE_REF_RE = re.compile(r"[A-J][1-9][0-9]?", re.IGNORECASE)
_RANGE_REF_RE = re.compile(rf"{_CELL_REF}:{_CELL_REF}", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Range expansion
# ---------------------------------------------------------------------------


def expand_range(range_ref: str) -> list[str]:
    """Expand a range like ``"A1:B2"`` into ``["A1", "B1", "A2", "B2"]``.

    Rows are the outer loop, columns the inner one.  Bounds are taken as
    written: a reversed range (``"A3:A1"``) expands to nothing, and nothing
    is checked against the grid.
    """
    parts = range_ref.split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid range: {range_ref!r}")

    start_row, start_col = a1_to_rowcol(parts[0])
    end_row, end_col = a1_to_rowcol(parts[1])

    columns = char_range(start_col, end_col)
    return [
        rowcol_to_a1(int(row), col)
        for row in number_range(start_row, end_row)
        for col in columns
    ]


# ---------------------------------------------------------------------------
# Reference extraction
# ---------------------------------------------------------------------------


def parse_references(formula: str) -> list[str]:
    """Extract the single cell references of a formula, canonical and unique.

    References that are endpoints of a range are left out; use
    :func:`parse_range_references` for those.
    """
    range_spans = [(m.start(), m.end()) for m in _RANGE_REF_RE.finditer(formula)]
    refs: list[str] = []
    seen: set[str] = set()

    for m in _SINGLE_REF_RE.finditer(formula):
        pos = m.start()
        if any(s <= pos < e for s, e in range_spans):
            continue
        canonical = m.group(0).upper()
        if canonical not in seen:
            refs.append(canonical)
            seen.add(canonical)

    return refs


def parse_range_references(formula: str) -> list[str]:
    """Extract all range references from a formula as ``"A1:B5"`` strings."""
    ranges: list[str] = []
    seen: set[str] = set()

    for m in _RANGE_REF_RE.finditer(formula):
        canonical = m.group(0).upper()
        if canonical not in seen:
            ranges.append(canonical)
            seen.add(canonical)

    return ranges


def all_references(formula: str) -> list[str]:
    """Every cell a formula reads: single refs plus expanded ranges."""
    refs: list[str] = []
    seen: set[str] = set()

    for ref in parse_references(formula):
        if ref not in seen:
            refs.append(ref)
            seen.add(ref)

    for rng in parse_range_references(formula):
        for ref in expand_range(rng):
            if ref not in seen:
                refs.append(ref)
                seen.add(ref)

    return refs


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------


def expand_ranges(formula: str, store: CellStore) -> str:
    """Replace every range with the comma-joined values of its cells."""

    def _substitute(m: re.Match[str]) -> str:
        return ",".join(store.lookup(ref) for ref in expand_range(m.group(0)))

    return _RANGE_REF_RE.sub(_substitute, formula)


def resolve_cells(formula: str, store: CellStore) -> str:
    """Replace every single cell reference with its stored value.

    A reference the store does not know raises
    :class:`~sheetcalc._errors.CellLookupError`.
    """
    return _SINGLE_REF_RE.sub(lambda m: store.lookup(m.group(0).upper()), formula)


def resolve_references(formula: str, store: CellStore) -> str:
    """Ranges first, then the remaining single references."""
    return resolve_cells(expand_ranges(formula, store), store)
