"""Sheet: the A1:J99 grid of cells, evaluating formulas as they are entered."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator

from sheetcalc._errors import CellLookupError, InvalidCellError
from sheetcalc._utils import a1_to_rowcol, char_range, number_range, rowcol_to_a1
from sheetcalc.calc._evaluator import FormulaEvaluator
from sheetcalc.calc._functions import FunctionRegistry
from sheetcalc.calc._parser import all_references

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s")

FIRST_COLUMN, LAST_COLUMN = "A", "J"
FIRST_ROW, LAST_ROW = 1, 99


class Sheet:
    """A fixed grid of text cells that doubles as the formula cell store.

    Writing ``=<formula>`` to a cell stores the evaluated result; anything
    else is stored as typed.  A formula that reads the cell it is written
    to is stored unevaluated.

    Usage::

        sheet = Sheet()
        sheet["A1"] = "1"
        sheet["A2"] = "2"
        sheet["A3"] = "=SUM(A1:A2)"
        sheet["A3"]   # "3"
    """

    __slots__ = ("_cells", "_evaluator")

    def __init__(
        self,
        registry: FunctionRegistry | None = None,
        *,
        max_iterations: int | None = None,
        strict: bool = False,
    ) -> None:
        self._cells: dict[str, str] = {}
        self._evaluator = FormulaEvaluator(
            self, registry, max_iterations=max_iterations, strict=strict,
        )

    # ------------------------------------------------------------------
    # Grid shape
    # ------------------------------------------------------------------

    @property
    def columns(self) -> list[str]:
        return char_range(FIRST_COLUMN, LAST_COLUMN)

    @property
    def rows(self) -> list[int]:
        return [int(row) for row in number_range(FIRST_ROW, LAST_ROW)]

    def labels(self) -> list[str]:
        """Column labels followed by row labels, as drawn around the grid."""
        return self.columns + [str(row) for row in self.rows]

    def _canonical(self, cell_id: str) -> str | None:
        """Uppercase id of a cell inside the grid, or None."""
        try:
            row, col = a1_to_rowcol(cell_id)
        except InvalidCellError:
            return None
        if col not in self.columns or not FIRST_ROW <= row <= LAST_ROW:
            return None
        return rowcol_to_a1(row, col)

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def lookup(self, cell_id: str) -> str:
        """Display text of a populated cell (the :class:`CellStore` protocol)."""
        canonical = self._canonical(cell_id)
        if canonical is None:
            raise CellLookupError(cell_id, "is outside the grid A1:J99")
        if canonical not in self._cells:
            raise CellLookupError(canonical)
        return self._cells[canonical]

    def __getitem__(self, cell_id: str) -> str:
        return self.lookup(cell_id)

    def __setitem__(self, cell_id: str, text: str) -> None:
        self.set(cell_id, text)

    def set(self, cell_id: str, text: str) -> str:
        """Enter *text* into a cell and return what the cell now displays."""
        canonical = self._canonical(cell_id)
        if canonical is None:
            raise InvalidCellError(f"Cell {cell_id!r} is outside the grid A1:J99")

        compact = _WHITESPACE_RE.sub("", text)
        if compact.startswith("="):
            body = compact[1:]
            if canonical in all_references(body):
                logger.debug("Formula in %s reads its own cell; stored as typed", canonical)
                self._cells[canonical] = text
            else:
                self._cells[canonical] = self._evaluator.evaluate(body)
        else:
            self._cells[canonical] = text
        return self._cells[canonical]

    def __delitem__(self, cell_id: str) -> None:
        canonical = self._canonical(cell_id)
        if canonical is None or canonical not in self._cells:
            raise CellLookupError(cell_id)
        del self._cells[canonical]

    def __contains__(self, cell_id: str) -> bool:
        canonical = self._canonical(cell_id)
        return canonical is not None and canonical in self._cells

    def __iter__(self) -> Iterator[str]:
        """Populated cell ids in grid order (row by row)."""
        for row in self.rows:
            for col in self.columns:
                ref = rowcol_to_a1(row, col)
                if ref in self._cells:
                    yield ref

    def __len__(self) -> int:
        return len(self._cells)

    def values(self) -> dict[str, str]:
        """Snapshot of populated cells in grid order."""
        return {ref: self._cells[ref] for ref in self}

    def evaluate(self, formula: str) -> str:
        """Evaluate a formula body against this sheet without storing it."""
        return self._evaluator.evaluate(formula)

    def __repr__(self) -> str:
        return f"<Sheet cells={len(self._cells)}>"
