"""Exception hierarchy for formula evaluation."""

from __future__ import annotations


class FormulaError(Exception):
    """Base class for every error raised by sheetcalc."""


class CellLookupError(FormulaError, KeyError):
    """A referenced cell has no entry in the cell store."""

    def __init__(self, cell_id: str, reason: str = "is not populated") -> None:
        self.cell_id = cell_id
        super().__init__(f"Cell {cell_id!r} {reason}")

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0])


class InvalidCellError(FormulaError, ValueError):
    """A cell identifier is malformed or lies outside the grid."""


class InvalidRangeError(FormulaError, ValueError):
    """A numeric range whose length is not a whole number."""


class UnknownFunctionError(FormulaError):
    """A function call names no registered function (strict mode only)."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown function: {name}")


class NonConvergentFormulaError(FormulaError):
    """The rewrite loop did not reach a fixed point within the iteration cap."""

    def __init__(self, formula: str, iterations: int, last: str) -> None:
        self.formula = formula
        self.iterations = iterations
        self.last = last
        super().__init__(
            f"Formula {formula!r} did not converge after {iterations} passes "
            f"(last: {last!r})"
        )


class FormulaSyntaxError(FormulaError, ValueError):
    """The tree evaluator could not parse a formula."""


class FormulaDepthError(FormulaError):
    """Expression nesting exceeded the tree evaluator's depth guard."""
