"""FormulaEvaluator: fixed-point rewriting of spreadsheet formulas.

A formula is plain text that each pass rewrites a little further:

1. ranges and cell references are replaced by the cells' display text,
2. infix arithmetic is reduced (``*``/``/`` fully, then one ``+``/``-``),
3. the last function call in the text is applied.

Passes repeat until one returns its own input unchanged.  Nothing bounds the
number of passes unless ``max_iterations`` is given, so a formula whose
references feed back into each other loops forever by default.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from sheetcalc._errors import NonConvergentFormulaError, UnknownFunctionError
from sheetcalc._utils import format_value, parse_float
from sheetcalc.calc._arithmetic import evaluate_arithmetic
from sheetcalc.calc._functions import FunctionRegistry
from sheetcalc.calc._parser import resolve_references
from sheetcalc.calc._protocol import EvaluationResult

if TYPE_CHECKING:
    from sheetcalc.calc._protocol import CellStore

logger = logging.getLogger(__name__)

# A call with numeric arguments and no "(" anywhere after it: the last call in
# the text, which is the innermost one for nested calls.
_FUNCTION_CALL_RE = re.compile(r"([a-z0-9]*)\(([0-9., ]*)\)(?!.*\()", re.IGNORECASE)


def _to_number_list(args: str) -> list[float]:
    return [parse_float(arg) for arg in args.split(",")]


def apply_function(
    formula: str,
    registry: FunctionRegistry | None = None,
    strict: bool = False,
) -> str:
    """Apply the last function call in *formula* and substitute its result.

    Unknown names are left as written, or raise
    :class:`UnknownFunctionError` when *strict* is set.  A bare
    parenthesized group (empty name) is always left as written.
    """
    functions = registry if registry is not None else FunctionRegistry()

    def _substitute(m: re.Match[str]) -> str:
        name, args = m.group(1), m.group(2)
        func = functions.get(name)
        if func is None:
            if strict and name:
                raise UnknownFunctionError(name)
            logger.debug("Unknown function %r left unevaluated", name)
            return m.group(0)
        return format_value(func(_to_number_list(args)))

    return _FUNCTION_CALL_RE.sub(_substitute, formula, count=1)


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class FormulaEvaluator:
    """Evaluates formula bodies against a cell store.

    Usage::

        evaluator = FormulaEvaluator(DictCellStore({"A1": "1", "A2": "2"}))
        evaluator.evaluate("SUM(A1:A2)*2")   # "6"

    *max_iterations* caps the number of passes and raises
    :class:`NonConvergentFormulaError` when it is exceeded.  *strict* turns
    unknown function names into :class:`UnknownFunctionError`.
    """

    def __init__(
        self,
        store: CellStore,
        registry: FunctionRegistry | None = None,
        *,
        max_iterations: int | None = None,
        strict: bool = False,
    ) -> None:
        if max_iterations is not None and max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self._store = store
        self._functions = registry if registry is not None else FunctionRegistry()
        self._max_iterations = max_iterations
        self._strict = strict

    @property
    def store(self) -> CellStore:
        return self._store

    def evaluate(self, formula: str) -> str:
        """Rewrite *formula* to its fixed point and return the final text."""
        return self.trace(formula).value

    def trace(self, formula: str) -> EvaluationResult:
        """Like :meth:`evaluate`, keeping the output of every pass."""
        passes: list[str] = []
        current = formula
        while True:
            if self._max_iterations is not None and len(passes) >= self._max_iterations:
                logger.debug("Formula %r still rewriting after %d passes", formula, len(passes))
                raise NonConvergentFormulaError(formula, len(passes), current)
            rewritten = self.rewrite_pass(current)
            passes.append(rewritten)
            if rewritten == current:
                break
            current = rewritten

        logger.debug("Formula %r -> %r in %d passes", formula, current, len(passes))
        return EvaluationResult(formula=formula, value=current, passes=tuple(passes))

    def rewrite_pass(self, formula: str) -> str:
        """One pass: references, then arithmetic, then one function call."""
        expanded = resolve_references(formula, self._store)
        reduced = evaluate_arithmetic(expanded)
        return apply_function(reduced, self._functions, self._strict)


def evaluate_formula(
    formula: str,
    store: CellStore,
    registry: FunctionRegistry | None = None,
    *,
    max_iterations: int | None = None,
    strict: bool = False,
) -> str:
    """Evaluate a formula body (no leading ``=``, no whitespace) against *store*."""
    evaluator = FormulaEvaluator(
        store, registry, max_iterations=max_iterations, strict=strict,
    )
    return evaluator.evaluate(formula)
