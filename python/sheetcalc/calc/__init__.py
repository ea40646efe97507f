"""sheetcalc.calc - Formula evaluation engine for sheetcalc grids."""

from sheetcalc.calc._arithmetic import evaluate_arithmetic, high_precedence, low_precedence
from sheetcalc.calc._evaluator import FormulaEvaluator, apply_function, evaluate_formula
from sheetcalc.calc._functions import FUNCTION_CATALOG, FunctionRegistry, is_supported
from sheetcalc.calc._parser import (
    all_references,
    expand_range,
    expand_ranges,
    resolve_cells,
    resolve_references,
)
from sheetcalc.calc._protocol import CellStore, DictCellStore, EvaluationResult
from sheetcalc.calc._tree import TreeEvaluator, evaluate_tree

__all__ = [
    "CellStore",
    "DictCellStore",
    "EvaluationResult",
    "FUNCTION_CATALOG",
    "FormulaEvaluator",
    "FunctionRegistry",
    "TreeEvaluator",
    "all_references",
    "apply_function",
    "evaluate_arithmetic",
    "evaluate_formula",
    "evaluate_tree",
    "expand_range",
    "expand_ranges",
    "high_precedence",
    "is_supported",
    "low_precedence",
    "resolve_cells",
    "resolve_references",
]
