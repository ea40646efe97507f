"""sheetcalc - a small fixed-point spreadsheet formula engine.

Usage::

    from sheetcalc import Sheet, DictCellStore, evaluate_formula

    # Against any cell store
    store = DictCellStore({"A1": "1", "A2": "2", "A3": "3"})
    evaluate_formula("SUM(A1:A3)", store)   # "6"

    # Against a grid that evaluates formulas as they are entered
    sheet = Sheet()
    sheet["A1"] = "2"
    sheet["B1"] = "=A1*3+1"
    sheet["B1"]   # "7"
"""

from sheetcalc._errors import (
    CellLookupError,
    FormulaDepthError,
    FormulaError,
    FormulaSyntaxError,
    InvalidCellError,
    InvalidRangeError,
    NonConvergentFormulaError,
    UnknownFunctionError,
)
from sheetcalc._sheet import Sheet
from sheetcalc.calc import (
    CellStore,
    DictCellStore,
    FormulaEvaluator,
    FunctionRegistry,
    TreeEvaluator,
    evaluate_formula,
    evaluate_tree,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CellLookupError",
    "CellStore",
    "DictCellStore",
    "FormulaDepthError",
    "FormulaError",
    "FormulaEvaluator",
    "FormulaSyntaxError",
    "FunctionRegistry",
    "InvalidCellError",
    "InvalidRangeError",
    "NonConvergentFormulaError",
    "Sheet",
    "TreeEvaluator",
    "UnknownFunctionError",
    "evaluate_formula",
    "evaluate_tree",
]
