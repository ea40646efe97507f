"""Command line entry point: evaluate one formula against a few cells."""

from __future__ import annotations

import argparse
import logging
import sys

from sheetcalc._errors import FormulaError
from sheetcalc._sheet import Sheet
from sheetcalc.calc._tree import DEFAULT_MAX_DEPTH, TreeEvaluator


def _parse_cell(arg: str) -> tuple[str, str]:
    cell_id, sep, text = arg.partition("=")
    if not sep or not cell_id:
        raise argparse.ArgumentTypeError(f"expected CELL=VALUE, got {arg!r}")
    return cell_id, text


def _positive_int(arg: str) -> int:
    try:
        value = int(arg)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a whole number, got {arg!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetcalc",
        description="Evaluate a spreadsheet formula against an A1:J99 grid.",
    )
    parser.add_argument("formula", help="Formula to evaluate, with or without a leading '='")
    parser.add_argument(
        "-c", "--cell", action="append", default=[], type=_parse_cell, metavar="CELL=VALUE",
        help="Populate a cell before evaluating; values starting with '=' are formulas. "
             "Repeatable, applied in order.",
    )
    parser.add_argument(
        "--max-iterations", type=_positive_int, default=None,
        help="Fail instead of looping when the formula has not settled after this many passes",
    )
    parser.add_argument("--strict", action="store_true", help="Treat unknown function names as errors")
    parser.add_argument("--tree", action="store_true", help="Use the tree evaluator instead of rewriting")
    parser.add_argument(
        "--max-depth", type=_positive_int, default=DEFAULT_MAX_DEPTH,
        help="Nesting limit for the tree evaluator",
    )
    parser.add_argument("--debug", action="store_true", help="Log every evaluation step")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    formula = "".join(args.formula.split())
    if formula.startswith("="):
        formula = formula[1:]

    try:
        sheet = Sheet(max_iterations=args.max_iterations, strict=args.strict)
        for cell_id, text in args.cell:
            sheet[cell_id] = text
        if args.tree:
            result = TreeEvaluator(sheet, max_depth=args.max_depth).evaluate_text(formula)
        else:
            result = sheet.evaluate(formula)
    except FormulaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
