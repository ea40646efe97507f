"""Infix arithmetic by textual rewriting.

Each rewrite replaces the leftmost ``<number><op><number>`` triple with its
result.  Multiplication and division are rewritten until none remain, then a
single addition or subtraction is rewritten; the formula evaluator's outer
loop picks up whatever is left on the next pass.  A leading ``-`` is never
read as negation.
"""

from __future__ import annotations

import math
import operator
import re
from typing import Callable

from sheetcalc._utils import format_number, parse_float

_HIGH_RE = re.compile(r"([0-9.]+)([*/])([0-9.]+)")
_LOW_RE = re.compile(r"([0-9.]+)([+-])([0-9.]+)")


def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


INFIX_OPERATORS: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _divide,
}


def _infix_eval(formula: str, pattern: re.Pattern[str]) -> str:
    """Rewrite the leftmost match of *pattern* with its computed value."""

    def _substitute(m: re.Match[str]) -> str:
        left, op, right = m.groups()
        return format_number(INFIX_OPERATORS[op](parse_float(left), parse_float(right)))

    return pattern.sub(_substitute, formula, count=1)


def high_precedence(formula: str) -> str:
    """Rewrite ``*`` and ``/`` one at a time, left to right, until none remain."""
    while True:
        rewritten = _infix_eval(formula, _HIGH_RE)
        if rewritten == formula:
            return formula
        formula = rewritten


def low_precedence(formula: str) -> str:
    """Rewrite the leftmost ``+`` or ``-`` triple."""
    return _infix_eval(formula, _LOW_RE)


def evaluate_arithmetic(formula: str) -> str:
    return low_precedence(high_precedence(formula))
