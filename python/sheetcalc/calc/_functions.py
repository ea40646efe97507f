"""Function catalog and builtin implementations for formula evaluation."""

from __future__ import annotations

import functools
import math
import random
from typing import Callable, Union

from sheetcalc._utils import number_range

FunctionResult = Union[float, bool, list]

# ---------------------------------------------------------------------------
# Catalog: every function the engine knows, with the kind of value it returns.
# ---------------------------------------------------------------------------

FUNCTION_CATALOG: dict[str, str] = {
    # Aggregates (3)
    "sum": "number",
    "average": "number",
    "median": "number",
    # Predicates (3)
    "someeven": "boolean",
    "everyeven": "boolean",
    "has2": "boolean",
    # List transforms (6)
    "even": "list",
    "firsttwo": "list",
    "lasttwo": "list",
    "increment": "list",
    "range": "list",
    "nodupes": "list",
    # Generators (1)
    "random": "number",
}


def is_supported(func_name: str) -> bool:
    """Check if a function name is in the catalog."""
    return func_name.lower() in FUNCTION_CATALOG


# ---------------------------------------------------------------------------
# Builtin implementations.
# Each takes the parsed numeric argument list.
# ---------------------------------------------------------------------------


def _is_even(num: float) -> bool:
    return num % 2 == 0


def _builtin_sum(nums: list[float]) -> float:
    return sum(nums, 0.0)


def _builtin_average(nums: list[float]) -> float:
    if not nums:
        return math.nan
    return _builtin_sum(nums) / len(nums)


def _builtin_median(nums: list[float]) -> float:
    """Middle value; the mean of the two middle values for an even count."""
    ordered = sorted(nums)
    length = len(ordered)
    if not length:
        return math.nan
    middle = length // 2
    if length % 2 == 0:
        return _builtin_average([ordered[middle - 1], ordered[middle]])
    return ordered[middle]


def _builtin_even(nums: list[float]) -> list[float]:
    return [num for num in nums if _is_even(num)]


def _builtin_someeven(nums: list[float]) -> bool:
    return any(_is_even(num) for num in nums)


def _builtin_everyeven(nums: list[float]) -> bool:
    return all(_is_even(num) for num in nums)


def _builtin_firsttwo(nums: list[float]) -> list[float]:
    return nums[:2]


def _builtin_lasttwo(nums: list[float]) -> list[float]:
    return nums[-2:]


def _builtin_has2(nums: list[float]) -> bool:
    return 2 in nums


def _builtin_increment(nums: list[float]) -> list[float]:
    return [num + 1 for num in nums]


def _builtin_random(nums: list[float], rng: random.Random | None = None) -> float:
    """``floor(random() * y + x)`` for ``[x, y]``.

    The draw is scaled by *y* and offset by *x*, so the result lies in
    ``[x, x + y)`` rather than between x and y.
    """
    x = nums[0] if len(nums) > 0 else math.nan
    y = nums[1] if len(nums) > 1 else math.nan
    draw = (rng or random).random() * y + x
    if math.isnan(draw) or math.isinf(draw):
        return draw
    return float(math.floor(draw))


def _builtin_range(nums: list[float]) -> list[float]:
    start = nums[0] if len(nums) > 0 else math.nan
    end = nums[1] if len(nums) > 1 else math.nan
    return number_range(start, end)


def _builtin_nodupes(nums: list[float]) -> list[float]:
    return list(dict.fromkeys(nums))


_BUILTINS: dict[str, Callable[..., FunctionResult]] = {
    "sum": _builtin_sum,
    "average": _builtin_average,
    "median": _builtin_median,
    "even": _builtin_even,
    "someeven": _builtin_someeven,
    "everyeven": _builtin_everyeven,
    "firsttwo": _builtin_firsttwo,
    "lasttwo": _builtin_lasttwo,
    "has2": _builtin_has2,
    "increment": _builtin_increment,
    "random": _builtin_random,
    "range": _builtin_range,
    "nodupes": _builtin_nodupes,
}

if set(_BUILTINS) != set(FUNCTION_CATALOG):
    raise RuntimeError(
        f"Builtin table out of sync with FUNCTION_CATALOG: "
        f"{sorted(set(_BUILTINS) ^ set(FUNCTION_CATALOG))}"
    )


class FunctionRegistry:
    """Registry of callable function implementations.

    Starts with the builtins and can be extended with custom functions.
    Names are case-insensitive.  *rng* feeds the ``random`` builtin.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._functions: dict[str, Callable[[list[float]], FunctionResult]] = dict(_BUILTINS)
        self._functions["random"] = functools.partial(_builtin_random, rng=rng)

    def register(self, name: str, func: Callable[[list[float]], FunctionResult]) -> None:
        self._functions[name.lower()] = func

    def get(self, name: str) -> Callable[[list[float]], FunctionResult] | None:
        return self._functions.get(name.lower())

    def has(self, name: str) -> bool:
        return name.lower() in self._functions

    @property
    def supported_functions(self) -> frozenset[str]:
        return frozenset(self._functions.keys())
