"""Tests for sheetcalc.calc FormulaEvaluator and function application."""

from __future__ import annotations

import logging

import pytest
from sheetcalc._errors import CellLookupError, NonConvergentFormulaError, UnknownFunctionError
from sheetcalc.calc._evaluator import FormulaEvaluator, apply_function, evaluate_formula
from sheetcalc.calc._functions import FunctionRegistry
from sheetcalc.calc._protocol import CellStore, DictCellStore


class _FixedRandom:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


def _evaluator(cells: dict[str, str] | None = None, **kwargs) -> FormulaEvaluator:
    return FormulaEvaluator(DictCellStore(cells), **kwargs)


class TestApplyFunction:
    def test_simple_call(self) -> None:
        assert apply_function("SUM(1,2,3)") == "6"

    def test_case_insensitive_name(self) -> None:
        assert apply_function("sum(1,2)") == "3"

    def test_innermost_call_first(self) -> None:
        assert apply_function("SUM(AVERAGE(2,4),1)") == "SUM(3,1)"

    def test_only_last_call_applied(self) -> None:
        assert apply_function("SUM(1,2)+SUM(3,4)") == "SUM(1,2)+7"

    def test_list_result_comma_joined(self) -> None:
        assert apply_function("EVEN(1,2,3,4)") == "2,4"

    def test_boolean_results(self) -> None:
        assert apply_function("HAS2(2)") == "true"
        assert apply_function("someeven(1,3)") == "false"

    def test_empty_arguments_parse_as_nan(self) -> None:
        assert apply_function("SUM()") == "NaN"

    def test_spaces_in_arguments(self) -> None:
        assert apply_function("MEDIAN(1, 2, 3)") == "2"

    def test_unknown_left_verbatim(self) -> None:
        assert apply_function("FOO(1,2)") == "FOO(1,2)"

    def test_unknown_strict(self) -> None:
        with pytest.raises(UnknownFunctionError, match="FOO"):
            apply_function("FOO(1,2)", strict=True)

    def test_bare_group_left_in_strict_mode(self) -> None:
        assert apply_function("(3)*3", strict=True) == "(3)*3"

    def test_unknown_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="sheetcalc.calc._evaluator"):
            apply_function("FOO(1)")
        assert "FOO" in caplog.text


class TestConformance:
    def test_precedence(self) -> None:
        assert _evaluator().evaluate("2+3*4") == "14"

    def test_left_to_right_subtraction(self) -> None:
        assert _evaluator().evaluate("10-2-3") == "5"

    def test_range_sum(self) -> None:
        ev = _evaluator({"A1": "1", "A2": "2", "A3": "3"})
        assert ev.evaluate("SUM(A1:A3)") == "6"

    def test_average(self) -> None:
        assert _evaluator().evaluate("AVERAGE(2,4)") == "3"

    def test_nested_calls(self) -> None:
        assert _evaluator().evaluate("SUM(AVERAGE(2,4),1)") == "4"

    def test_median_parity(self) -> None:
        assert _evaluator().evaluate("MEDIAN(1,2,3,4)") == "2.5"
        assert _evaluator().evaluate("MEDIAN(1,2,3)") == "2"

    def test_idempotent(self) -> None:
        ev = _evaluator({"A1": "1", "A2": "2", "A3": "3"})
        for formula in ("2+3*4", "SUM(A1:A3)*2", "SUM(AVERAGE(2,4),1)", "EVEN(A1:A3)"):
            once = ev.evaluate(formula)
            assert ev.evaluate(once) == once

    def test_unknown_cell_fails(self) -> None:
        with pytest.raises(CellLookupError):
            _evaluator().evaluate("A1+1")


class TestFormulaEvaluator:
    def test_function_result_feeds_arithmetic(self) -> None:
        ev = _evaluator({"A1": "1", "A2": "2", "A3": "3"})
        assert ev.evaluate("SUM(A1:A3)*2") == "12"

    def test_lowercase_references(self) -> None:
        assert _evaluator({"A1": "1", "A2": "2"}).evaluate("a1+a2") == "3"

    def test_cell_text_is_resolved_on_later_passes(self) -> None:
        assert _evaluator({"A1": "B1", "B1": "7"}).evaluate("A1") == "7"

    def test_list_functions(self) -> None:
        ev = _evaluator({"A1": "1", "A2": "2", "A3": "3"})
        assert ev.evaluate("has2(A1:A3)") == "true"
        assert ev.evaluate("range(1,5)") == "1,2,3,4,5"
        assert ev.evaluate("SUM(range(1,4))") == "10"
        assert ev.evaluate("nodupes(1,2,2,3)") == "1,2,3"
        assert ev.evaluate("increment(firsttwo(A1:A3))") == "2,3"

    def test_float_output(self) -> None:
        assert _evaluator().evaluate("0.1+0.2") == "0.30000000000000004"

    def test_division_by_zero_is_not_an_error(self) -> None:
        assert _evaluator().evaluate("1/0") == "Infinity"
        assert _evaluator().evaluate("0/0") == "NaN"

    def test_empty_cell_gives_nan(self) -> None:
        assert _evaluator({"A1": ""}).evaluate("SUM(A1)") == "NaN"

    def test_unknown_function_left_verbatim(self) -> None:
        assert _evaluator().evaluate("FOO(1,2)") == "FOO(1,2)"

    def test_unknown_function_strict(self) -> None:
        with pytest.raises(UnknownFunctionError):
            _evaluator(strict=True).evaluate("FOO(1,2)")

    def test_no_unary_minus(self) -> None:
        assert _evaluator().evaluate("2*-3") == "2*-3"
        # "1-5" -> "-4", then "4+10" is rewritten behind the leading "-"
        assert _evaluator().evaluate("1-5+10") == "-14"

    def test_custom_function(self) -> None:
        reg = FunctionRegistry()
        reg.register("double", lambda nums: [n * 2 for n in nums])
        ev = FormulaEvaluator(DictCellStore(), reg)
        assert ev.evaluate("double(1,2)") == "2,4"
        assert ev.evaluate("SUM(double(1,2))") == "6"

    def test_random_with_fixed_source(self) -> None:
        reg = FunctionRegistry(rng=_FixedRandom(0.5))
        assert FormulaEvaluator(DictCellStore(), reg).evaluate("RANDOM(1,10)") == "6"

    def test_store_property(self) -> None:
        store = DictCellStore({"A1": "1"})
        ev = FormulaEvaluator(store)
        assert ev.store is store
        assert isinstance(store, CellStore)


class TestTrace:
    def test_passes_recorded(self) -> None:
        result = _evaluator().trace("2+3*4")
        assert result.formula == "2+3*4"
        assert result.value == "14"
        assert result.passes == ("14", "14")
        assert result.iterations == 2

    def test_chain_passes(self) -> None:
        result = _evaluator().trace("10-2-3")
        assert result.passes == ("8-3", "5", "5")

    def test_already_stable(self) -> None:
        assert _evaluator().trace("14").iterations == 1


class TestIterationCap:
    def test_converging_formula_within_cap(self) -> None:
        assert _evaluator(max_iterations=10).evaluate("10-2-3") == "5"

    def test_cycle_raises(self) -> None:
        ev = _evaluator({"A1": "B1", "B1": "A1"}, max_iterations=10)
        with pytest.raises(NonConvergentFormulaError) as exc_info:
            ev.evaluate("A1")
        assert exc_info.value.iterations == 10
        assert exc_info.value.last in ("A1", "B1")

    def test_cap_counts_confirming_pass(self) -> None:
        with pytest.raises(NonConvergentFormulaError):
            _evaluator(max_iterations=1).evaluate("2+3*4")

    def test_invalid_cap(self) -> None:
        with pytest.raises(ValueError):
            _evaluator(max_iterations=0)


class TestEvaluateFormula:
    def test_entry_point(self) -> None:
        store = DictCellStore({"A1": "1", "A2": "2", "A3": "3"})
        assert evaluate_formula("SUM(A1:A3)", store) == "6"

    def test_options_forwarded(self) -> None:
        with pytest.raises(UnknownFunctionError):
            evaluate_formula("FOO(1)", DictCellStore(), strict=True)
