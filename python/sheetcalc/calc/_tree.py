"""Tree evaluator: tokenizer, recursive descent parser and structural evaluation.

An alternative to the rewriting :class:`~sheetcalc.calc.FormulaEvaluator`.
Formulas are parsed once into a small expression tree and evaluated by
recursion, so evaluation always terminates.  Nesting deeper than
``max_depth`` raises :class:`FormulaDepthError`.  Operator chains are
folded in a loop, so only parentheses and calls add recursion depth.

Grammar::

    expr   := term (("+" | "-") term)*
    term   := factor (("*" | "/") factor)*
    factor := NUMBER | RANGE | REF | NAME "(" [expr ("," expr)*] ")" | "(" expr ")"

Precedence and left-to-right grouping match the rewriting evaluator.  There is
no unary minus, unknown function names raise :class:`UnknownFunctionError`,
and a cell's text is read as a number with ``parse_float``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, NamedTuple, Union

from sheetcalc._errors import (
    FormulaDepthError,
    FormulaError,
    FormulaSyntaxError,
    UnknownFunctionError,
)
from sheetcalc._utils import format_value, parse_float
from sheetcalc.calc._arithmetic import INFIX_OPERATORS
from sheetcalc.calc._functions import FunctionRegistry, FunctionResult
from sheetcalc.calc._parser import expand_range

if TYPE_CHECKING:
    from sheetcalc.calc._protocol import CellStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TokenType(Enum):
    NUMBER = auto()
    RANGE = auto()
    NAME = auto()
    OPERATOR = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()


class Token(NamedTuple):
    type: TokenType
    value: str
    start: int


# Order matters: ranges before names, since "A1:B2" starts with a name.
_TOKEN_PATTERNS = [
    (TokenType.NUMBER, re.compile(r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+")),
    (TokenType.RANGE, re.compile(r"[A-J][1-9][0-9]?:[A-J][1-9][0-9]?", re.IGNORECASE)),
    (TokenType.NAME, re.compile(r"[A-Za-z][A-Za-z0-9]*")),
    (TokenType.OPERATOR, re.compile(r"[-+*/]")),
    (TokenType.LPAREN, re.compile(r"\(")),
    (TokenType.RPAREN, re.compile(r"\)")),
    (TokenType.COMMA, re.compile(r",")),
]

_CELL_NAME_RE = re.compile(r"[A-J][1-9][0-9]?", re.IGNORECASE)


def tokenize(formula: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    while pos < len(formula):
        if formula[pos].isspace():
            pos += 1
            continue
        for token_type, pattern in _TOKEN_PATTERNS:
            m = pattern.match(formula, pos)
            if m:
                tokens.append(Token(token_type, m.group(0), pos))
                pos = m.end()
                break
        else:
            raise FormulaSyntaxError(f"Unexpected character {formula[pos]!r} at {pos}")
    return tokens


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class CellRef:
    cell_id: str  # canonical uppercase


@dataclass(frozen=True)
class RangeRef:
    start: str
    end: str


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Call:
    name: str  # lowercase
    args: tuple[Node, ...]


Node = Union[Number, CellRef, RangeRef, BinaryOp, Call]
Value = Union[float, bool, list]

# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class FormulaTreeParser:
    """Recursive descent parser producing :data:`Node` trees."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._max_depth = max_depth
        self._tokens: list[Token] = []
        self._pos = 0

    def parse(self, formula: str) -> Node:
        self._tokens = tokenize(formula)
        self._pos = 0
        if not self._tokens:
            raise FormulaSyntaxError("Empty formula")
        node = self._parse_expr(0)
        if self._pos < len(self._tokens):
            tok = self._tokens[self._pos]
            raise FormulaSyntaxError(f"Unexpected {tok.value!r} at {tok.start}")
        return node

    def _peek(self) -> Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _advance(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise FormulaSyntaxError("Unexpected end of formula")
        self._pos += 1
        return tok

    def _at_operator(self, *ops: str) -> bool:
        tok = self._peek()
        return tok is not None and tok.type is TokenType.OPERATOR and tok.value in ops

    def _expect(self, token_type: TokenType) -> Token:
        tok = self._advance()
        if tok.type is not token_type:
            raise FormulaSyntaxError(f"Expected {token_type.name} at {tok.start}, got {tok.value!r}")
        return tok

    def _parse_expr(self, depth: int) -> Node:
        if depth > self._max_depth:
            raise FormulaDepthError(f"Formula nesting exceeds {self._max_depth} levels")
        node = self._parse_term(depth)
        while self._at_operator("+", "-"):
            op = self._advance().value
            node = BinaryOp(op, node, self._parse_term(depth))
        return node

    def _parse_term(self, depth: int) -> Node:
        node = self._parse_factor(depth)
        while self._at_operator("*", "/"):
            op = self._advance().value
            node = BinaryOp(op, node, self._parse_factor(depth))
        return node

    def _parse_factor(self, depth: int) -> Node:
        tok = self._advance()
        if tok.type is TokenType.NUMBER:
            return Number(float(tok.value))
        if tok.type is TokenType.RANGE:
            start, end = tok.value.upper().split(":")
            return RangeRef(start, end)
        if tok.type is TokenType.LPAREN:
            node = self._parse_expr(depth + 1)
            self._expect(TokenType.RPAREN)
            return node
        if tok.type is TokenType.NAME:
            nxt = self._peek()
            if nxt is not None and nxt.type is TokenType.LPAREN:
                self._advance()
                return Call(tok.value.lower(), self._parse_args(depth + 1))
            if _CELL_NAME_RE.fullmatch(tok.value):
                return CellRef(tok.value.upper())
            raise FormulaSyntaxError(f"Unknown name {tok.value!r} at {tok.start}")
        if tok.value == "-":
            raise FormulaSyntaxError(f"Unary minus is not supported (at {tok.start})")
        raise FormulaSyntaxError(f"Unexpected {tok.value!r} at {tok.start}")

    def _parse_args(self, depth: int) -> tuple[Node, ...]:
        args: list[Node] = []
        nxt = self._peek()
        if nxt is not None and nxt.type is TokenType.RPAREN:
            self._advance()
            return ()
        while True:
            args.append(self._parse_expr(depth))
            tok = self._advance()
            if tok.type is TokenType.RPAREN:
                return tuple(args)
            if tok.type is not TokenType.COMMA:
                raise FormulaSyntaxError(f"Expected ',' or ')' at {tok.start}, got {tok.value!r}")


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class TreeEvaluator:
    """Parses a formula into a tree and evaluates it against a cell store.

    Usage::

        tree = TreeEvaluator(DictCellStore({"A1": "1", "A2": "2"}))
        tree.evaluate("SUM(A1:A2)*2")        # 6.0
        tree.evaluate_text("SUM(A1:A2)*2")   # "6"
    """

    def __init__(
        self,
        store: CellStore,
        registry: FunctionRegistry | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._store = store
        self._functions = registry if registry is not None else FunctionRegistry()
        self._parser = FormulaTreeParser(max_depth)

    def parse(self, formula: str) -> Node:
        return self._parser.parse(formula)

    def evaluate(self, formula: str) -> Value:
        return self.evaluate_node(self.parse(formula))

    def evaluate_text(self, formula: str) -> str:
        """Evaluate and render the result the way the rewriting evaluator does."""
        return format_value(self.evaluate(formula))

    def evaluate_node(self, node: Node) -> Value:
        if isinstance(node, Number):
            return node.value
        if isinstance(node, CellRef):
            return parse_float(self._store.lookup(node.cell_id))
        if isinstance(node, RangeRef):
            refs = expand_range(f"{node.start}:{node.end}")
            return [parse_float(self._store.lookup(ref)) for ref in refs]
        if isinstance(node, BinaryOp):
            return self._fold(node)
        if isinstance(node, Call):
            return self._call(node)
        raise TypeError(f"Not an expression node: {node!r}")

    def _fold(self, node: BinaryOp) -> float:
        """Evaluate a left-nested operator chain without recursing down its spine."""
        chain: list[BinaryOp] = []
        first: Node = node
        while isinstance(first, BinaryOp):
            chain.append(first)
            first = first.left
        chain.reverse()
        value = self._scalar(self.evaluate_node(first), chain[0].op)
        for link in chain:
            right = self._scalar(self.evaluate_node(link.right), link.op)
            value = INFIX_OPERATORS[link.op](value, right)
        return value

    def _call(self, node: Call) -> FunctionResult:
        func = self._functions.get(node.name)
        if func is None:
            logger.debug("Unsupported function: %s", node.name)
            raise UnknownFunctionError(node.name)
        nums: list[float] = []
        for arg in node.args:
            value = self.evaluate_node(arg)
            if isinstance(value, list):
                nums.extend(value)
            elif isinstance(value, bool):
                raise FormulaError(f"{node.name}: boolean arguments are not supported")
            else:
                nums.append(value)
        return func(nums)

    @staticmethod
    def _scalar(value: Value, op: str) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise FormulaError(f"Operator {op!r} needs numbers, got {format_value(value)!r}")
        return float(value)


def evaluate_tree(
    formula: str,
    store: CellStore,
    registry: FunctionRegistry | None = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> str:
    """Tree-evaluate a formula body and return its display text."""
    return TreeEvaluator(store, registry, max_depth=max_depth).evaluate_text(formula)
