"""Sandboxed expression language for rule documents.

Rule expressions use a small subset of Python expression syntax::

    profile.education.degree in candidate.education_required.degrees
    subset_of(candidate.skills_required, normalize_skills(profile.skills))
    0.5 * jaccard_similarity(candidate.skills_nice_to_have, profile.skills)

Source text is parsed with :mod:`ast` and every node is checked against a
fixed whitelist before anything runs. The tree is then walked by a small
interpreter; nothing is ever handed to ``eval``. The only names in scope are
the records bound for the evaluation (``profile``, ``candidate``) and the
helpers from :mod:`.helpers`, and helpers are the only things that can be
called. Expressions cannot assign, import, loop, or reach attributes that
are not declared record fields.
"""

from __future__ import annotations

import ast
import math
import operator
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Callable

from pydantic import BaseModel

from ..errors import ExpressionError, ProfileIncompleteError
from .helpers import HELPER_NAMES

MAX_EXPRESSION_LENGTH = 2000

RECORD_NAMES = frozenset({"profile", "candidate"})

_BINARY_OPS: dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_COMPARE_OPS: dict[type, Callable[[Any, Any], Any]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}

_UNARY_OPS: dict[type, Callable[[Any], Any]] = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_ALLOWED_NODES: tuple[type, ...] = (
    ast.Expression,
    ast.BoolOp,
    ast.And,
    ast.Or,
    ast.UnaryOp,
    ast.BinOp,
    ast.Compare,
    ast.IfExp,
    ast.Call,
    ast.Attribute,
    ast.Subscript,
    ast.Name,
    ast.Load,
    ast.Constant,
    ast.List,
    ast.Tuple,
    ast.Set,
    *_BINARY_OPS,
    *_COMPARE_OPS,
    *_UNARY_OPS,
)

_CONSTANT_TYPES = (str, int, float, bool, type(None))

_NUMBER_TYPES = (int, float)

# Errors raised by operators and helpers on bad operands
_RUNTIME_ERRORS = (
    TypeError,
    ValueError,
    ZeroDivisionError,
    KeyError,
    IndexError,
    OverflowError,
    RecursionError,
    MemoryError,
)

# String formatting and repetition can size their output from operands
_NUMERIC_ONLY_OPS = {ast.Mult: "*", ast.Mod: "%"}


def _validate(tree: ast.Expression, source: str) -> None:
    called = {id(node.func) for node in ast.walk(tree) if isinstance(node, ast.Call)}

    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise ExpressionError(f"unsupported syntax: {type(node).__name__}", source)

        if isinstance(node, ast.Constant) and not isinstance(node.value, _CONSTANT_TYPES):
            raise ExpressionError(f"unsupported literal: {node.value!r}", source)

        elif isinstance(node, ast.Name):
            if node.id in HELPER_NAMES:
                if id(node) not in called:
                    raise ExpressionError(f"helper '{node.id}' must be called", source)
            elif node.id not in RECORD_NAMES:
                raise ExpressionError(f"unknown identifier '{node.id}'", source)

        elif isinstance(node, ast.Attribute) and node.attr.startswith("_"):
            raise ExpressionError(f"private attribute '{node.attr}' is not accessible", source)

        elif isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in HELPER_NAMES:
                raise ExpressionError("only helper functions can be called", source)
            if node.keywords:
                raise ExpressionError(f"'{node.func.id}' takes positional arguments only", source)


class Expression:
    """A compiled, validated rule expression.

    Instances are immutable and safe to share between evaluations.
    """

    __slots__ = ("source", "_tree")

    def __init__(self, source: str):
        if not isinstance(source, str) or not source.strip():
            raise ExpressionError("expression is empty", source if isinstance(source, str) else None)
        if len(source) > MAX_EXPRESSION_LENGTH:
            raise ExpressionError(
                f"expression longer than {MAX_EXPRESSION_LENGTH} characters", source[:80]
            )

        self.source = source
        try:
            tree = ast.parse(source.strip(), mode="eval")
        except SyntaxError as exc:
            raise ExpressionError(f"invalid syntax: {exc.msg}", source) from exc
        except (ValueError, RecursionError) as exc:
            raise ExpressionError(f"invalid expression: {exc}", source) from exc

        _validate(tree, source)
        self._tree = tree

    def evaluate(self, bindings: Mapping[str, Any], helpers: Mapping[str, Callable[..., Any]]) -> Any:
        """Evaluate against the given records and helper table.

        Raises:
            ExpressionError: On unbound names, unknown fields, or any operator
                or helper failure.
        """
        interpreter = _Interpreter(bindings, helpers, self.source)
        try:
            return interpreter.visit(self._tree.body)
        except ExpressionError:
            raise
        except _RUNTIME_ERRORS as exc:
            raise ExpressionError(f"{type(exc).__name__}: {exc}", self.source) from exc

    def __repr__(self) -> str:
        return f"Expression({self.source!r})"


@lru_cache(maxsize=1024)
def compile_expression(source: str) -> Expression:
    """Compile (and cache) an expression by its source text."""
    return Expression(source)


class _Interpreter(ast.NodeVisitor):
    """Walks a validated expression tree."""

    def __init__(
        self,
        bindings: Mapping[str, Any],
        helpers: Mapping[str, Callable[..., Any]],
        source: str,
    ):
        self.bindings = bindings
        self.helpers = helpers
        self.source = source

    def generic_visit(self, node: ast.AST) -> Any:
        raise ExpressionError(f"unsupported syntax: {type(node).__name__}", self.source)

    def visit_Constant(self, node: ast.Constant) -> Any:
        return node.value

    def visit_Name(self, node: ast.Name) -> Any:
        if node.id not in self.bindings:
            raise ExpressionError(f"name '{node.id}' is not bound in this context", self.source)
        return self.bindings[node.id]

    def visit_Attribute(self, node: ast.Attribute) -> Any:
        owner = self.visit(node.value)
        if owner is None:
            raise ProfileIncompleteError(
                f"'{ast.unparse(node.value)}' is missing, cannot read '{node.attr}'", self.source
            )
        if isinstance(owner, BaseModel):
            if node.attr not in type(owner).model_fields:
                raise ExpressionError(
                    f"unknown field '{node.attr}' on {type(owner).__name__}", self.source
                )
            return getattr(owner, node.attr)
        if isinstance(owner, Mapping):
            return owner.get(node.attr)
        raise ExpressionError(
            f"cannot read field '{node.attr}' from {type(owner).__name__}", self.source
        )

    def visit_Subscript(self, node: ast.Subscript) -> Any:
        container = self.visit(node.value)
        key = self.visit(node.slice)
        if container is None:
            raise ProfileIncompleteError(f"'{ast.unparse(node.value)}' is missing", self.source)
        if not isinstance(container, (list, tuple, str, Mapping)):
            raise ExpressionError(f"{type(container).__name__} is not subscriptable", self.source)
        return container[key]

    def visit_BoolOp(self, node: ast.BoolOp) -> Any:
        value: Any = None
        if isinstance(node.op, ast.And):
            for operand in node.values:
                value = self.visit(operand)
                if not value:
                    return value
            return value
        for operand in node.values:
            value = self.visit(operand)
            if value:
                return value
        return value

    def visit_UnaryOp(self, node: ast.UnaryOp) -> Any:
        return _UNARY_OPS[type(node.op)](self.visit(node.operand))

    def visit_BinOp(self, node: ast.BinOp) -> Any:
        left = self.visit(node.left)
        right = self.visit(node.right)
        symbol = _NUMERIC_ONLY_OPS.get(type(node.op))
        if symbol and not (isinstance(left, _NUMBER_TYPES) and isinstance(right, _NUMBER_TYPES)):
            raise ExpressionError(f"'{symbol}' only applies to numbers", self.source)
        return _BINARY_OPS[type(node.op)](left, right)

    def visit_Compare(self, node: ast.Compare) -> bool:
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.visit(comparator)
            if not _COMPARE_OPS[type(op)](left, right):
                return False
            left = right
        return True

    def visit_IfExp(self, node: ast.IfExp) -> Any:
        if self.visit(node.test):
            return self.visit(node.body)
        return self.visit(node.orelse)

    def visit_Call(self, node: ast.Call) -> Any:
        name = node.func.id  # type: ignore[attr-defined]
        helper = self.helpers.get(name)
        if helper is None:
            raise ExpressionError(f"helper '{name}' is not available", self.source)
        return helper(*(self.visit(arg) for arg in node.args))

    def visit_List(self, node: ast.List) -> tuple:
        return tuple(self.visit(elt) for elt in node.elts)

    def visit_Tuple(self, node: ast.Tuple) -> tuple:
        return tuple(self.visit(elt) for elt in node.elts)

    def visit_Set(self, node: ast.Set) -> frozenset:
        return frozenset(self.visit(elt) for elt in node.elts)


# =============================================================================
# Coercion
# =============================================================================


def to_number(value: Any) -> float:
    """Coerce an expression result for scoring; anything non-numeric is 0."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    try:
        if isinstance(value, _NUMBER_TYPES):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip())
        else:
            return 0.0
    except (ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_bool(value: Any) -> bool:
    return bool(value)
