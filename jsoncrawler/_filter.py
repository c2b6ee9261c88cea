"""Filter expressions model and comparison semantics."""
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from jsoncrawler._segments import render_segments, Segment
from jsoncrawler._value import is_number, json_equal, Nothing

# Two characters operators goes first to avoid mis-detection.
COMPARISON_OPERATORS = ('==', '!=', '<=', '>=', '<', '>')
"""tuple: The comparison operators supported inside filter expressions."""


class FilterExpr:
    """Base class for all the nodes of a filter expression."""


@dataclass(frozen=True)
class Literal(FilterExpr):
    """A literal JSON value: string, number, true, false or null."""

    value: Any

    def __str__(self) -> str:
        """Return the literal as JSON.

        Returns:
            the JSON-encoded value.

        """
        return json.dumps(self.value, ensure_ascii=False)


@dataclass(frozen=True)
class CurrentNodeRef(FilterExpr):
    """A query relative to the node being tested, ``@``."""

    segments: tuple[Segment, ...] = ()

    def __str__(self) -> str:
        """Return the relative query."""
        return '@' + render_segments(self.segments)


@dataclass(frozen=True)
class RootRef(FilterExpr):
    """A query relative to the document root, ``$``."""

    segments: tuple[Segment, ...] = ()

    def __str__(self) -> str:
        """Return the absolute query."""
        return '$' + render_segments(self.segments)


@dataclass(frozen=True)
class Comparison(FilterExpr):
    """The comparison of two comparable expressions."""

    op: str
    left: FilterExpr
    right: FilterExpr

    def __str__(self) -> str:
        """Return the comparison with the operator surrounded by spaces."""
        return f'{self.left} {self.op} {self.right}'


@dataclass(frozen=True)
class Logical(FilterExpr):
    """A logical operation: ``and`` and ``or`` have two or more operands, ``not`` has only one."""

    op: str
    operands: tuple[FilterExpr, ...]

    def __str__(self) -> str:
        """Return the logical expression, with the parentheses required by the operators precedence.

        Returns:
            the string representation of the expression.

        """
        if self.op == 'not':
            operand = self.operands[0]
            if isinstance(operand, (CurrentNodeRef, RootRef, FunctionCall)):
                return f'!{operand}'

            return f'!({operand})'

        if self.op == 'and':
            return ' && '.join(
                f'({i})' if isinstance(i, Logical) and i.op == 'or' else str(i) for i in self.operands)

        return ' || '.join(str(i) for i in self.operands)


@dataclass(frozen=True)
class FunctionCall(FilterExpr):
    """A function call, the function is resolved by name when evaluated."""

    name: str
    args: tuple[FilterExpr, ...]

    def __str__(self) -> str:
        """Return the function call."""
        return f'{self.name}({", ".join(str(i) for i in self.args)})'


def combine(op: str, operands: list[FilterExpr]) -> FilterExpr:
    """Build a logical ``and`` or ``or`` expression, merging nested expressions with the same operator.

    Arguments:
        op: the logical operator, either ``and`` or ``or``.
        operands: the operands.

    Returns:
        the only operand if there is just one, a :py:class:`Logical` expression otherwise.

    """
    if len(operands) == 1:
        return operands[0]

    merged: list[FilterExpr] = []
    for operand in operands:
        if isinstance(operand, Logical) and operand.op == op:
            merged.extend(operand.operands)
        else:
            merged.append(operand)

    return Logical(op, tuple(merged))


def _equal(left: Any, right: Any) -> bool:
    """Check if two values are equal, the absence of a value being equal only to itself.

    Arguments:
        left: the left operand.
        right: the right operand.

    Returns:
        :py:data:`True` if the values are equal, :py:data:`False` otherwise.

    """
    if isinstance(left, Nothing) or isinstance(right, Nothing):
        return isinstance(left, Nothing) and isinstance(right, Nothing)

    return json_equal(left, right)


def _less(left: Any, right: Any) -> bool:
    """Check if the left value is lower than the right one, only numbers and strings can be ordered.

    Arguments:
        left: the left operand.
        right: the right operand.

    Returns:
        :py:data:`True` if both values are numbers or strings and the left one is lower, :py:data:`False` otherwise.

    """
    if is_number(left) and is_number(right):
        return bool(left < right)
    if isinstance(left, str) and isinstance(right, str):
        return left < right  # Python compares strings by code point

    return False


COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    '==': _equal,
    '!=': lambda left, right: not _equal(left, right),
    '<': _less,
    '<=': lambda left, right: _less(left, right) or _equal(left, right),
    '>': lambda left, right: _less(right, left),
    '>=': lambda left, right: _less(right, left) or _equal(left, right),
}
"""dict: The comparison functions for each operator."""


def compare(op: str, left: Any, right: Any) -> bool:
    """Compare two values according to RFC 9535 section 2.3.5.2.2.

    Values of different types are never equal and never ordered. The absence of a value, :py:class:`Nothing`, is
    equal only to itself. Only numbers and strings can be ordered.

    Examples:
        ::

            >>> compare('<', 1, 2.5)
            True
            >>> compare('==', True, 1)
            False
            >>> compare('<=', Nothing(), Nothing())
            True

    Arguments:
        op: the comparison operator.
        left: the left value or :py:class:`Nothing`.
        right: the right value or :py:class:`Nothing`.

    Returns:
        the result of the comparison.

    """
    return COMPARATORS[op](left, right)
