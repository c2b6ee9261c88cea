"""Parsed JSONPath segments."""
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Union

MEMBER_NAME_PATTERN = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')
"""re.Pattern: Names that can be rendered with the dot notation."""
ESCAPES = {'\b': r'\b', '\f': r'\f', '\n': r'\n', '\r': r'\r', '\t': r'\t', "'": r"\'", '\\': '\\\\'}
"""dict: Characters escaped when rendering a single-quoted name."""


def quote_name(name: str) -> str:
    """Render a member name as a single-quoted string literal, escaping it as needed.

    Examples:
        ::

            >>> quote_name("it's")
            "'it\\\\'s'"

    Arguments:
        name: the member name to quote.

    Returns:
        the quoted name.

    """
    chars = []
    for char in name:
        if char in ESCAPES:
            chars.append(ESCAPES[char])
        elif ord(char) < 0x20:
            chars.append(f'\\u{ord(char):04x}')
        else:
            chars.append(char)

    return "'" + ''.join(chars) + "'"


class Segment:
    """Base class for all the segments of a parsed path."""


class Selector(Segment):
    """Base class for the segments that select nodes, usable also inside a union."""

    def selector_str(self) -> str:
        """Return the representation of the selector as it appears inside brackets.

        Returns:
            the bracketed form of the selector without the brackets.

        """
        raise NotImplementedError

    def __str__(self) -> str:
        """Return the segment representation in bracket notation.

        Returns:
            the selector between brackets.

        """
        return f'[{self.selector_str()}]'


@dataclass(frozen=True)
class KeySelector(Selector):
    """Select the value of an object member."""

    name: str

    def selector_str(self) -> str:
        """Return the selector as it appears inside brackets."""
        return quote_name(self.name)

    def __str__(self) -> str:
        """Return the dot notation when the name allows it, the bracket notation otherwise.

        Returns:
            the segment representation.

        """
        if MEMBER_NAME_PATTERN.fullmatch(self.name):
            return f'.{self.name}'

        return super().__str__()


@dataclass(frozen=True)
class IndexSelector(Selector):
    """Select an array element, negative indexes count from the end."""

    index: int

    def selector_str(self) -> str:
        """Return the selector as it appears inside brackets."""
        return str(self.index)


@dataclass(frozen=True)
class SliceSelector(Selector):
    """Select a range of array elements with Python-like slicing semantics."""

    start: Optional[int] = None
    end: Optional[int] = None
    step: int = 1

    def selector_str(self) -> str:
        """Return the selector as it appears inside brackets."""
        start = '' if self.start is None else str(self.start)
        end = '' if self.end is None else str(self.end)
        if self.step == 1:
            return f'{start}:{end}'

        return f'{start}:{end}:{self.step}'

    def indices(self, length: int) -> range:
        """Compute the indices selected in an array of the given length.

        Python slices clamp the bounds exactly as RFC 9535 section 2.3.4.2 requires.

        Arguments:
            length: the length of the array.

        Returns:
            the selected indices, in selection order. Empty if the step is zero.

        """
        if self.step == 0:
            return range(0)

        return range(length)[self.start:self.end:self.step]


@dataclass(frozen=True)
class WildcardSelector(Selector):
    """Select all the children of an object or array."""

    def selector_str(self) -> str:
        """Return the selector as it appears inside brackets."""
        return '*'


@dataclass(frozen=True)
class FilterSelector(Selector):
    """Select the children for which the filter expression is true."""

    expression: Any

    def selector_str(self) -> str:
        """Return the selector as it appears inside brackets."""
        return f'?{self.expression}'


@dataclass(frozen=True)
class UnionSelector(Selector):
    """Select the concatenation of the results of multiple selectors."""

    selectors: tuple[Selector, ...]

    def selector_str(self) -> str:
        """Return the selector as it appears inside brackets."""
        return ','.join(selector.selector_str() for selector in self.selectors)


@dataclass(frozen=True)
class DeepScan(Segment):
    """Apply the following selector to every node of the subtree, in pre-order."""

    def __str__(self) -> str:
        """Return the descendant operator.

        Returns:
            the ``..`` string.

        """
        return '..'


def render_segments(segments: Iterable[Segment]) -> str:
    """Render a sequence of segments in its canonical query form, without the leading identifier.

    Arguments:
        segments: the segments to render.

    Returns:
        the rendered segments.

    """
    parts: list[str] = []
    after_deep_scan = False
    for segment in segments:
        part = str(segment)
        if after_deep_scan and part.startswith('.'):
            part = part[1:]

        after_deep_scan = isinstance(segment, DeepScan)
        parts.append(part)

    return ''.join(parts)


def is_singular(segments: Sequence[Segment]) -> bool:
    """Check if a sequence of segments can select at most one node.

    Arguments:
        segments: the segments to check.

    Returns:
        :py:data:`True` if all the segments are name or index selectors.

    """
    return all(isinstance(segment, (KeySelector, IndexSelector)) for segment in segments)


def normalized_path(location: Sequence[Union[str, int]]) -> str:
    """Return the normalized path of a node given the keys and indexes that lead to it from the root.

    Examples:
        ::

            >>> normalized_path(['store', 'book', 0])
            "$['store']['book'][0]"

    Arguments:
        location: the member names and array indexes from the root to the node.

    Returns:
        the normalized path as defined in RFC 9535 section 2.7.

    """
    return '$' + ''.join(f'[{i}]' if isinstance(i, int) else f'[{quote_name(i)}]' for i in location)
