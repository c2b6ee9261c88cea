"""The JSONPath query object and its fluent builder."""
from collections.abc import Iterable
from typing import Any, Optional, Union

from jsoncrawler._parser import MAX_INT, parse, parse_filter
from jsoncrawler._segments import (
    DeepScan,
    FilterSelector,
    IndexSelector,
    KeySelector,
    render_segments,
    Segment,
    Selector,
    SliceSelector,
    UnionSelector,
    WildcardSelector,
)
from jsoncrawler.exceptions import InvalidPathBuilderArgument


def _check_int(value: Any, name: str, *, optional: bool = False) -> None:
    """Check that a builder argument is an integer in the allowed range.

    Arguments:
        value: the argument value.
        name: the argument name, for the error message.
        optional: whether :py:const:`None` is accepted.

    Raises:
        jsoncrawler.InvalidPathBuilderArgument: if the argument is not valid.

    """
    if optional and value is None:
        return

    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidPathBuilderArgument(f'Argument {name} must be an integer, got {type(value)}.')

    if abs(value) > MAX_INT:
        raise InvalidPathBuilderArgument(f'Argument {name} is out of the allowed range: {value}.')


class JsonPath:
    """An immutable JSONPath query.

    Instances are obtained either parsing a query string with :py:meth:`from_string` or starting from the root query
    ``JsonPath()`` and chaining the builder methods. Each builder method returns a new instance, leaving the original
    untouched.

    Examples:
        ::

            >>> from jsoncrawler import JsonPath
            >>> path = JsonPath().key('store').key('book').filter('@.price < 10').key('title')
            >>> str(path)
            '$.store.book[?@.price < 10].title'
            >>> path == JsonPath.from_string('$.store.book[?(@.price<10)].title')
            True

    """

    def __init__(self, segments: Iterable[Segment] = ()):
        """Initialize the query with the given segments, the root query by default.

        Arguments:
            segments: the segments of the query.

        """
        self._segments = tuple(segments)

    @classmethod
    def from_string(cls, query: str) -> 'JsonPath':
        """Parse a query string.

        Arguments:
            query: the JSONPath query, starting with ``$``.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid query.

        Returns:
            the parsed query.

        """
        return cls(parse(query))

    @property
    def segments(self) -> tuple[Segment, ...]:
        """The segments of the query.

        Raises:
            jsoncrawler.InvalidPathBuilderArgument: if the query ends with a descendant operator without a selector.

        """
        if self._segments and isinstance(self._segments[-1], DeepScan):
            raise InvalidPathBuilderArgument('Incomplete query, deep_scan() must be followed by a selector.')

        return self._segments

    def __str__(self) -> str:
        """Return the canonical query string, that parses back to an equal query.

        Returns:
            the query string.

        """
        return '$' + render_segments(self.segments)

    def __repr__(self) -> str:
        """Return the representation of the instance."""
        return f'{self.__class__.__name__}({list(self._segments)!r})'

    def __eq__(self, other: object) -> bool:
        """Two queries are equal if they have the same segments."""
        if not isinstance(other, JsonPath):
            return NotImplemented

        return self._segments == other._segments

    def __hash__(self) -> int:
        """Hash the segments."""
        return hash(self._segments)

    def __len__(self) -> int:
        """Return the number of segments."""
        return len(self._segments)

    def _append(self, segment: Segment) -> 'JsonPath':
        """Return a new path with the given segment appended."""
        return self.__class__(self._segments + (segment,))

    def key(self, name: str) -> 'JsonPath':
        """Select an object member by name.

        Any character is allowed, the escaping is performed when converting the query to string.

        Examples:
            ::

                >>> str(JsonPath().key('first name'))
                "$['first name']"

        Arguments:
            name: the member name.

        Raises:
            jsoncrawler.InvalidPathBuilderArgument: if the name is not a string.

        Returns:
            the new query.

        """
        if not isinstance(name, str):
            raise InvalidPathBuilderArgument(f'Argument name must be a string, got {type(name)}.')

        return self._append(KeySelector(name))

    def index(self, index: int) -> 'JsonPath':
        """Select an array element by index, negative indexes count from the end.

        Arguments:
            index: the index.

        Raises:
            jsoncrawler.InvalidPathBuilderArgument: if the index is not an integer or is out of range.

        Returns:
            the new query.

        """
        _check_int(index, 'index')
        return self._append(IndexSelector(index))

    def first(self) -> 'JsonPath':
        """Select the first element of an array."""
        return self.index(0)

    def last(self) -> 'JsonPath':
        """Select the last element of an array."""
        return self.index(-1)

    def slice(self, start: Optional[int] = None, end: Optional[int] = None, step: int = 1) -> 'JsonPath':
        """Select a range of array elements, with the same semantic of Python slices.

        Arguments:
            start: the optional first index.
            end: the optional index where to stop, excluded.
            step: the increment between selected indexes, if negative the array is traversed backwards.

        Raises:
            jsoncrawler.InvalidPathBuilderArgument: if any argument is not an integer or the step is zero.

        Returns:
            the new query.

        """
        _check_int(start, 'start', optional=True)
        _check_int(end, 'end', optional=True)
        _check_int(step, 'step')
        if step == 0:
            raise InvalidPathBuilderArgument('Slice step cannot be zero.')

        return self._append(SliceSelector(start, end, step))

    def all(self) -> 'JsonPath':
        """Select all the children, with the wildcard selector."""
        return self._append(WildcardSelector())

    def deep_scan(self) -> 'JsonPath':
        """Apply the next selector to the current nodes and all their descendants.

        Examples:
            ::

                >>> str(JsonPath().deep_scan().key('price'))
                '$..price'

        Raises:
            jsoncrawler.InvalidPathBuilderArgument: if the query already ends with a descendant operator.

        Returns:
            the new query.

        """
        if self._segments and isinstance(self._segments[-1], DeepScan):
            raise InvalidPathBuilderArgument('deep_scan() cannot be called twice in a row.')

        return self._append(DeepScan())

    def filter(self, expression: str) -> 'JsonPath':
        """Select the children for which the filter expression is true.

        Arguments:
            expression: the filter expression, the leading ``?`` and the outer parentheses are optional.

        Raises:
            jsoncrawler.InvalidPathBuilderArgument: if the expression is not a string.
            jsoncrawler.QuerySyntaxError: if the expression is not valid.

        Returns:
            the new query.

        """
        if not isinstance(expression, str):
            raise InvalidPathBuilderArgument(f'Argument expression must be a string, got {type(expression)}.')

        return self._append(FilterSelector(parse_filter(expression)))

    def union(self, *selectors: Union[str, int, slice]) -> 'JsonPath':
        """Select the concatenation of multiple selections.

        Examples:
            ::

                >>> str(JsonPath().union('a', 0, slice(1, None)))
                "$['a',0,1:]"

        Arguments:
            *selectors: member names as strings, indexes as integers or slices as :py:class:`slice` objects.

        Raises:
            jsoncrawler.InvalidPathBuilderArgument: if no selector is given or any of them is not valid.

        Returns:
            the new query.

        """
        if not selectors:
            raise InvalidPathBuilderArgument('union() requires at least one selector.')

        parsed: list[Selector] = []
        for selector in selectors:
            if isinstance(selector, str):
                parsed.append(KeySelector(selector))
            elif isinstance(selector, slice):
                step = 1 if selector.step is None else selector.step
                _check_int(selector.start, 'slice start', optional=True)
                _check_int(selector.stop, 'slice stop', optional=True)
                _check_int(step, 'slice step')
                if step == 0:
                    raise InvalidPathBuilderArgument('Slice step cannot be zero.')
                parsed.append(SliceSelector(selector.start, selector.stop, step))
            else:
                _check_int(selector, 'selector')
                parsed.append(IndexSelector(selector))

        if len(parsed) == 1:
            return self._append(parsed[0])

        return self._append(UnionSelector(tuple(parsed)))
