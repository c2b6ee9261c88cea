"""Test assertion helpers built on top of :py:func:`jsoncrawler.find`.

All the helpers accept the same ``query`` and ``document`` arguments of :py:func:`jsoncrawler.find` and raise
:py:class:`AssertionError` with a descriptive message on failure, so that they can be used directly in tests::

    >>> from jsoncrawler.assertions import assert_count
    >>> assert_count(2, '$.items[*]', '{"items": [1, 2]}')

"""
from typing import Any

from jsoncrawler import find, Query
from jsoncrawler._value import encode, json_equal


def _describe(value: Any) -> str:
    """Return the JSON representation of a value for the assertion messages, or its repr if not encodable."""
    try:
        return encode(value)
    except (TypeError, ValueError):
        return repr(value)


def assert_count(expected: int, query: Query, document: Any) -> None:
    """Assert that the query matches exactly the expected number of values.

    Arguments:
        expected: the expected number of matches.
        query: the JSONPath query.
        document: the document to query, as JSON text or already decoded.

    Raises:
        AssertionError: if the number of matches differs.

    """
    matches = find(query, document)
    if len(matches) != expected:
        raise AssertionError(f'Expected {expected} matches for `{query}`, got {len(matches)}: {_describe(matches)}')


def assert_equals(expected: list[Any], query: Query, document: Any) -> None:
    """Assert that the matches are equal to the expected values, in the same order.

    The comparison follows JSON semantics, hence ``true`` is not equal to ``1``.

    Arguments:
        expected: the expected list of matched values.
        query: the JSONPath query.
        document: the document to query, as JSON text or already decoded.

    Raises:
        AssertionError: if the matches differ.

    """
    matches = find(query, document)
    if not json_equal(matches, expected):
        raise AssertionError(f'Matches for `{query}` are not equal to {_describe(expected)}: {_describe(matches)}')


def assert_not_equals(expected: list[Any], query: Query, document: Any) -> None:
    """Assert that the matches are not equal to the given values."""
    matches = find(query, document)
    if json_equal(matches, expected):
        raise AssertionError(f'Matches for `{query}` are equal to {_describe(expected)}')


def assert_contains(expected: Any, query: Query, document: Any) -> None:
    """Assert that at least one of the matches is equal to the expected value.

    Arguments:
        expected: the value to look for.
        query: the JSONPath query.
        document: the document to query, as JSON text or already decoded.

    Raises:
        AssertionError: if no match is equal to the expected value.

    """
    matches = find(query, document)
    if not any(json_equal(match, expected) for match in matches):
        raise AssertionError(f'Matches for `{query}` do not contain {_describe(expected)}: '
                             f'{_describe(matches)}')


def assert_not_contains(expected: Any, query: Query, document: Any) -> None:
    """Assert that none of the matches is equal to the given value."""
    matches = find(query, document)
    if any(json_equal(match, expected) for match in matches):
        raise AssertionError(f'Matches for `{query}` contain {_describe(expected)}')


def assert_same(expected: list[Any], query: Query, document: Any) -> None:
    """Assert that the matches are the very same objects of the expected ones, in the same order.

    Matches are references to the document's own objects, this is useful to check that a query selects the expected
    parts of an already decoded document.

    Examples:
        ::

            >>> book = {'title': 'Moby Dick'}
            >>> assert_same([book], '$.books[0]', {'books': [book]})

    Arguments:
        expected: the expected objects.
        query: the JSONPath query.
        document: the already decoded document to query.

    Raises:
        AssertionError: if the matches are not the same objects.

    """
    matches = find(query, document)
    if len(matches) != len(expected) or any(match is not item for match, item in zip(matches, expected)):
        raise AssertionError(f'Matches for `{query}` are not the same objects as expected: {_describe(matches)}')
