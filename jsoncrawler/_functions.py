"""Built-in filter functions and function extension helpers."""
import functools
import inspect
import re
import sys
import unicodedata
from typing import Any, Optional

from jsoncrawler._protocols import ExpressionType, FunctionProtocol
from jsoncrawler._value import is_array, is_object, Nothing
from jsoncrawler.exceptions import JsonPathError

FUNCTION_NAME_PATTERN = re.compile(r'[a-z][a-z0-9_]*')
"""re.Pattern: The valid names for a filter function."""


class NodeList(list):  # type: ignore[type-arg]
    """The values of the nodes selected by a query inside a filter expression."""


UNICODE_CATEGORIES = frozenset((
    'L', 'Lu', 'Ll', 'Lt', 'Lm', 'Lo',
    'M', 'Mn', 'Mc', 'Me',
    'N', 'Nd', 'Nl', 'No',
    'P', 'Pc', 'Pd', 'Ps', 'Pe', 'Pi', 'Pf', 'Po',
    'Z', 'Zs', 'Zl', 'Zp',
    'S', 'Sm', 'Sc', 'Sk', 'So',
    'C', 'Cc', 'Cf', 'Co', 'Cn',
))
"""frozenset: The Unicode general categories accepted in the I-Regexp ``\\p{..}`` and ``\\P{..}`` escapes."""

PROPERTY_ESCAPE_PATTERN = re.compile(r'\\([pP])\{([A-Za-z]+)\}')
"""re.Pattern: A Unicode category escape of an I-Regexp pattern."""


@functools.lru_cache(maxsize=1)
def _category_runs() -> tuple[tuple[int, int, str], ...]:
    """Group all the Unicode code points in runs of consecutive code points with the same general category.

    Returns:
        a tuple of ``(first, last, category)`` tuples covering the whole code point space.

    """
    runs = []
    start = 0
    current = unicodedata.category(chr(0))
    for code in range(1, sys.maxunicode + 1):
        category = unicodedata.category(chr(code))
        if category != current:
            runs.append((start, code - 1, current))
            start = code
            current = category

    runs.append((start, sys.maxunicode, current))
    return tuple(runs)


@functools.lru_cache(maxsize=None)
def _category_ranges(category: str, negated: bool) -> str:
    """Build the content of a Python character class with all the code points of a Unicode general category.

    Arguments:
        category: the one or two letters general category, a single letter includes all its subcategories.
        negated: whether to build the class of all the code points not in the category instead.

    Returns:
        the character class ranges, without the enclosing brackets.

    """
    ranges: list[list[int]] = []
    for first, last, run_category in _category_runs():
        if run_category.startswith(category) is negated:
            continue

        if ranges and ranges[-1][1] == first - 1:
            ranges[-1][1] = last
        else:
            ranges.append([first, last])

    return ''.join(f'\\U{first:08x}' if first == last else f'\\U{first:08x}-\\U{last:08x}' for first, last in ranges)


def _to_python_regex(pattern: str) -> str:
    """Convert an I-Regexp (RFC 9485) pattern to the equivalent Python regular expression.

    In I-Regexp the dot matches any character except line feed and carriage return, while in Python it matches also
    the carriage return. The Unicode category escapes ``\\p{..}`` and ``\\P{..}`` are not supported by Python and are
    expanded into explicit character ranges.

    Arguments:
        pattern: the I-Regexp pattern.

    Raises:
        ValueError: if the pattern refers to an unknown Unicode category.

    Returns:
        the Python pattern.

    """
    chars = []
    in_class = False
    pos = 0
    while pos < len(pattern):
        char = pattern[pos]
        if char == '\\':
            escape = PROPERTY_ESCAPE_PATTERN.match(pattern, pos)
            if escape is None:
                chars.append(pattern[pos:pos + 2])
                pos += 2
                continue

            if escape.group(2) not in UNICODE_CATEGORIES:
                raise ValueError(f'Unknown Unicode category {escape.group(2)}')

            ranges = _category_ranges(escape.group(2), escape.group(1) == 'P')
            chars.append(ranges if in_class else f'[{ranges}]')
            pos = escape.end()
            continue

        if char == '[':
            in_class = True
        elif char == ']':
            in_class = False
        elif char == '.' and not in_class:
            char = '[^\\n\\r]'

        chars.append(char)
        pos += 1

    return ''.join(chars)


@functools.lru_cache(maxsize=256)
def compile_regex(pattern: str) -> Optional['re.Pattern[str]']:
    """Compile an I-Regexp pattern, caching the result.

    Arguments:
        pattern: the I-Regexp pattern.

    Returns:
        the compiled pattern or :py:const:`None` if the pattern is invalid.

    """
    try:
        return re.compile(_to_python_regex(pattern))
    except (re.error, ValueError):
        return None


class Length:
    """The ``length()`` function: the length of a string, array or object."""

    arg_types = (ExpressionType.VALUE,)
    result_type = ExpressionType.VALUE

    def __call__(self, value: Any) -> Any:
        """Compute the length of the value.

        Arguments:
            value: the value to measure.

        Returns:
            the number of characters of a string, elements of an array or members of an object. Nothing for any other
            value.

        """
        if isinstance(value, str) or is_array(value) or is_object(value):
            return len(value)

        return Nothing()


class Count:
    """The ``count()`` function: the number of nodes in a nodelist."""

    arg_types = (ExpressionType.NODES,)
    result_type = ExpressionType.VALUE

    def __call__(self, nodes: NodeList) -> int:
        """Count the nodes."""
        return len(nodes)


class Match:
    """The ``match()`` function: whether a string matches entirely a regular expression."""

    arg_types = (ExpressionType.VALUE, ExpressionType.VALUE)
    result_type = ExpressionType.LOGICAL

    def __call__(self, value: Any, pattern: Any) -> bool:
        """Check if the whole value matches the pattern.

        Arguments:
            value: the string to test.
            pattern: the I-Regexp pattern.

        Returns:
            :py:data:`True` on match, :py:data:`False` otherwise or if any argument is not a string or the pattern is
            not valid.

        """
        if not isinstance(value, str) or not isinstance(pattern, str):
            return False

        regex = compile_regex(pattern)
        return regex is not None and regex.fullmatch(value) is not None


class Search:
    """The ``search()`` function: whether a string contains a substring matching a regular expression."""

    arg_types = (ExpressionType.VALUE, ExpressionType.VALUE)
    result_type = ExpressionType.LOGICAL

    def __call__(self, value: Any, pattern: Any) -> bool:
        """Check if any part of the value matches the pattern."""
        if not isinstance(value, str) or not isinstance(pattern, str):
            return False

        regex = compile_regex(pattern)
        return regex is not None and regex.search(value) is not None


class Value:
    """The ``value()`` function: the value of a nodelist with exactly one node."""

    arg_types = (ExpressionType.NODES,)
    result_type = ExpressionType.VALUE

    def __call__(self, nodes: NodeList) -> Any:
        """Return the value of the only node.

        Arguments:
            nodes: the nodelist.

        Returns:
            the value of the node if the nodelist has exactly one node, Nothing otherwise.

        """
        if len(nodes) == 1:
            return nodes[0]

        return Nothing()


BUILTIN_FUNCTIONS: dict[str, FunctionProtocol] = {
    'count': Count(),
    'length': Length(),
    'match': Match(),
    'search': Search(),
    'value': Value(),
}
"""dict: The built-in filter functions defined by RFC 9535."""


def validate_function(name: str, func: Any) -> None:
    """Validate a custom function before registering it.

    Arguments:
        name: the name the function will be called with in the filter expressions.
        func: the function object.

    Raises:
        jsoncrawler.JsonPathError: if the name is not valid or is the name of a built-in function, if the function
            doesn't adhere to the :py:class:`jsoncrawler.FunctionProtocol` or if its declared arity doesn't match the
            callable signature.

    """
    if not FUNCTION_NAME_PATTERN.fullmatch(name):
        raise JsonPathError(f'Invalid function name `{name}`, it must start with a lowercase letter followed by '
                            'lowercase letters, digits or underscores.')

    if name in BUILTIN_FUNCTIONS:
        raise JsonPathError(f'Unable to register a function with the same name of the built-in function: {name}().')

    if not isinstance(func, FunctionProtocol):
        raise JsonPathError(f'The given func "{func}" for the custom function {name}() does not adhere '
                            'to the jsoncrawler.FunctionProtocol.')

    if (not isinstance(func.arg_types, tuple) or not all(isinstance(i, ExpressionType) for i in func.arg_types)
            or not isinstance(func.result_type, ExpressionType)):
        raise JsonPathError(f'The custom function {name}() must declare arg_types as a tuple of ExpressionType and '
                            'result_type as an ExpressionType.')

    try:
        inspect.signature(func).bind(*func.arg_types)
    except TypeError as ex:
        raise JsonPathError(f'The custom function {name}() declares {len(func.arg_types)} arguments but its '
                            'signature does not accept them.') from ex
    except ValueError:  # No signature available, as for some built-in callables
        pass
