"""JSON value model: decoding, encoding and type helpers."""
import json
import re
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union

from jsoncrawler.exceptions import MalformedJsonError

JSONValue = Union[None, bool, int, float, str, list[Any], dict[str, Any]]
"""type: The native Python types a decoded JSON document is made of."""

CONSTANT_OR_STRING_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"|-?(?:NaN|Infinity)', re.DOTALL)
"""re.Pattern: A string literal or one of the non-standard constants accepted by the json module."""


class Nothing:
    """The absence of a value, as resulting from a query that selects no node."""

    def __repr__(self) -> str:
        """Return a readable representation.

        Returns:
            the name of the class.

        """
        return 'Nothing'


def _reject_constant(name: str) -> Any:
    """Reject the non-standard constants accepted by default by the json module.

    Arguments:
        name: the constant found in the document, one of ``NaN``, ``Infinity``, ``-Infinity``.

    Raises:
        ValueError: always.

    """
    raise ValueError(f'Invalid JSON constant {name}')


def _constant_position(text: str) -> int:
    """Find the position of the first non-standard constant outside the string literals of a JSON document.

    Arguments:
        text: the JSON document.

    Returns:
        the position of the constant, or zero if not found.

    """
    for match in CONSTANT_OR_STRING_PATTERN.finditer(text):
        if not match.group().startswith('"'):
            return match.start()

    return 0


def decode(text: Union[str, bytes, bytearray]) -> Any:
    """Decode a JSON document into its native Python representation.

    Examples:
        ::

            >>> import jsoncrawler
            >>> jsoncrawler.decode('{"a": [1, 2, 3]}')
            {'a': [1, 2, 3]}

    Arguments:
        text: the JSON document to decode.

    Raises:
        jsoncrawler.MalformedJsonError: if the text is not valid JSON.

    Returns:
        the decoded value.

    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = text.decode('utf-8')
        except UnicodeDecodeError as ex:
            raise MalformedJsonError('Invalid UTF-8 in JSON document', document='',
                                     position=ex.start, lineno=1, colno=1) from ex

    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as ex:
        raise MalformedJsonError(f'Malformed JSON: {ex.msg}', document=text, position=ex.pos,
                                 lineno=ex.lineno, colno=ex.colno) from ex
    except RecursionError as ex:
        raise MalformedJsonError('Malformed JSON: maximum nesting depth exceeded', document=text, position=0,
                                 lineno=1, colno=1) from ex
    except ValueError as ex:  # Raised by _reject_constant, the position is not reported by the json module
        position = _constant_position(text)
        lineno = text.count('\n', 0, position) + 1
        colno = position - text.rfind('\n', 0, position)
        raise MalformedJsonError(f'Malformed JSON: {ex}', document=text, position=position,
                                 lineno=lineno, colno=colno) from ex


def encode(value: Any, *, indent: Optional[int] = None) -> str:
    """Encode a value to a JSON string.

    Arguments:
        value: the value to encode.
        indent: the optional indentation level for pretty printing.

    Returns:
        the JSON-encoded string.

    """
    return json.dumps(value, ensure_ascii=False, indent=indent)


def is_object(value: Any) -> bool:
    """Check if a value is a JSON object.

    Arguments:
        value: the value to test.

    Returns:
        :py:data:`True` if the value is a mapping, :py:data:`False` otherwise.

    """
    return isinstance(value, Mapping)


def is_array(value: Any) -> bool:
    """Check if a value is a JSON array, that is a sequence but not a string or bytes object.

    Arguments:
        value: the value to test.

    Returns:
        :py:data:`True` if the value is a sequence but not a string or bytes, :py:data:`False` otherwise.

    """
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def is_number(value: Any) -> bool:
    """Check if a value is a JSON number, excluding booleans.

    Arguments:
        value: the value to test.

    Returns:
        :py:data:`True` if the value is an integer or float but not a boolean.

    """
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def json_equal(left: Any, right: Any) -> bool:
    """Compare two values with JSON semantics.

    Differently from Python equality booleans are never equal to numbers, arrays are equal only to arrays and
    objects only to objects, regardless of the concrete Python container type.

    Arguments:
        left: the first value.
        right: the second value.

    Returns:
        :py:data:`True` if the two values are equal JSON values.

    """
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, str) or isinstance(right, str):
        return isinstance(left, str) and isinstance(right, str) and left == right
    if left is None or right is None:
        return left is None and right is None
    if is_array(left) and is_array(right):
        return len(left) == len(right) and all(json_equal(a, b) for a, b in zip(left, right))
    if is_object(left) and is_object(right):
        return left.keys() == right.keys() and all(json_equal(left[k], right[k]) for k in left)
    return False
