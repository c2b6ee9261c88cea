"""jsoncrawler module."""
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Optional, Union

from jsoncrawler._crawler import Crawler, Node
from jsoncrawler._filter import FilterExpr
from jsoncrawler._functions import NodeList, validate_function
from jsoncrawler._parser import parse, parse_filter
from jsoncrawler._path import JsonPath
from jsoncrawler._protocols import ExpressionType, FunctionProtocol
from jsoncrawler._value import decode, encode, Nothing
from jsoncrawler.exceptions import (
    EvaluationError,
    InvalidPathBuilderArgument,
    JsonPathError,
    MalformedJsonError,
    NoMatchError,
    QuerySyntaxError,
    UnknownFunctionError,
)

# Explicit export of modules for the import * syntax, custom order to force the documentation order
__all__ = ['find', 'evaluate', 'decode', 'encode', 'parse', 'JsonCrawler', 'JsonPath', 'Node', 'NodeList', 'Nothing',
           'ExpressionType', 'FunctionProtocol', 'JsonPathError', 'MalformedJsonError', 'QuerySyntaxError',
           'InvalidPathBuilderArgument', 'EvaluationError', 'UnknownFunctionError', 'NoMatchError', '__version__']

Query = Union[str, JsonPath]
"""type: A query, either as a string to parse or already parsed."""

_UNSET: Any = object()
"""object: Sentinel for the arguments not passed, as :py:const:`None` is the JSON null value."""


def _to_path(query: Query) -> JsonPath:
    """Return the query as a :py:class:`jsoncrawler.JsonPath`, parsing it if needed."""
    if isinstance(query, JsonPath):
        return query

    return JsonPath.from_string(query)


def find(query: Query, document: Any, *, as_str: bool = False) -> Any:
    """Quick accessor to jsoncrawler functionalities exposed for simplicity of use.

    Examples:
        Import and directly use this quick helper for the simpler usage::

            >>> import jsoncrawler
            >>> jsoncrawler.find('$.a[0:2]', '{"a": [1, 2, 3]}')
            [1, 2]
            >>> jsoncrawler.find('$.a[?@ > 1]', {'a': [1, 2, 3]})
            [2, 3]

    Arguments:
        query: the JSONPath query, either as a string or as a :py:class:`jsoncrawler.JsonPath` object.
        document: the document to query. Strings and bytes are decoded as JSON text, any other object is queried as
            is and must be accessible in JSON-like fashion.
        as_str: if set to :py:data:`True` returns the matches as a JSON-encoded string, a list otherwise.

    Raises:
        jsoncrawler.MalformedJsonError: if the document is not valid JSON text.
        jsoncrawler.QuerySyntaxError: if the query is not valid.
        jsoncrawler.EvaluationError: on evaluation errors, like calling an unknown function.

    Returns:
        the list of matched values.

    """
    if isinstance(document, (str, bytes, bytearray)):
        document = decode(document)

    crawler = JsonCrawler(document)
    if as_str:
        return crawler.findj(query)

    return crawler.find(query)


def evaluate(expression: Union[str, FilterExpr], current: Any, root: Any = _UNSET) -> bool:
    """Evaluate a filter expression against a single value.

    Examples:
        ::

            >>> import jsoncrawler
            >>> jsoncrawler.evaluate('@.a', {'a': False})
            True
            >>> jsoncrawler.evaluate('@.price < $.limit', {'price': 8}, {'limit': 10})
            True

    Arguments:
        expression: the filter expression, as a string or already parsed.
        current: the value bound to ``@``.
        root: the value bound to ``$``, if not passed the current value is used. A :py:const:`None` root is the JSON null.

    Raises:
        jsoncrawler.QuerySyntaxError: if the expression is not valid.
        jsoncrawler.EvaluationError: on evaluation errors, like calling an unknown function.

    Returns:
        the result of the expression.

    """
    if isinstance(expression, str):
        expression = parse_filter(expression)

    return Crawler(current if root is _UNSET else root).evaluate(expression, current)


class JsonCrawler:
    """The JsonCrawler class to run JSONPath queries on a JSON-like document."""

    def __init__(self, document: Any):
        """Initialize the instance with the given document.

        Examples:
            Use the :py:class:`jsoncrawler.JsonCrawler` class for more complex usage or to perform multiple queries on
            the same document::

                >>> import jsoncrawler
                >>> data = {'items': [{'name': 'a', 'size': 1}, {'name': 'b', 'size': 2}]}
                >>> crawler = jsoncrawler.JsonCrawler(data)

        Arguments:
            document: the already decoded document to query.

        """
        self._document = document
        self._custom_functions: dict[str, FunctionProtocol] = {}

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> 'JsonCrawler':
        """Create an instance decoding the given JSON text.

        Arguments:
            text: the JSON document.

        Raises:
            jsoncrawler.MalformedJsonError: if the text is not valid JSON.

        Returns:
            the new instance.

        """
        return cls(decode(text))

    def __str__(self) -> str:
        """Return the document as a JSON-encoded string.

        Examples:
            Converting to string a :py:class:`jsoncrawler.JsonCrawler` object returns the document JSON-encoded::

                >>> str(crawler)
                '{"items": [{"name": "a", "size": 1}, {"name": "b", "size": 2}]}'

        Returns:
            the JSON-encoded string representing the document.

        """
        return encode(self._document)

    def _crawler(self) -> Crawler:
        """Return a crawler on the document with the registered custom functions."""
        return Crawler(self._document, functions=self._custom_functions)

    def find(self, query: Query) -> list[Any]:
        """Perform a query on the document and return the matched values.

        Examples:
            Perform a query and get the matched values::

                >>> crawler.find('$.items[*].size')
                [1, 2]

        Arguments:
            query: the JSONPath query to apply to the document.

        Raises:
            jsoncrawler.QuerySyntaxError: if the query is not valid.
            jsoncrawler.EvaluationError: on evaluation errors, like calling an unknown function.

        Returns:
            the matched values, references to the document's own objects, in document traversal order.

        """
        return self._crawler().find(_to_path(query).segments)

    def findj(self, query: Query, *, indent: Optional[int] = None) -> str:
        """Perform a query on the document and return the matched values as a JSON-encoded string.

        Examples:
            Perform a query and get the matched values as a JSON-encoded string::

                >>> crawler.findj('$.items[*].size')
                '[1, 2]'

        Arguments:
            query: the JSONPath query to apply to the document.
            indent: the optional indentation level for pretty printing.

        Raises:
            jsoncrawler.QuerySyntaxError: if the query is not valid.
            jsoncrawler.EvaluationError: on evaluation errors, like calling an unknown function.

        Returns:
            the JSON-encoded list of matched values.

        """
        return encode(self.find(query), indent=indent)

    def find_one(self, query: Query) -> Any:
        """Perform a query on the document and return the first matched value.

        Examples:
            ::

                >>> crawler.find_one('$.items[?@.size > 1].name')
                'b'

        Arguments:
            query: the JSONPath query to apply to the document.

        Raises:
            jsoncrawler.NoMatchError: if the query doesn't match anything.
            jsoncrawler.QuerySyntaxError: if the query is not valid.
            jsoncrawler.EvaluationError: on evaluation errors, like calling an unknown function.

        Returns:
            the first matched value.

        """
        matches = self.find(query)
        if not matches:
            raise NoMatchError(f'Query `{query}` does not match anything.')

        return matches[0]

    def find_nodes(self, query: Query) -> list[Node]:
        """Perform a query on the document and return the matched nodes with their location.

        Examples:
            Get the normalized path of each match::

                >>> [node.path for node in crawler.find_nodes('$..size')]
                ["$['items'][0]['size']", "$['items'][1]['size']"]

        Arguments:
            query: the JSONPath query to apply to the document.

        Raises:
            jsoncrawler.QuerySyntaxError: if the query is not valid.
            jsoncrawler.EvaluationError: on evaluation errors, like calling an unknown function.

        Returns:
            the matched nodes, in document traversal order.

        """
        return self._crawler().find_nodes(_to_path(query).segments)

    def register_function(self, name: str, func: FunctionProtocol) -> None:
        """Register a custom filter function.

        Examples:
            Register a custom function that returns the first element of an array:

                >>> from jsoncrawler import ExpressionType, Nothing
                >>> class Head:
                ...     arg_types = (ExpressionType.VALUE,)
                ...     result_type = ExpressionType.VALUE
                ...     def __call__(self, value):
                ...         return value[0] if isinstance(value, list) and value else Nothing()
                ...
                >>> crawler = jsoncrawler.JsonCrawler({'items': [[3, 4], [1, 2]]})
                >>> crawler.register_function('head', Head())
                >>> crawler.find('$.items[?head(@) == 1]')
                [[1, 2]]

        Arguments:
            name: the function name. It will be called where ``name(...)`` is used in a filter expression. If two
                custom functions are registered with the same name the last one will be used.
            func: the function code in the form of a callable object that adhere to the
                :py:class:`jsoncrawler.FunctionProtocol`.

        Raises:
            jsoncrawler.JsonPathError: if the name is not valid or is the name of a built-in function, or if the
                provided callable doesn't adhere to the :py:class:`jsoncrawler.FunctionProtocol`.

        """
        validate_function(name, func)
        self._custom_functions[name] = func


try:
    __version__: str = version('jsoncrawler')
    """str: the version of the current jsoncrawler module."""
except PackageNotFoundError:  # pragma: no cover - this should never happen during tests
    pass  # package is not installed
