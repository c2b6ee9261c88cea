"""Typing protocols used by the jsoncrawler package."""
import enum
from typing import Any, Protocol, runtime_checkable


class ExpressionType(enum.Enum):
    """The types of the expressions that can be passed to and returned by filter functions."""

    VALUE = 'ValueType'
    """A single JSON value or the absence of a value."""
    LOGICAL = 'LogicalType'
    """A boolean, as the result of a test or a comparison."""
    NODES = 'NodesType'
    """The list of nodes selected by a query."""


@runtime_checkable
class FunctionProtocol(Protocol):
    """Callback protocol for the custom filter functions."""

    arg_types: tuple[ExpressionType, ...]
    """The declared type of each positional argument, that also defines the function arity."""
    result_type: ExpressionType
    """The declared type of the returned value."""

    def __call__(self, *args: Any) -> Any:
        """To register a custom function a callable that adhere to this protocol must be provided.

        Examples:
            Register a custom function that checks if a string starts with a given prefix:

                >>> import jsoncrawler
                >>> from jsoncrawler import ExpressionType
                >>> class StartsWith:
                ...     arg_types = (ExpressionType.VALUE, ExpressionType.VALUE)
                ...     result_type = ExpressionType.LOGICAL
                ...     def __call__(self, value, prefix):
                ...         return isinstance(value, str) and isinstance(prefix, str) and value.startswith(prefix)
                ...
                >>> crawler = jsoncrawler.JsonCrawler(['apple', 'banana', 'avocado'])
                >>> crawler.register_function('starts_with', StartsWith())
                >>> crawler.find('$[?starts_with(@, "a")]')
                ['apple', 'avocado']

        Arguments:
            *args: one argument for each declared argument type. Arguments of type
                :py:attr:`ExpressionType.VALUE` are a JSON value or a :py:class:`jsoncrawler.Nothing` instance when
                the query selected no node, arguments of type :py:attr:`ExpressionType.NODES` are a
                :py:class:`jsoncrawler.NodeList` and arguments of type :py:attr:`ExpressionType.LOGICAL` are booleans.

        Raises:
            Exception: any exception raised by the callable is catched by jsoncrawler and re-raised as a
                :py:class:`jsoncrawler.EvaluationError` exception.

        Returns:
            a value matching the declared :py:attr:`result_type`.

        """
