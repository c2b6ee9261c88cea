"""JSONPath evaluation engine."""
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Union

from jsoncrawler._filter import Comparison, compare, CurrentNodeRef, FilterExpr, FunctionCall, Literal, Logical, RootRef
from jsoncrawler._functions import BUILTIN_FUNCTIONS, NodeList, validate_function
from jsoncrawler._protocols import ExpressionType, FunctionProtocol
from jsoncrawler._segments import (
    DeepScan,
    FilterSelector,
    IndexSelector,
    KeySelector,
    normalized_path,
    Segment,
    SliceSelector,
    UnionSelector,
    WildcardSelector,
)
from jsoncrawler._value import is_array, is_object, Nothing
from jsoncrawler.exceptions import EvaluationError, InvalidPathBuilderArgument, JsonPathError, UnknownFunctionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Node:
    """A value selected by a query together with its location in the document."""

    value: Any
    """The selected value, a reference to the document's own object."""
    location: tuple[Union[str, int], ...] = ()
    """The member names and array indexes that lead from the root to the value."""

    @property
    def path(self) -> str:
        """The normalized path of the node, like ``$['store']['book'][0]``."""
        return normalized_path(self.location)


class Crawler:
    """A low-level class to evaluate parsed JSONPath queries on a JSON-like object."""

    def __init__(self, document: Any, *, functions: Optional[dict[str, FunctionProtocol]] = None):
        """Initialize the instance with the document to query.

        Examples:
            Client code should not need to instantiate this low-level class in normal circumstances::

                >>> from jsoncrawler import JsonPath
                >>> crawler = Crawler({'a': [1, 2, 3]})
                >>> crawler.find(JsonPath.from_string('$.a[-1]').segments)
                [3]

        Arguments:
            document: the JSON-like object to query.
            functions: an optional dictionary with the custom filter functions to load. The dictionary keys are the
                names of the functions and the values are the callables that adhere to the
                :py:class:`jsoncrawler.FunctionProtocol` protocol.

        Raises:
            jsoncrawler.JsonPathError: if any provided custom function overrides a built-in one or is not valid.

        """
        self._document = document
        self._functions: dict[str, FunctionProtocol] = dict(BUILTIN_FUNCTIONS)
        for name, func in (functions or {}).items():
            validate_function(name, func)
            self._functions[name] = func

    def find(self, segments: Sequence[Segment]) -> list[Any]:
        """Apply the segments to the document and return the selected values.

        Arguments:
            segments: the parsed query.

        Raises:
            jsoncrawler.EvaluationError: on evaluation errors, like calling an unknown function.

        Returns:
            the selected values, in document traversal order.

        """
        return [node.value for node in self.find_nodes(segments)]

    def find_nodes(self, segments: Sequence[Segment]) -> list[Node]:
        """Apply the segments to the document and return the selected nodes with their location.

        Arguments:
            segments: the parsed query.

        Raises:
            jsoncrawler.EvaluationError: on evaluation errors, like calling an unknown function.

        Returns:
            the selected nodes, in document traversal order.

        """
        nodes = self._apply(segments, [Node(self._document)])
        logger.debug('Query matched %d nodes', len(nodes))
        return nodes

    def evaluate(self, expression: FilterExpr, current: Any) -> bool:
        """Evaluate a filter expression for a given current node.

        Arguments:
            expression: the parsed filter expression.
            current: the value bound to ``@``, the document is bound to ``$``.

        Raises:
            jsoncrawler.EvaluationError: on evaluation errors, like calling an unknown function.

        Returns:
            the result of the filter expression.

        """
        return self._test(expression, current)

    def _apply(self, segments: Sequence[Segment], nodes: list[Node]) -> list[Node]:
        """Apply the segments, in order, to the given starting nodes.

        Arguments:
            segments: the segments to apply.
            nodes: the starting nodes.

        Raises:
            jsoncrawler.InvalidPathBuilderArgument: if the segments end with a descendant operator.

        Returns:
            the selected nodes.

        """
        i = 0
        while i < len(segments):
            segment = segments[i]
            if isinstance(segment, DeepScan):
                if i + 1 >= len(segments) or isinstance(segments[i + 1], DeepScan):
                    raise InvalidPathBuilderArgument('The descendant operator must be followed by a selector.')

                selector = segments[i + 1]
                nodes = [match for node in nodes for descendant in self._descendants(node)
                         for match in self._select(selector, descendant)]
                i += 2
            else:
                nodes = [match for node in nodes for match in self._select(segment, node)]
                i += 1

        return nodes

    @staticmethod
    def _children(node: Node) -> Iterator[Node]:
        """Iterate the direct children of a node: object members in insertion order or array elements in order.

        Arguments:
            node: the parent node.

        Yields:
            the child nodes. Nothing for scalar values.

        """
        if is_object(node.value):
            for key, value in node.value.items():
                yield Node(value, node.location + (key,))
        elif is_array(node.value):
            for index, value in enumerate(node.value):
                yield Node(value, node.location + (index,))

    def _descendants(self, node: Node) -> Iterator[Node]:
        """Iterate a node and all its descendants in pre-order, depth-first.

        Arguments:
            node: the subtree root.

        Yields:
            the node itself first, then each child followed by its own descendants.

        """
        stack = [node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(list(self._children(current))))

    def _select(self, selector: Segment, node: Node) -> list[Node]:
        """Apply a single selector to a node.

        Arguments:
            selector: the selector to apply.
            node: the node to select from.

        Raises:
            jsoncrawler.EvaluationError: on evaluation errors inside filters.

        Returns:
            the selected child nodes.

        """
        value = node.value
        if isinstance(selector, KeySelector):
            if is_object(value) and selector.name in value:
                return [Node(value[selector.name], node.location + (selector.name,))]

            return []

        if isinstance(selector, IndexSelector):
            if not is_array(value):
                return []

            index = selector.index if selector.index >= 0 else len(value) + selector.index
            if 0 <= index < len(value):
                return [Node(value[index], node.location + (index,))]

            return []

        if isinstance(selector, SliceSelector):
            if not is_array(value):
                return []

            return [Node(value[i], node.location + (i,)) for i in selector.indices(len(value))]

        if isinstance(selector, WildcardSelector):
            return list(self._children(node))

        if isinstance(selector, FilterSelector):
            return [child for child in self._children(node) if self._test(selector.expression, child.value)]

        if isinstance(selector, UnionSelector):
            return [match for sub_selector in selector.selectors for match in self._select(sub_selector, node)]

        raise EvaluationError(f'Unsupported segment {selector!r}.')

    def _test(self, expression: FilterExpr, current: Any) -> bool:
        """Evaluate an expression used where a boolean is expected.

        Arguments:
            expression: the expression to evaluate.
            current: the value bound to ``@``.

        Raises:
            jsoncrawler.EvaluationError: if the expression cannot be used as a test or on function errors.

        Returns:
            the boolean result.

        """
        if isinstance(expression, Logical):
            if expression.op == 'and':
                return all(self._test(operand, current) for operand in expression.operands)
            if expression.op == 'or':
                return any(self._test(operand, current) for operand in expression.operands)

            return not self._test(expression.operands[0], current)

        if isinstance(expression, Comparison):
            return compare(expression.op, self._comparable(expression.left, current),
                           self._comparable(expression.right, current))

        if isinstance(expression, (CurrentNodeRef, RootRef)):
            return len(self._query(expression, current)) > 0

        if isinstance(expression, FunctionCall):
            func = self._resolve(expression.name)
            if func.result_type is ExpressionType.VALUE:
                raise EvaluationError(f'Function {expression.name}() returns a value, it cannot be used as a test.')

            return bool(self._call(expression, func, current))

        raise EvaluationError(f'Expression `{expression}` cannot be used as a test.')

    def _comparable(self, expression: FilterExpr, current: Any) -> Any:
        """Evaluate an expression to a single value, as required by comparisons and value arguments.

        Arguments:
            expression: the expression to evaluate.
            current: the value bound to ``@``.

        Raises:
            jsoncrawler.EvaluationError: if the expression doesn't produce a value.

        Returns:
            the value or a :py:class:`jsoncrawler.Nothing` instance when there is no value.

        """
        if isinstance(expression, Literal):
            return expression.value

        if isinstance(expression, (CurrentNodeRef, RootRef)):
            return self._single(self._query(expression, current))

        if isinstance(expression, FunctionCall):
            func = self._resolve(expression.name)
            result = self._call(expression, func, current)
            if func.result_type is ExpressionType.VALUE:
                return result
            if func.result_type is ExpressionType.NODES:
                return self._single(result)

            raise EvaluationError(f'Function {expression.name}() returns a logical, it cannot be compared.')

        raise EvaluationError(f'Expression `{expression}` does not produce a value.')

    @staticmethod
    def _single(nodes: Sequence[Any]) -> Any:
        """Return the value of a singular query result, Nothing if it selected no node."""
        if len(nodes) == 1:
            return nodes[0]

        return Nothing()

    def _query(self, expression: Union[CurrentNodeRef, RootRef], current: Any) -> NodeList:
        """Evaluate a query embedded in a filter expression.

        Arguments:
            expression: the relative or absolute query.
            current: the value bound to ``@``.

        Returns:
            the values of the selected nodes.

        """
        start = current if isinstance(expression, CurrentNodeRef) else self._document
        return NodeList(node.value for node in self._apply(expression.segments, [Node(start)]))

    def _resolve(self, name: str) -> FunctionProtocol:
        """Resolve a function by name.

        Arguments:
            name: the function name.

        Raises:
            jsoncrawler.UnknownFunctionError: if there is no function registered with this name.

        Returns:
            the function.

        """
        try:
            return self._functions[name]
        except KeyError:
            raise UnknownFunctionError(f'Unknown function {name}().', name=name) from None

    def _call(self, call: FunctionCall, func: FunctionProtocol, current: Any) -> Any:
        """Evaluate the arguments according to the declared types and call the function.

        Arguments:
            call: the parsed function call.
            func: the resolved function.
            current: the value bound to ``@``.

        Raises:
            jsoncrawler.EvaluationError: on wrong arguments or if the function raises an exception.

        Returns:
            the function result.

        """
        if len(call.args) != len(func.arg_types):
            raise EvaluationError(f'Function {call.name}() takes {len(func.arg_types)} arguments, '
                                  f'got {len(call.args)}.')

        args = [self._argument(arg, arg_type, current) for arg, arg_type in zip(call.args, func.arg_types)]
        logger.debug('Calling function %s() with %d arguments', call.name, len(args))
        try:
            return func(*args)
        except JsonPathError:
            raise
        except Exception as ex:
            raise EvaluationError(f'Function {call.name}() raised an exception.') from ex

    def _argument(self, arg: FilterExpr, arg_type: ExpressionType, current: Any) -> Any:
        """Evaluate a function argument according to its declared type.

        Arguments:
            arg: the argument expression.
            arg_type: the declared type.
            current: the value bound to ``@``.

        Raises:
            jsoncrawler.EvaluationError: if the argument cannot be converted to the declared type.

        Returns:
            the argument value.

        """
        if arg_type is ExpressionType.VALUE:
            return self._comparable(arg, current)

        if arg_type is ExpressionType.LOGICAL:
            return self._test(arg, current)

        if isinstance(arg, (CurrentNodeRef, RootRef)):
            return self._query(arg, current)

        if isinstance(arg, FunctionCall):
            func = self._resolve(arg.name)
            if func.result_type is ExpressionType.NODES:
                return self._call(arg, func, current)

        raise EvaluationError(f'Argument `{arg}` is not a query, expected {arg_type.value}.')
