"""JSONPath query parser, including the filter expressions grammar."""
import logging
import re
from typing import Optional, Union

from jsoncrawler._filter import (
    combine,
    COMPARISON_OPERATORS,
    Comparison,
    CurrentNodeRef,
    FilterExpr,
    FunctionCall,
    Literal,
    Logical,
    RootRef,
)
from jsoncrawler._functions import BUILTIN_FUNCTIONS
from jsoncrawler._protocols import ExpressionType
from jsoncrawler._segments import (
    DeepScan,
    FilterSelector,
    IndexSelector,
    is_singular,
    KeySelector,
    Segment,
    Selector,
    SliceSelector,
    UnionSelector,
    WildcardSelector,
)
from jsoncrawler.exceptions import QuerySyntaxError

logger = logging.getLogger(__name__)

ROOT_IDENTIFIER = '$'
"""str: The identifier of the root node."""
CURRENT_NODE_IDENTIFIER = '@'
"""str: The identifier of the current node inside filter expressions."""
WHITESPACE = ' \t\n\r'
"""str: The characters considered blank space by the grammar."""
MAX_INT = 2 ** 53 - 1
"""int: The biggest absolute value allowed for indexes and slice bounds, per I-JSON."""
ESCAPES = {'b': '\b', 'f': '\f', 'n': '\n', 'r': '\r', 't': '\t', '/': '/', '\\': '\\'}
"""dict: The escape sequences allowed inside string literals, besides the quotes and unicode ones."""
INT_PATTERN = re.compile(r'-?(0|[1-9][0-9]*)')
NUMBER_PATTERN = re.compile(r'-?(0|[1-9][0-9]*)(\.[0-9]+)?([eE][-+]?[0-9]+)?')
IDENTIFIER_PATTERN = re.compile(r'[a-z][a-z0-9_]*')


def _is_name_first(char: str) -> bool:
    """Check if a character can start a member name in dot notation."""
    if char.isascii():
        return char.isalpha() or char == '_'

    return not 0xD800 <= ord(char) <= 0xDFFF  # Lone surrogates


def _is_name_char(char: str) -> bool:
    """Check if a character can be part of a member name in dot notation."""
    return _is_name_first(char) or char in '0123456789'


class PathParser:
    """A recursive descent parser for JSONPath queries as defined in RFC 9535."""

    # pylint: disable=too-many-branches,too-many-statements,too-many-return-statements

    def __init__(self, query: str):
        """Initialize the parser.

        Arguments:
            query: the text to parse.

        """
        self._query = query
        self._pos = 0

    def parse(self) -> tuple[Segment, ...]:
        """Parse a whole JSONPath query.

        Examples:
            ::

                >>> PathParser('$.store.book[0]').parse()
                (KeySelector(name='store'), KeySelector(name='book'), IndexSelector(index=0))

        Raises:
            jsoncrawler.QuerySyntaxError: on any grammar violation.

        Returns:
            the segments of the query.

        """
        if not self._query:
            raise QuerySyntaxError('Empty query.', query=self._query, position=0)

        if self._peek() != ROOT_IDENTIFIER:
            raise QuerySyntaxError(f'Query must start with the root identifier `{ROOT_IDENTIFIER}`.',
                                   query=self._query, position=0)

        self._pos += 1
        try:
            segments = self._parse_segments()
        except RecursionError as ex:
            raise QuerySyntaxError('Expression nested too deeply.', query=self._query, position=self._pos) from ex

        if not self._at_end():
            if self._peek() in WHITESPACE:
                raise QuerySyntaxError('Trailing blank space at the end of the query.',
                                       query=self._query, position=self._pos)

            raise QuerySyntaxError(f'Unexpected character `{self._peek()}`.', query=self._query, position=self._pos)

        logger.debug('Parsed query %s into %d segments', self._query, len(segments))
        return segments

    def parse_filter(self) -> FilterExpr:
        """Parse a standalone filter expression, with or without the leading ``?``.

        Examples:
            ::

                >>> str(PathParser('?(@.price < 10)').parse_filter())
                '@.price < 10'

        Raises:
            jsoncrawler.QuerySyntaxError: on any grammar violation.

        Returns:
            the parsed filter expression.

        """
        self._skip_whitespace()
        if self._peek() == '?':
            self._pos += 1
            self._skip_whitespace()

        if self._at_end():
            raise QuerySyntaxError('Empty filter expression.', query=self._query, position=self._pos)

        start = self._pos
        try:
            expression = self._parse_logical_expression()
            self._check_test_expression(expression, start)
        except RecursionError as ex:
            raise QuerySyntaxError('Expression nested too deeply.', query=self._query, position=self._pos) from ex

        self._skip_whitespace()
        if not self._at_end():
            raise QuerySyntaxError(f'Unexpected character `{self._peek()}` in filter expression.',
                                   query=self._query, position=self._pos)

        return expression

    def _peek(self, offset: int = 0) -> str:
        """Return the character at the current position plus the offset, or an empty string past the end."""
        return self._query[self._pos + offset:self._pos + offset + 1]

    def _at_end(self) -> bool:
        """Return whether the whole query has been consumed."""
        return self._pos >= len(self._query)

    def _skip_whitespace(self) -> None:
        """Move the position past any blank space."""
        while not self._at_end() and self._query[self._pos] in WHITESPACE:
            self._pos += 1

    def _expect(self, char: str, message: str) -> None:
        """Consume the expected character.

        Arguments:
            char: the character that must be at the current position.
            message: the error message if the character is not found.

        Raises:
            jsoncrawler.QuerySyntaxError: if the character at the current position is not the expected one.

        """
        if self._peek() != char:
            raise QuerySyntaxError(message, query=self._query, position=self._pos)

        self._pos += 1

    def _parse_segments(self) -> tuple[Segment, ...]:
        """Parse all the segments following a root or current node identifier.

        Blank space is allowed before each segment but is not consumed if not followed by a segment, to let the
        caller decide if it's valid in its context.

        Returns:
            the parsed segments.

        """
        segments: list[Segment] = []
        while True:
            start = self._pos
            self._skip_whitespace()
            char = self._peek()
            if char == '.':
                segments.extend(self._parse_dot_segment())
            elif char == '[':
                segments.append(self._parse_bracketed_selection())
            else:
                self._pos = start
                break

        return tuple(segments)

    def _parse_dot_segment(self) -> list[Segment]:
        """Parse a segment starting with a dot: ``.name``, ``.*``, ``..name``, ``..*`` or ``..[...]``.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid segment.

        Returns:
            the parsed segments, two when it's a descendant segment.

        """
        start = self._pos
        self._pos += 1
        segments: list[Segment] = []
        if self._peek() == '.':
            self._pos += 1
            segments.append(DeepScan())
            if self._peek() == '[':
                segments.append(self._parse_bracketed_selection())
                return segments

        if self._peek() == '*':
            self._pos += 1
            segments.append(WildcardSelector())
            return segments

        if not self._peek() or not _is_name_first(self._peek()):
            if self._peek() in WHITESPACE and self._peek():
                message = 'Blank space is not allowed after a dot.'
            elif segments:
                message = 'Expected a member name, `*` or `[` after the descendant operator `..`.'
            else:
                message = 'Invalid member name, use the bracket notation with a quoted name instead.'
            raise QuerySyntaxError(message, query=self._query, position=start if not self._peek() else self._pos)

        name_start = self._pos
        while not self._at_end() and _is_name_char(self._query[self._pos]):
            self._pos += 1

        segments.append(KeySelector(self._query[name_start:self._pos]))
        return segments

    def _parse_bracketed_selection(self) -> Selector:
        """Parse a bracketed selection with one or more comma separated selectors.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid selection.

        Returns:
            the selector, or a union selector if there is more than one.

        """
        start = self._pos
        self._pos += 1
        selectors: list[Selector] = []
        while True:
            self._skip_whitespace()
            if self._at_end():
                raise QuerySyntaxError('Unbalanced bracket `[`, missing `]`.', query=self._query, position=start)

            selectors.append(self._parse_selector())
            self._skip_whitespace()
            char = self._peek()
            if char == ',':
                self._pos += 1
                continue

            if char == ']':
                self._pos += 1
                break

            if not char:
                raise QuerySyntaxError('Unbalanced bracket `[`, missing `]`.', query=self._query, position=start)

            raise QuerySyntaxError(f'Expected `,` or `]` in bracketed selection, got `{char}`.',
                                   query=self._query, position=self._pos)

        if len(selectors) == 1:
            return selectors[0]

        return UnionSelector(tuple(selectors))

    def _parse_selector(self) -> Selector:
        """Parse a single selector inside brackets.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid selector.

        Returns:
            the parsed selector.

        """
        char = self._peek()
        if char in ('"', "'"):
            return KeySelector(self._parse_string())

        if char == '*':
            self._pos += 1
            return WildcardSelector()

        if char == '?':
            self._pos += 1
            self._skip_whitespace()
            start = self._pos
            expression = self._parse_logical_expression()
            self._check_test_expression(expression, start)
            return FilterSelector(expression)

        if char == ':' or char == '-' or char.isdigit():
            return self._parse_index_or_slice()

        if char == ']':
            raise QuerySyntaxError('Empty bracketed selection.', query=self._query, position=self._pos)

        raise QuerySyntaxError(f'Invalid selector starting with `{char}`.', query=self._query, position=self._pos)

    def _parse_int(self) -> int:
        """Parse an integer without leading zeros in the I-JSON range.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid integer.

        Returns:
            the integer.

        """
        match = INT_PATTERN.match(self._query, self._pos)
        if match is None:
            raise QuerySyntaxError('Expected an integer.', query=self._query, position=self._pos)

        text = match.group()
        if self._query[match.end():match.end() + 1].isdigit():
            raise QuerySyntaxError(f'Leading zeros are not allowed in integer `{text}`.',
                                   query=self._query, position=self._pos)

        if text == '-0':
            raise QuerySyntaxError('Negative zero is not a valid integer.', query=self._query, position=self._pos)

        value = int(text)
        if abs(value) > MAX_INT:
            raise QuerySyntaxError(f'Integer `{text}` out of the allowed range.', query=self._query,
                                   position=self._pos)

        self._pos = match.end()
        return value

    def _parse_index_or_slice(self) -> Union[IndexSelector, SliceSelector]:
        """Parse an index ``[n]`` or a slice ``[start:end:step]`` selector.

        Returns:
            the parsed selector.

        """
        start: Optional[int] = None
        end: Optional[int] = None
        step: Optional[int] = None

        if self._peek() != ':':
            start = self._parse_int()
            self._skip_whitespace()
            if self._peek() != ':':
                return IndexSelector(start)

        self._pos += 1  # First colon
        self._skip_whitespace()
        if self._peek() not in (':', ',', ']', ''):
            end = self._parse_int()
            self._skip_whitespace()

        if self._peek() == ':':
            self._pos += 1
            self._skip_whitespace()
            if self._peek() not in (',', ']', ''):
                step = self._parse_int()

        return SliceSelector(start, end, 1 if step is None else step)

    def _parse_string(self) -> str:
        """Parse a single or double quoted string literal, unescaping it.

        Raises:
            jsoncrawler.QuerySyntaxError: on unterminated string, invalid escape or unescaped control character.

        Returns:
            the unescaped string.

        """
        quote = self._peek()
        start = self._pos
        self._pos += 1
        chars: list[str] = []
        while True:
            if self._at_end():
                raise QuerySyntaxError('Unterminated string literal.', query=self._query, position=start)

            char = self._query[self._pos]
            if char == quote:
                self._pos += 1
                break

            if ord(char) < 0x20:
                raise QuerySyntaxError('Control characters must be escaped in string literals.',
                                       query=self._query, position=self._pos)

            if char != '\\':
                chars.append(char)
                self._pos += 1
                continue

            escape = self._peek(1)
            if escape == quote:
                chars.append(quote)
                self._pos += 2
            elif escape in ESCAPES and escape:
                chars.append(ESCAPES[escape])
                self._pos += 2
            elif escape == 'u':
                chars.append(self._parse_unicode_escape())
            else:
                raise QuerySyntaxError(f'Invalid escape sequence `\\{escape}` in string literal.',
                                       query=self._query, position=self._pos)

        return ''.join(chars)

    def _read_hex(self) -> int:
        """Read the 4 hexadecimal digits of a ``\\uXXXX`` escape sequence at the current position.

        Raises:
            jsoncrawler.QuerySyntaxError: if the escape sequence is not valid.

        Returns:
            the code unit.

        """
        digits = self._query[self._pos + 2:self._pos + 6]
        if len(digits) != 4 or not all(i in '0123456789abcdefABCDEF' for i in digits):
            raise QuerySyntaxError('Invalid unicode escape sequence.', query=self._query, position=self._pos)

        self._pos += 6
        return int(digits, 16)

    def _parse_unicode_escape(self) -> str:
        """Parse a unicode escape sequence, combining surrogate pairs."""
        start = self._pos
        code = self._read_hex()
        if 0xDC00 <= code <= 0xDFFF:
            raise QuerySyntaxError('Unpaired low surrogate in unicode escape sequence.',
                                   query=self._query, position=start)

        if 0xD800 <= code <= 0xDBFF:
            if self._query[self._pos:self._pos + 2] != '\\u':
                raise QuerySyntaxError('Unpaired high surrogate in unicode escape sequence.',
                                       query=self._query, position=start)

            low = self._read_hex()
            if not 0xDC00 <= low <= 0xDFFF:
                raise QuerySyntaxError('Invalid low surrogate in unicode escape sequence.',
                                       query=self._query, position=start)

            code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)

        return chr(code)

    def _parse_logical_expression(self) -> FilterExpr:
        """Parse a logical or expression, the lowest precedence level of the filter grammar.

        Returns:
            the parsed expression.

        """
        start = self._pos
        operands = [self._parse_logical_and()]
        while True:
            checkpoint = self._pos
            self._skip_whitespace()
            if self._query.startswith('||', self._pos):
                self._pos += 2
                self._skip_whitespace()
                operands.append(self._parse_logical_and())
            else:
                self._pos = checkpoint
                break

        if len(operands) > 1:
            for operand in operands:
                self._check_test_expression(operand, start)

        return combine('or', operands)

    def _parse_logical_and(self) -> FilterExpr:
        """Parse a sequence of basic expressions joined by the `&&` operator.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid expression.

        Returns:
            the parsed expression.

        """
        start = self._pos
        operands = [self._parse_basic_expression()]
        while True:
            checkpoint = self._pos
            self._skip_whitespace()
            if self._query.startswith('&&', self._pos):
                self._pos += 2
                self._skip_whitespace()
                operands.append(self._parse_basic_expression())
            else:
                self._pos = checkpoint
                break

        if len(operands) > 1:
            for operand in operands:
                self._check_test_expression(operand, start)

        return combine('and', operands)

    def _parse_basic_expression(self) -> FilterExpr:
        """Parse a parenthesized expression, a negation, a comparison or a test expression.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid expression.

        Returns:
            the parsed expression.

        """
        start = self._pos
        char = self._peek()
        if char == '!' and self._peek(1) != '=':
            self._pos += 1
            self._skip_whitespace()
            operand_start = self._pos
            if self._peek() == '(':
                operand = self._parse_parenthesized_expression()
            else:
                operand = self._parse_primary()
                if not isinstance(operand, (CurrentNodeRef, RootRef, FunctionCall)):
                    raise QuerySyntaxError('The `!` operator must be followed by a query, a function call or a '
                                           'parenthesized expression.', query=self._query, position=operand_start)

            self._check_test_expression(operand, operand_start)
            return Logical('not', (operand,))

        if char == '(':
            return self._parse_parenthesized_expression()

        left = self._parse_primary()
        checkpoint = self._pos
        self._skip_whitespace()
        for op in COMPARISON_OPERATORS:
            if self._query.startswith(op, self._pos):
                break
        else:
            self._pos = checkpoint
            return left

        op_position = self._pos
        self._pos += len(op)
        self._skip_whitespace()
        right_start = self._pos
        right = self._parse_primary()
        self._check_comparable(left, start)
        self._check_comparable(right, right_start)
        logger.debug('Parsed comparison with operator %s at position %d', op, op_position)
        return Comparison(op, left, right)

    def _parse_parenthesized_expression(self) -> FilterExpr:
        """Parse a logical expression enclosed in parentheses.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid expression or missing closing parenthesis.

        Returns:
            the parsed expression.

        """
        start = self._pos
        self._pos += 1
        self._skip_whitespace()
        expression = self._parse_logical_expression()
        self._check_test_expression(expression, start + 1)
        self._skip_whitespace()
        if self._at_end():
            raise QuerySyntaxError('Unbalanced parentheses `(`, missing `)`.', query=self._query, position=start)

        self._expect(')', f'Expected `)` to close the parenthesized expression, got `{self._peek()}`.')
        return expression

    def _parse_primary(self) -> FilterExpr:
        """Parse a literal, a query or a function call.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid expression.

        Returns:
            the parsed expression.

        """
        char = self._peek()
        if char == CURRENT_NODE_IDENTIFIER:
            self._pos += 1
            return CurrentNodeRef(self._parse_segments())

        if char == ROOT_IDENTIFIER:
            self._pos += 1
            return RootRef(self._parse_segments())

        if char in ('"', "'"):
            return Literal(self._parse_string())

        if char == '-' or char.isdigit():
            return self._parse_number()

        match = IDENTIFIER_PATTERN.match(self._query, self._pos)
        if match is not None:
            name = match.group()
            if self._query[match.end():match.end() + 1] == '(':
                return self._parse_function_call(name)

            literals = {'true': True, 'false': False, 'null': None}
            if name in literals:
                self._pos = match.end()
                return Literal(literals[name])

        if not char:
            raise QuerySyntaxError('Unexpected end of filter expression.', query=self._query, position=self._pos)

        raise QuerySyntaxError(f'Invalid filter expression starting with `{char}`.',
                               query=self._query, position=self._pos)

    def _parse_number(self) -> Literal:
        """Parse a number literal, integers are kept as integers and everything else is a float.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid number.

        Returns:
            the literal with the number.

        """
        match = NUMBER_PATTERN.match(self._query, self._pos)
        if match is None:
            raise QuerySyntaxError('Invalid number literal.', query=self._query, position=self._pos)

        if self._query[match.end():match.end() + 1].isdigit() or self._query[match.end():match.end() + 1] == '.':
            raise QuerySyntaxError('Invalid number literal.', query=self._query, position=self._pos)

        text = match.group()
        self._pos = match.end()
        if match.group(2) or match.group(3):
            return Literal(float(text))

        return Literal(int(text))

    def _parse_function_call(self, name: str) -> FunctionCall:
        """Parse a function call and check it against the built-in function signature, if any.

        Arguments:
            name: the function name, already matched at the current position.

        Raises:
            jsoncrawler.QuerySyntaxError: on invalid arguments.

        Returns:
            the function call.

        """
        start = self._pos
        self._pos += len(name) + 1
        args: list[FilterExpr] = []
        positions: list[int] = []
        self._skip_whitespace()
        if self._peek() == ')':
            self._pos += 1
        else:
            while True:
                self._skip_whitespace()
                positions.append(self._pos)
                args.append(self._parse_logical_expression())
                self._skip_whitespace()
                char = self._peek()
                if char == ',':
                    self._pos += 1
                elif char == ')':
                    self._pos += 1
                    break
                elif not char:
                    raise QuerySyntaxError(f'Unbalanced parentheses in call to {name}().',
                                           query=self._query, position=start)
                else:
                    raise QuerySyntaxError(f'Expected `,` or `)` in call to {name}(), got `{char}`.',
                                           query=self._query, position=self._pos)

        func = BUILTIN_FUNCTIONS.get(name)
        if func is not None:
            if len(args) != len(func.arg_types):
                raise QuerySyntaxError(f'Function {name}() takes {len(func.arg_types)} arguments, got {len(args)}.',
                                       query=self._query, position=start)

            for arg, arg_type, position in zip(args, func.arg_types, positions):
                self._check_argument(name, arg, arg_type, position)

        return FunctionCall(name, tuple(args))

    @staticmethod
    def _result_type(expression: FilterExpr) -> Optional[ExpressionType]:
        """Return the result type of a function call, if known at parse time."""
        if isinstance(expression, FunctionCall) and expression.name in BUILTIN_FUNCTIONS:
            return BUILTIN_FUNCTIONS[expression.name].result_type

        return None

    def _check_argument(self, name: str, arg: FilterExpr, arg_type: ExpressionType, position: int) -> None:
        """Check that a function argument is well-typed.

        Arguments:
            name: the function name.
            arg: the argument expression.
            arg_type: the declared type of the argument.
            position: the position of the argument in the query.

        Raises:
            jsoncrawler.QuerySyntaxError: if the argument is not of the declared type.

        """
        result_type = self._result_type(arg)
        if arg_type is ExpressionType.VALUE:
            valid = (isinstance(arg, Literal)
                     or isinstance(arg, (CurrentNodeRef, RootRef)) and is_singular(arg.segments)
                     or isinstance(arg, FunctionCall) and result_type in (None, ExpressionType.VALUE))
        elif arg_type is ExpressionType.NODES:
            valid = (isinstance(arg, (CurrentNodeRef, RootRef))
                     or isinstance(arg, FunctionCall) and result_type in (None, ExpressionType.NODES))
        else:
            valid = (not isinstance(arg, Literal)
                     and (not isinstance(arg, FunctionCall) or result_type is not ExpressionType.VALUE))

        if not valid:
            raise QuerySyntaxError(f'Invalid argument `{arg}` for function {name}(), expected {arg_type.value}.',
                                   query=self._query, position=position)

    def _check_comparable(self, expression: FilterExpr, position: int) -> None:
        """Check that an expression can be used in a comparison.

        Arguments:
            expression: the expression to check.
            position: the position of the expression in the query.

        Raises:
            jsoncrawler.QuerySyntaxError: if the expression is a non-singular query or a function that doesn't
                return a value.

        """
        if isinstance(expression, (CurrentNodeRef, RootRef)) and not is_singular(expression.segments):
            raise QuerySyntaxError(f'Non-singular query `{expression}` cannot be used in a comparison.',
                                   query=self._query, position=position)

        if self._result_type(expression) not in (None, ExpressionType.VALUE):
            raise QuerySyntaxError(f'Function `{expression}` does not return a value and cannot be compared.',
                                   query=self._query, position=position)

    def _check_test_expression(self, expression: FilterExpr, position: int) -> None:
        """Check that an expression can be used where a boolean is expected.

        Arguments:
            expression: the expression to check.
            position: the position of the expression in the query.

        Raises:
            jsoncrawler.QuerySyntaxError: if the expression is a literal or a function returning a value.

        """
        if isinstance(expression, Literal):
            raise QuerySyntaxError(f'Literal `{expression}` must be compared, it cannot be used as a test.',
                                   query=self._query, position=position)

        if self._result_type(expression) is ExpressionType.VALUE:
            raise QuerySyntaxError(f'Function `{expression}` returns a value, it must be compared.',
                                   query=self._query, position=position)


def parse(query: str) -> tuple[Segment, ...]:
    """Parse a JSONPath query into its segments.

    Arguments:
        query: the JSONPath query.

    Raises:
        jsoncrawler.QuerySyntaxError: on invalid query.

    Returns:
        the segments of the query.

    """
    return PathParser(query).parse()


def parse_filter(expression: str) -> FilterExpr:
    """Parse a standalone filter expression.

    Arguments:
        expression: the filter expression, with or without the leading ``?`` and outer parentheses.

    Raises:
        jsoncrawler.QuerySyntaxError: on invalid expression.

    Returns:
        the parsed filter expression.

    """
    return PathParser(expression).parse_filter()
