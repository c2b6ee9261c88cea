"""jsoncrawler custom exceptions module."""
from typing import Any


class JsonPathError(Exception):
    """Base exception raised by the jsoncrawler module for any error."""


class MalformedJsonError(JsonPathError):
    """Raised when the input text is not a valid JSON document."""

    def __init__(self, *args: Any, document: str, position: int, lineno: int, colno: int):
        """Initialize the exception with the location of the decoding error.

        Arguments:
            *args: all positional arguments like any regular exception.
            document: the JSON text that failed to decode.
            position: the character offset in the document where decoding failed.
            lineno: the line number (starting from 1) of the failure.
            colno: the column number (starting from 1) of the failure.

        """
        super().__init__(*args)
        self.document = document
        self.position = position
        self.lineno = lineno
        self.colno = colno

    def __str__(self) -> str:
        """Return the error message with the offending line and a marker below the failing column.

        Returns:
            the error message followed by the document line and a caret pointing at the error.

        """
        default = super().__str__()
        lines = self.document.splitlines() or ['']
        line = lines[min(self.lineno, len(lines)) - 1]
        marker = '-' * (self.colno - 1 + 6)  # 6 is for the length of 'Line: '
        return f'{default} (line {self.lineno} column {self.colno})\nLine: {line}\n{marker}^'


class QuerySyntaxError(JsonPathError):
    """Raised when a JSONPath query or filter expression violates the grammar."""

    def __init__(self, *args: Any, query: str, position: int):
        """Initialize the exception with the additional data of the query part.

        Arguments:
            *args: all positional arguments like any regular exception.
            query: the full query that generated the syntax error.
            position: the position in the query string where the syntax error occurred.

        """
        super().__init__(*args)
        self.query = query
        self.position = position

    def __str__(self) -> str:
        """Return a custom representation of the error.

        Returns:
            the whole query string with a clear indication on where the error occurred.

        """
        default = super().__str__()
        line = '-' * (self.position + 7)  # 7 is for the length of 'Query: '
        return f'{default}\nQuery: {self.query}\n{line}^'


class InvalidPathBuilderArgument(JsonPathError, ValueError):
    """Raised by the :py:class:`jsoncrawler.JsonPath` builder methods when called with an invalid argument."""


class EvaluationError(JsonPathError):
    """Raised when the evaluation of a valid query against a document fails."""


class UnknownFunctionError(EvaluationError):
    """Raised when a filter expression calls a function that is not registered."""

    def __init__(self, *args: Any, name: str):
        """Initialize the exception with the name of the missing function.

        Arguments:
            *args: all positional arguments like any regular exception.
            name: the name of the function that could not be resolved.

        """
        super().__init__(*args)
        self.name = name


class NoMatchError(EvaluationError):
    """Raised when a single match is requested but the query doesn't select anything."""
