"""jsoncrawler test module."""
# pylint: disable=attribute-defined-outside-init
import json
import logging
import re

import pytest

import jsoncrawler
from jsoncrawler import ExpressionType, Nothing


INPUT_JSON = """
{
    "store": {
        "book": [
            {"category": "reference", "author": "Nigel Rees", "title": "Sayings of the Century", "price": 8.95},
            {"category": "fiction", "author": "Evelyn Waugh", "title": "Sword of Honour", "price": 12.99},
            {"category": "fiction", "author": "Herman Melville", "title": "Moby Dick", "isbn": "0-553-21311-3",
             "price": 8.99},
            {"category": "fiction", "author": "J. R. R. Tolkien", "title": "The Lord of the Rings",
             "isbn": "0-395-19395-8", "price": 22.99}
        ],
        "bicycle": {"color": "red", "price": 399}
    },
    "expensive": 10
}
"""
INPUT_OBJECT = json.loads(INPUT_JSON)
BOOKS = INPUT_OBJECT['store']['book']
AUTHORS = ['Nigel Rees', 'Evelyn Waugh', 'Herman Melville', 'J. R. R. Tolkien']
INPUT_MIXED = json.loads('[1, 1.0, "1", true, null, [1], {"a": 1}, "b", 2.5, false]')
INPUT_LOGICAL = json.loads('[{"a": 1, "b": true}, {"a": 2, "b": false}, {"a": 3}, {"b": true}]')
INPUT_LINES = """
{"name": "Gilbert", "age": 61}
{"name": "Alexa", "age": 34}
{"name": "May", "age": 57}
{"name": "Deloise", "age": 44}
"""
INPUT_LINES_WITH_ERRORS = """
{"name": "Gilbert", "age": 61}
{invalid
{invalid
{"name": "Deloise", "age": 44}
"""


class TestObject:
    """Testing queries on the bookstore document."""

    def setup_method(self):
        """Initialize the test instance."""
        self.crawler = jsoncrawler.JsonCrawler(INPUT_OBJECT)

    @pytest.mark.parametrize('query, expected', (
        # Root
        ('$', [INPUT_OBJECT]),
        # Member names
        ('$.expensive', [10]),
        ('$.store.bicycle.color', ['red']),
        ('$["store"][\'bicycle\']["color"]', ['red']),
        ('$.store.bicycle["color"]', ['red']),
        ('$ .store [\'bicycle\'] .color', ['red']),
        ('$.nonexistent', []),
        ('$.store.book.title', []),
        ('$.store.bicycle.color.length', []),
        # Indexes
        ('$.store.book[2].title', ['Moby Dick']),
        ('$.store.book[-1].title', ['The Lord of the Rings']),
        ('$.store.book[-4].title', ['Sayings of the Century']),
        ('$.store.book[4]', []),
        ('$.store.book[-5]', []),
        ('$.store.bicycle[0]', []),
        # Slices
        ('$.store.book[1:3].price', [12.99, 8.99]),
        ('$.store.book[:2].title', ['Sayings of the Century', 'Sword of Honour']),
        ('$.store.book[-2:].title', ['Moby Dick', 'The Lord of the Rings']),
        ('$.store.book[0:4:2].title', ['Sayings of the Century', 'Moby Dick']),
        ('$.store.book[::-1].author', list(reversed(AUTHORS))),
        ('$.store.book[0:4:0]', []),
        ('$.store.bicycle[0:1]', []),
        # Wildcards
        ('$.store.book[*].author', AUTHORS),
        ('$.store.*', [BOOKS, INPUT_OBJECT['store']['bicycle']]),
        ('$.store.bicycle[*]', ['red', 399]),
        ('$.expensive.*', []),
        # Unions
        ('$.store.book[0]["title","price"]', ['Sayings of the Century', 8.95]),
        ('$.store.book[0,1].title', ['Sayings of the Century', 'Sword of Honour']),
        ('$.store.book[0,0].price', [8.95, 8.95]),
        ('$.store.book[-1,0:2].price', [22.99, 8.95, 12.99]),
        # Descendants
        ('$..author', AUTHORS),
        ('$.store..price', [8.95, 12.99, 8.99, 22.99, 399]),
        ('$..book[2].title', ['Moby Dick']),
        ('$..book[-1].title', ['The Lord of the Rings']),
        ('$..[\'isbn\']', ['0-553-21311-3', '0-395-19395-8']),
        ('$..book.length', []),
        # Filters
        ('$..book[?@.isbn].title', ['Moby Dick', 'The Lord of the Rings']),
        ('$..book[?(@.isbn)].title', ['Moby Dick', 'The Lord of the Rings']),
        ('$..book[?(@.price < 10)].title', ['Sayings of the Century', 'Moby Dick']),
        ('$..book[?@.price < $.expensive].title', ['Sayings of the Century', 'Moby Dick']),
        ('$.store.book[?@.price == 8.95].title', ['Sayings of the Century']),
        ('$.store.book[?!@.isbn].title', ['Sayings of the Century', 'Sword of Honour']),
        ('$.store.book[?@.category == "reference" || @.price > 20].title',
         ['Sayings of the Century', 'The Lord of the Rings']),
        ('$..[?@.category == "fiction" && @.price > 20].author', ['J. R. R. Tolkien']),
        ('$.store.book[?@.nonexistent == $.nonexistent].price', [8.95, 12.99, 8.99, 22.99]),
        ('$.store.book[?@.price > "10"]', []),
        # Functions
        ('$.store.book[?length(@.author) > 12].author', ['Herman Melville', 'J. R. R. Tolkien']),
        ('$.store[?count(@.*) > 2]', [BOOKS]),
        ('$.store.book[?match(@.author, "[A-Z][a-z]+ [A-Z][a-z]+")].author', AUTHORS[:3]),
        ('$.store.book[?search(@.title, "of")].title',
         ['Sayings of the Century', 'Sword of Honour', 'The Lord of the Rings']),
        ('$.store.book[?value(@..isbn) == "0-553-21311-3"].title', ['Moby Dick']),
        ('$.store.book[?length(value(@.title)) == 9].title', ['Moby Dick']),
    ))
    def test_find_ok(self, query, expected):
        """It should return the expected matches."""
        assert self.crawler.find(query) == expected

    def test_find_descendants_count(self):
        """It should visit every node of the document exactly once."""
        assert len(self.crawler.find('$..*')) == 28

    def test_find_returns_references(self):
        """It should return the document's own objects, not copies."""
        assert self.crawler.find('$.store.book[0]')[0] is BOOKS[0]

    def test_find_nodes(self):
        """It should return the matches with their normalized paths."""
        nodes = self.crawler.find_nodes('$..book[?@.isbn].price')
        assert [node.value for node in nodes] == [8.99, 22.99]
        assert [node.path for node in nodes] == ["$['store']['book'][2]['price']", "$['store']['book'][3]['price']"]
        assert nodes[0].location == ('store', 'book', 2, 'price')

    def test_find_one_ok(self):
        """It should return the first match."""
        assert self.crawler.find_one('$..book[?@.price < 10].title') == 'Sayings of the Century'

    def test_find_one_raise(self):
        """It should raise a NoMatchError if the query doesn't match anything."""
        with pytest.raises(jsoncrawler.NoMatchError, match=re.escape('Query `$.nonexistent` does not match')):
            self.crawler.find_one('$.nonexistent')

    def test_find_path_object(self):
        """It should accept an already parsed query."""
        path = jsoncrawler.JsonPath().key('store').key('book').all().key('author')
        assert self.crawler.find(path) == AUTHORS

    def test_findj(self):
        """It should return the matches JSON-encoded."""
        assert self.crawler.findj('$.store.bicycle') == '[{"color": "red", "price": 399}]'

    def test_findj_indent(self):
        """It should return the matches JSON-encoded and indented."""
        assert self.crawler.findj('$.expensive', indent=2) == '[\n  10\n]'

    def test_unknown_function_raise(self):
        """It should raise an UnknownFunctionError at evaluation time, without returning any partial result."""
        with pytest.raises(jsoncrawler.UnknownFunctionError, match=re.escape('Unknown function unknown_fn().')) as ex:
            self.crawler.find('$.store.book[?unknown_fn(@.price)]')

        assert ex.value.name == 'unknown_fn'

    def test_unknown_function_not_reached(self):
        """It should not raise if the filter with the unknown function is never evaluated."""
        assert self.crawler.find('$.nonexistent[?unknown_fn(@)]') == []


class TestComparison:
    """Testing the comparison semantics between values of different types."""

    def setup_method(self):
        """Initialize the test instance."""
        self.crawler = jsoncrawler.JsonCrawler(INPUT_MIXED)

    @pytest.mark.parametrize('query, expected', (
        ('$[?@ == 1]', [1, 1.0]),
        ('$[?@ == 1e0]', [1, 1.0]),
        ('$[?@ == true]', [True]),
        ('$[?@ == false]', [False]),
        ('$[?@ == null]', [None]),
        ('$[?@ == "1"]', ['1']),
        ('$[?@ < 2]', [1, 1.0]),
        ('$[?@ >= 2.5]', [2.5]),
        ('$[?@ > "a"]', ['b']),
        ('$[?@ <= "1"]', ['1']),
        ('$[?@[0] == 1]', [[1]]),
        ('$[?@.a == 1]', [{'a': 1}]),
        ('$[?@.a < @.b]', []),
    ))
    def test_find_ok(self, query, expected):
        """It should compare only values of the same type."""
        matches = self.crawler.find(query)
        assert matches == expected
        assert [type(i) for i in matches] == [type(i) for i in expected]

    def test_not_equal(self):
        """It should select all the values that are not equal, including the ones of different types."""
        assert self.crawler.find('$[?@ != 1]') == INPUT_MIXED[2:]

    def test_equal_self(self):
        """It should consider every value equal to itself."""
        assert self.crawler.find('$[?@ == @]') == INPUT_MIXED

    @pytest.mark.parametrize('query', ('$[?@.a == @.b]', '$[?@.a <= @.b]', '$[?@.a >= @.b]'))
    def test_missing_values_equal(self, query):
        """It should consider equal two missing values."""
        expected = [i for i in INPUT_MIXED if not isinstance(i, dict)]
        assert self.crawler.find(query) == expected


class TestLogical:
    """Testing the logical operators and the existence tests."""

    def setup_method(self):
        """Initialize the test instance."""
        self.crawler = jsoncrawler.JsonCrawler(INPUT_LOGICAL)

    @pytest.mark.parametrize('query, expected_indexes', (
        ('$[?@.a]', [0, 1, 2]),
        ('$[?@.b]', [0, 1, 3]),
        ('$[?!@.b]', [2]),
        ('$[?@.a && @.b]', [0, 1]),
        ('$[?@.a || @.b]', [0, 1, 2, 3]),
        ('$[?@.a > 1 && !@.b]', [2]),
        ('$[?@.a == 3 || @.a == 1 && @.b == false]', [2]),
        ('$[?(@.a == 3 || @.a == 1) && @.b == true]', [0]),
        ('$[?!(@.a == 1)]', [1, 2, 3]),
        ('$[?!(@.a && @.b)]', [2, 3]),
        ('$[?$[0]]', [0, 1, 2, 3]),
        ('$[?$[4]]', []),
    ))
    def test_find_ok(self, query, expected_indexes):
        """It should apply the logical operators with the standard precedence."""
        assert self.crawler.find(query) == [INPUT_LOGICAL[i] for i in expected_indexes]

    def test_existence_not_truthiness(self):
        """It should select the objects that have the member, regardless of its value."""
        assert jsoncrawler.find('$[?(@.a)]', [{'a': False}, {'b': 1}]) == [{'a': False}]

    def test_short_circuit(self):
        """It should not evaluate the right operand of || if the left one is true."""
        assert jsoncrawler.find('$[?@.a || unknown_fn(@)]', [{'a': 1}]) == [{'a': 1}]


class TestFunctions:
    """Testing the built-in functions."""

    @pytest.mark.parametrize('query, data, expected', (
        ('$[?length(@) == 2]', ['ab', [1, 2], {'a': 1, 'b': 2}, 2, 'abc'], ['ab', [1, 2], {'a': 1, 'b': 2}]),
        ('$[?length(@) == 1]', ['é', '😀', 1, True, None], ['é', '😀']),
        ('$[?length(@.a) == length(@.b)]', [{'a': 1}, {'a': 'x', 'b': 'y'}, {}], [{'a': 1}, {'a': 'x', 'b': 'y'}, {}]),
        ('$[?count(@.*) == 0]', [1, [], {}, [1]], [1, [], {}]),
        ('$[?count($.*) == 2]', [1, 2], [1, 2]),
        ('$[?match(@, "a.c")]', ['abc', 'a\rc', 'a\nc', 'abcd', 1], ['abc']),
        ('$[?match(@, "[a.]c")]', ['ac', '.c', 'bc'], ['ac', '.c']),
        ('$[?search(@, "b")]', ['abc', 'a\nb', 'cd', 1], ['abc', 'a\nb']),
        ('$[?match(@, "(")]', ['(', 'a'], []),
        ('$[?match(@.a, @.b)]', [{'a': 'xy', 'b': 'x.'}, {'a': 'xy', 'b': 'x'}], [{'a': 'xy', 'b': 'x.'}]),
        ('$[?value(@.*) == 1]', [[1], [1, 1], {'a': 1}, 1], [[1], {'a': 1}]),
        ('$[?!match(@, "a+")]', ['aa', 'ab', 1], ['ab', 1]),
        (r'$[?match(@, "\\p{Lu}")]', ['A', 'b', 'É', '1', 'AB'], ['A', 'É']),
        (r'$[?match(@, "\\P{Lu}")]', ['A', 'b', 'É', '1', 'AB'], ['b', '1']),
        (r'$[?match(@, "[\\p{Nd}x]+")]', ['12x', '١٢', 'a1'], ['12x', '١٢']),
        (r'$[?search(@, "\\p{L}")]', ['12', '1a', 'ж'], ['1a', 'ж']),
        (r'$[?match(@, "\\p{Xx}")]', ['A'], []),
    ))
    def test_find_ok(self, query, data, expected):
        """It should apply the built-in functions."""
        assert jsoncrawler.find(query, data) == expected


class StartsWith:
    """Custom function that checks if a string starts with a prefix."""

    arg_types = (ExpressionType.VALUE, ExpressionType.VALUE)
    result_type = ExpressionType.LOGICAL

    def __call__(self, value, prefix):
        """Execute the function."""
        return isinstance(value, str) and isinstance(prefix, str) and value.startswith(prefix)


class First:
    """Custom function that returns the first node of a nodelist."""

    arg_types = (ExpressionType.NODES,)
    result_type = ExpressionType.VALUE

    def __call__(self, nodes):
        """Execute the function."""
        if nodes:
            return nodes[0]

        return Nothing()


class Negate:
    """Custom function that negates a logical."""

    arg_types = (ExpressionType.LOGICAL,)
    result_type = ExpressionType.LOGICAL

    def __call__(self, value):
        """Execute the function."""
        return not value


class Boom:
    """Custom function that always fails."""

    arg_types = (ExpressionType.VALUE,)
    result_type = ExpressionType.LOGICAL

    def __call__(self, value):
        """Execute the function."""
        raise ZeroDivisionError('boom')


class WrongArity:
    """Custom function that declares a different number of arguments than it accepts."""

    arg_types = (ExpressionType.VALUE,)
    result_type = ExpressionType.LOGICAL

    def __call__(self, value, other):
        """Execute the function."""
        return value == other


class TestCustomFunctions:
    """Testing the registration and usage of custom functions."""

    def setup_method(self):
        """Initialize the test instance."""
        self.crawler = jsoncrawler.JsonCrawler(['apple', 'banana', 'avocado', ['a', 'b'], {'x': 'a'}, {'y': 1}])

    def test_register_function_value_args(self):
        """It should call the custom function with the values of the arguments."""
        self.crawler.register_function('starts_with', StartsWith())
        assert self.crawler.find('$[?starts_with(@, "a")]') == ['apple', 'avocado']

    def test_register_function_nodes_args(self):
        """It should call the custom function with the nodelist of the query argument."""
        self.crawler.register_function('first', First())
        assert self.crawler.find('$[?first(@.*) == "a"]') == [['a', 'b'], {'x': 'a'}]

    def test_register_function_logical_args(self):
        """It should call the custom function with the result of the test expression."""
        self.crawler.register_function('negate', Negate())
        assert self.crawler.find('$[?negate(@.y)]') == ['apple', 'banana', 'avocado', ['a', 'b'], {'x': 'a'}]

    def test_register_function_override(self):
        """It should use the last registered function with the same name."""
        self.crawler.register_function('check', Negate())
        self.crawler.register_function('check', StartsWith())
        assert self.crawler.find('$[?check(@, "b")]') == ['banana']

    def test_value_function_as_test_raise(self):
        """It should raise an EvaluationError if a function returning a value is used as a test."""
        self.crawler.register_function('first', First())
        with pytest.raises(jsoncrawler.EvaluationError,
                           match=re.escape('Function first() returns a value, it cannot be used as a test.')):
            self.crawler.find('$[?first(@.*)]')

    def test_function_wrong_arguments_raise(self):
        """It should raise an EvaluationError if the function is called with the wrong number of arguments."""
        self.crawler.register_function('starts_with', StartsWith())
        with pytest.raises(jsoncrawler.EvaluationError,
                           match=re.escape('Function starts_with() takes 2 arguments, got 1.')):
            self.crawler.find('$[?starts_with(@)]')

    def test_function_exception_raise(self):
        """It should wrap any exception raised by the custom function into an EvaluationError."""
        self.crawler.register_function('boom', Boom())
        with pytest.raises(jsoncrawler.EvaluationError, match=re.escape('Function boom() raised an exception.')):
            self.crawler.find('$[?boom(@)]')

    @pytest.mark.parametrize('name, func, error', (
        ('length', StartsWith(), 'Unable to register a function with the same name of the built-in function'),
        ('StartsWith', StartsWith(), 'Invalid function name `StartsWith`'),
        ('starts-with', StartsWith(), 'Invalid function name `starts-with`'),
        ('starts_with', lambda value: value, 'does not adhere to the jsoncrawler.FunctionProtocol'),
        ('wrong_arity', WrongArity(), 'The custom function wrong_arity() declares 1 arguments but its signature'),
    ))
    def test_register_function_raise(self, name, func, error):
        """It should raise a JsonPathError if the function is not valid."""
        with pytest.raises(jsoncrawler.JsonPathError, match=re.escape(error)):
            self.crawler.register_function(name, func)


class TestModuleFunctions:
    """Testing the module level helpers."""

    def test_find_array_scenario(self):
        """It should decode the JSON text and return the matches."""
        document = '{"a": [1, 2, 3]}'
        assert jsoncrawler.find('$.a[-1]', document) == [3]
        assert jsoncrawler.find('$.a[0:2]', document) == [1, 2]
        assert jsoncrawler.find('$.a[?(@ > 1)]', document) == [2, 3]

    def test_find_bytes(self):
        """It should decode the JSON bytes and return the matches."""
        assert jsoncrawler.find('$.a', '{"a": "é"}'.encode()) == ['é']

    def test_find_as_str(self):
        """It should return the matches JSON-encoded."""
        assert jsoncrawler.find('$.a[-1]', '{"a": [1, 2, 3]}', as_str=True) == '[3]'

    def test_find_malformed_json_raise(self):
        """It should raise a MalformedJsonError without querying the document."""
        with pytest.raises(jsoncrawler.MalformedJsonError, match='Malformed JSON: Expecting value'):
            jsoncrawler.find('$.a', '{"a":}')

    def test_find_query_syntax_raise(self):
        """It should raise a QuerySyntaxError before querying the document."""
        with pytest.raises(jsoncrawler.QuerySyntaxError, match='Query must start with the root identifier'):
            jsoncrawler.find('a', {'a': 1})

    @pytest.mark.parametrize('expression, current, root, expected', (
        ('@.a', {'a': False}, None, True),
        ('@.b', {'a': False}, None, False),
        ('?(@ > 1)', 0, None, False),
        ('@.price < $.limit', {'price': 8}, {'limit': 10}, True),
        ('@.price < $.limit', {'price': 12}, {'limit': 10}, False),
    ))
    def test_evaluate(self, expression, current, root, expected):
        """It should evaluate the filter expression against the given value."""
        assert jsoncrawler.evaluate(expression, current, root) is expected

    def test_evaluate_null_root(self):
        """It should bind the root to null if explicitly passed and to the current value if not passed."""
        assert jsoncrawler.evaluate('$ == null', {'a': 1}, None) is True
        assert jsoncrawler.evaluate('$ == null', {'a': 1}) is False
        assert jsoncrawler.evaluate('$ == @', {'a': 1}) is True

    def test_evaluate_unknown_function_raise(self):
        """It should raise an UnknownFunctionError if the expression calls an unknown function."""
        with pytest.raises(jsoncrawler.UnknownFunctionError, match=re.escape('Unknown function foo().')):
            jsoncrawler.evaluate('foo(@)', {})

    def test_jsoncrawler_from_json(self):
        """It should decode the JSON text and allow to query it."""
        crawler = jsoncrawler.JsonCrawler.from_json('{"a": {"b": 1}}')
        assert crawler.find('$.a.b') == [1]

    def test_jsoncrawler_str(self):
        """It should return the document JSON-encoded."""
        assert str(jsoncrawler.JsonCrawler({'a': 'é'})) == '{"a": "é"}'

    def test_debug_logging(self, caplog):
        """It should log the number of matched nodes at debug level."""
        caplog.set_level(logging.DEBUG, logger='jsoncrawler')
        jsoncrawler.find('$.a[*]', {'a': [1, 2]})
        assert 'Query matched 2 nodes' in caplog.text


class TestProperties:
    """Testing general properties of the queries."""

    @pytest.mark.parametrize('start, end, step', (
        (None, None, 1),
        (2, None, 1),
        (None, 3, 1),
        (-3, None, 1),
        (None, -3, 1),
        (None, None, -1),
        (8, 2, -2),
        (-1, -11, -1),
        (1, 100, 3),
        (100, None, -1),
        (-100, None, 1),
        (5, 5, 1),
        (3, 1, 1),
        (None, None, 4),
    ))
    def test_slice_equals_python_slice(self, start, end, step):
        """It should select the same elements of the equivalent Python slice."""
        data = list(range(10))
        query = f"$[{'' if start is None else start}:{'' if end is None else end}:{step}]"
        assert jsoncrawler.find(query, data) == data[start:end:step]

    @pytest.mark.parametrize('data', (
        {'z': 1, 'a': 2, 'm': 3},
        {'a': [1, 2], 'b': {'c': None}},
        {},
    ))
    def test_wildcard_selects_all_values(self, data):
        """It should select all the member values in insertion order."""
        assert jsoncrawler.find('$.*', data) == list(data.values())

    @pytest.mark.parametrize('key', ('price', 'author', 'book', 'nonexistent'))
    @pytest.mark.parametrize('document', (INPUT_OBJECT, INPUT_OBJECT['store'], {'price': {'price': 1}}))
    def test_deep_scan_superset(self, document, key):
        """It should find with the descendant operator at least all the direct matches."""
        deep = jsoncrawler.find(f'$..{key}', document)
        for match in jsoncrawler.find(f'$.{key}', document):
            assert any(match is item for item in deep)
