"""jsoncrawler command line module."""
import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Any, IO, Optional

from jsoncrawler import decode, encode, JsonCrawler, JsonPath, JsonPathError


def cli(argv: Optional[Sequence[str]] = None) -> int:  # noqa: MC0001
    """Command line entry point to run jsoncrawler as a CLI tool.

    Arguments:
        argv: a sequence of CLI arguments to parse. If not set they will be read from sys.argv.

    Returns:
        The CLI exit code to use.

    Raises:
        OSError: for system-related error, including I/O failures.
        jsoncrawler.JsonPathError: for any JSON or query-related error in jsoncrawler.

    """
    parser = get_parser()
    args = parser.parse_args(argv)

    if args.verbose >= 3:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format='%(asctime)s [%(levelname)s %(name)s] %(message)s')

    def _report(ex: Exception) -> None:
        if args.verbose == 1:
            print(f'{ex.__class__.__name__}: {ex}', file=sys.stderr)
        elif args.verbose >= 2:
            raise ex

    try:
        query = JsonPath.from_string(args.query)
    except JsonPathError as ex:
        _report(ex)
        return 1

    try:
        input_file: IO[Any] = sys.stdin if args.file == '-' else open(  # pylint: disable=consider-using-with
            args.file, encoding='utf-8', errors='surrogateescape')
    except OSError as ex:
        _report(ex)
        return 1

    def _execute(text: str) -> int:
        try:
            crawler = JsonCrawler(decode(text))
            if args.paths:
                result = encode([node.path for node in crawler.find_nodes(query)])
            else:
                result = crawler.findj(query, indent=args.indent)
            exit_code = 0
        except JsonPathError as ex:
            result = ''
            exit_code = 1
            _report(ex)

        if result:
            print(result)

        return exit_code

    try:
        if args.lines:
            exit_code = 0
            for line in input_file:
                line = line.strip()
                if not line:
                    continue
                ret = _execute(line)
                if ret > exit_code:
                    exit_code = ret
        else:
            exit_code = _execute(input_file.read())
    finally:
        if input_file is not sys.stdin:
            input_file.close()

    return exit_code


def get_parser() -> argparse.ArgumentParser:
    """Get the CLI argument parser.

    Returns:
        the argument parser for the CLI.

    """
    parser = argparse.ArgumentParser(
        prog='jsoncrawler',
        description='Select values from a JSON document with an RFC 9535 JSONPath query.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help=('Verbosity level. By default on error no output will be printed. Use -v to get the '
                              'error message to stderr, -vv to get the full traceback and -vvv to get also the '
                              'debug logs.'))
    parser.add_argument('-l', '--lines', action='store_true',
                        help='Treat the input as JSON Lines, parse each line and apply the query to each line.')
    parser.add_argument('-p', '--paths', action='store_true',
                        help='Print the normalized paths of the matched nodes instead of their values.')
    parser.add_argument('-i', '--indent', type=int, default=None,
                        help='Pretty print the matched values with the given indentation.')
    parser.add_argument('file', default='-', nargs='?',
                        help='Input JSON file to query. Reads from stdin if the argument is missing or set to "-".')
    parser.add_argument('query', help='A JSONPath query to apply to the input data, like $.store.book[*].author')

    return parser
