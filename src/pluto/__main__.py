#!/usr/bin/env python3
"""
CLI for the Pluto interpreter.

Usage:
    python -m pluto run FILE
    python -m pluto eval CODE
    python -m pluto check FILE [--ast]

Examples:
    # Run a script and print its final value
    python -m pluto run script.pluto

    # Evaluate an inline snippet
    python -m pluto eval 'print(2 + 3 * 4)'

    # Check syntax only, dumping the parsed tree
    python -m pluto check script.pluto --ast

The iteration ceiling for loops defaults to the PLUTO_MAX_ITERATIONS
environment variable when --max-iterations is not given.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional


MAX_ITERATIONS_ENV = "PLUTO_MAX_ITERATIONS"


def positive_int(text: str) -> int:
    """argparse type for the iteration ceiling."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def configure_logging(verbosity: int) -> None:
    """Map -v counts to logging levels."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def resolve_max_iterations(args) -> Optional[int]:
    """Flag first, then the environment, then the library default."""
    from .runtime import DEFAULT_MAX_ITERATIONS

    if args.max_iterations is not None:
        return args.max_iterations
    env_value = os.environ.get(MAX_ITERATIONS_ENV)
    if env_value is None:
        return DEFAULT_MAX_ITERATIONS
    try:
        return positive_int(env_value)
    except argparse.ArgumentTypeError as e:
        print(f"Error: {MAX_ITERATIONS_ENV} {e}", file=sys.stderr)
        return None


def read_source(path_str: str) -> Optional[str]:
    """Read a UTF-8 source file, reporting problems on stderr."""
    source_path = Path(path_str)
    if not source_path.is_file():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    try:
        return source_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Cannot read {source_path}: {e}", file=sys.stderr)
        return None


def execute_and_print(source: str, filename: Optional[str], args) -> int:
    """Run source in a fresh interpreter and print a non-absent result."""
    from . import PlutoInterpreter, ExecutionError, format_value

    max_iterations = resolve_max_iterations(args)
    if max_iterations is None:
        return 1

    interp = PlutoInterpreter(max_iterations=max_iterations)
    try:
        result = interp.execute(source, filename)
    except ExecutionError as e:
        print(str(e), file=sys.stderr)
        return 1

    if not result.is_absent:
        print(format_value(result))
    return 0


def cmd_run(args):
    """Run a Pluto source file."""
    source = read_source(args.file)
    if source is None:
        return 1
    return execute_and_print(source, args.file, args)


def cmd_eval(args):
    """Evaluate an inline code string."""
    return execute_and_print(args.code, "<eval>", args)


def cmd_check(args):
    """Scan and parse a Pluto file without running it."""
    from . import tokenize, parse, print_ast, PlutoError

    source = read_source(args.file)
    if source is None:
        return 1

    try:
        tokens = tokenize(source, args.file)
        program = parse(tokens, args.file, source)
    except PlutoError as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.ast:
        print_ast(program)
    print(f"OK: {Path(args.file).name} - {len(program.statements)} statement(s), no errors")
    return 0


def build_parser() -> argparse.ArgumentParser:
    from . import __version__

    parser = argparse.ArgumentParser(
        prog='pluto',
        description='Pluto language interpreter',
    )
    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase logging verbosity (repeatable)')
    parser.add_argument('--max-iterations', type=positive_int, metavar='N',
                        help=f'Loop iteration ceiling (default: ${MAX_ITERATIONS_ENV} or 10000)')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # run command
    run_parser = subparsers.add_parser('run', help='Run a Pluto source file')
    run_parser.add_argument('file', help='Pluto source file (UTF-8)')

    # eval command
    eval_parser = subparsers.add_parser('eval', help='Evaluate inline Pluto code')
    eval_parser.add_argument('code', help='Pluto source text')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a Pluto file for syntax errors')
    check_parser.add_argument('file', help='Pluto source file (UTF-8)')
    check_parser.add_argument('--ast', action='store_true',
                              help='Print the parsed syntax tree')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'eval':
        return cmd_eval(args)
    elif args.action == 'check':
        return cmd_check(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
