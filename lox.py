#!/usr/bin/env python3
"""
Lox scripting language interpreter
Usage: lox [options] [script]

With no script an interactive prompt is started; every line runs against
the same global environment.
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import List, Optional, TextIO, Union

from ast_printer import AstPrinter
from diagnostics import get_formatter, ColorMode, set_color_mode, set_max_errors
from errors import LoxError, LoxRuntimeError
from interpreter import Interpreter, DEFAULT_MAX_CALL_DEPTH
from parser import Parser
from resolver import Resolver
from scanner import Scanner

logger = logging.getLogger(__name__)

# sysexits.h
EX_OK = 0
EX_USAGE = 64
EX_DATAERR = 65
EX_NOINPUT = 66
EX_SOFTWARE = 70

@dataclass(frozen=True)
class ErrorReport:
    """One reported error: message and source line, plus the full error"""
    message: str
    line: int
    error: Optional[LoxError] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_error(cls, error: LoxError) -> 'ErrorReport':
        return cls(error.message, error.line, error)

    def __str__(self):
        if self.error is not None:
            return self.error.report()
        return f"[line {self.line}] Error: {self.message}"

@dataclass(frozen=True)
class Success:
    pass

@dataclass(frozen=True)
class StaticErrors:
    """Scan, parse or resolution errors; nothing was executed"""
    errors: List[ErrorReport]

@dataclass(frozen=True)
class RuntimeFailure:
    """Execution stopped at a runtime error; earlier output stands"""
    error: ErrorReport

ExecutionResult = Union[Success, StaticErrors, RuntimeFailure]

class Lox:
    """Front-to-back pipeline bound to one persistent global environment"""

    def __init__(self, output: Optional[TextIO] = None,
                 max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
        self.interpreter = Interpreter(output, max_call_depth)

    def run(self, source: str, source_label: str = "<script>") -> ExecutionResult:
        scanner = Scanner(source, source_label)
        parser = Parser(scanner.scan_tokens())
        program = parser.parse()

        # Lexical and syntax errors are reported together, in source order
        static_errors = sorted(scanner.errors + parser.errors, key=lambda e: e.line)
        if static_errors:
            logger.debug("%s: not running, %d static error(s)", source_label, len(static_errors))
            return StaticErrors([ErrorReport.from_error(e) for e in static_errors])

        resolver = Resolver()
        locals = resolver.resolve(program)
        if resolver.errors:
            logger.debug("%s: not running, %d resolution error(s)", source_label, len(resolver.errors))
            return StaticErrors([ErrorReport.from_error(e) for e in resolver.errors])

        try:
            self.interpreter.interpret(program, locals)
        except LoxRuntimeError as e:
            return RuntimeFailure(ErrorReport.from_error(e))

        return Success()

def run(source: str, source_label: str = "<script>",
        output: Optional[TextIO] = None) -> ExecutionResult:
    """Run source once against a fresh global environment"""
    return Lox(output=output).run(source, source_label)

def report(result: ExecutionResult) -> int:
    """Write any errors in result to stderr and return the exit status"""
    formatter = get_formatter()
    if isinstance(result, StaticErrors):
        formatter.reset_counts()
        for error in result.errors:
            formatter.emit_error(error.error)
        formatter.print_summary()
        return EX_DATAERR
    if isinstance(result, RuntimeFailure):
        formatter.reset_counts()
        formatter.emit_error(result.error.error)
        return EX_SOFTWARE
    return EX_OK

def dump(source: str, source_label: str, show_tokens: bool, show_ast: bool) -> int:
    """Print the token stream and/or the AST instead of running"""
    scanner = Scanner(source, source_label)
    tokens = scanner.tokenize()
    if show_tokens:
        for token in tokens:
            print(repr(token))

    parser = Parser(tokens)
    program = parser.parse()
    if show_ast:
        print(AstPrinter().print(program))

    errors = sorted(scanner.errors + parser.errors, key=lambda e: e.line)
    if errors:
        return report(StaticErrors([ErrorReport.from_error(e) for e in errors]))
    return EX_OK

def run_file(path: str, lox: Lox, show_tokens: bool = False, show_ast: bool = False) -> int:
    """Run a Lox program from a file"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
    except FileNotFoundError:
        print(f"Error: File '{path}' not found.", file=sys.stderr)
        return EX_NOINPUT
    except OSError as e:
        print(f"Error: Could not read '{path}': {e.strerror}", file=sys.stderr)
        return EX_NOINPUT

    if show_tokens or show_ast:
        return dump(source, path, show_tokens, show_ast)
    return report(lox.run(source, path))

def run_prompt(lox: Lox) -> int:
    """Run Lox in interactive mode"""
    while True:
        try:
            line = input("> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("\nUse Ctrl-D to quit.")
            continue

        if line.strip() == '':
            continue

        # Let single expressions and statements omit the trailing ';'
        stripped = line.rstrip()
        if not stripped.endswith(';') and not stripped.endswith('}'):
            line = stripped + ';'

        report(lox.run(line, "<stdin>"))

    return EX_OK

class LoxArgumentParser(argparse.ArgumentParser):
    """Argument errors exit with EX_USAGE instead of argparse's 2"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EX_USAGE, f"{self.prog}: error: {message}\n")

def build_arg_parser() -> argparse.ArgumentParser:
    parser = LoxArgumentParser(prog="lox", description="Run Lox scripts")
    parser.add_argument("script", nargs="?", help="script to run; omit for a prompt")
    parser.add_argument("--color", choices=[mode.value for mode in ColorMode],
                        default=ColorMode.AUTO.value, help="colorize diagnostics")
    parser.add_argument("--max-errors", type=int, default=20, metavar="N",
                        help="stop reporting after N errors")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_CALL_DEPTH, metavar="N",
                        help="maximum call depth before 'Stack overflow.'")
    parser.add_argument("--tokens", action="store_true", help="print the token stream and exit")
    parser.add_argument("--ast", action="store_true", help="print the parsed AST and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    set_color_mode(ColorMode(args.color))
    set_max_errors(args.max_errors)

    lox = Lox(max_call_depth=args.max_depth)
    if args.script is not None:
        return run_file(args.script, lox, args.tokens, args.ast)
    return run_prompt(lox)

if __name__ == "__main__":
    sys.exit(main())
