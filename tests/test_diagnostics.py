"""Tests for diagnostic rendering."""

import io

import pytest

from diagnostics import ColorMode, DiagnosticFormatter
from lox import RuntimeFailure, StaticErrors


@pytest.fixture
def formatter():
    return DiagnosticFormatter(color_mode=ColorMode.NEVER)


def test_runtime_error_frame(session, formatter):
    result = session.run("var x = 1;\nprint missing;")
    assert isinstance(result, RuntimeFailure)

    text = formatter.format_error(result.error.error, io.StringIO())
    assert text.splitlines() == [
        "Error [LOX4001]: Undefined variable 'missing'.",
        "  --> <test>:2:7",
        "  |",
        "2 | print missing;",
        "  |       ^^^^^^^ 'missing' not found",
        "   = help: declare the variable with 'var missing = value;' before using it",
        "   = note: raised while running the program",
    ]


def test_lexical_error_frame(session, formatter):
    result = session.run("var a = 1 # 2;")
    assert isinstance(result, StaticErrors)

    text = formatter.format_error(result.errors[0].error, io.StringIO())
    lines = text.splitlines()
    assert lines[0] == "Error [LOX1001]: Unexpected character: #"
    assert lines[1] == "  --> <test>:1:11"
    assert lines[4] == "  |           ^ not valid here"


def test_summary_counts_errors(session, formatter):
    result = session.run("print ;\nprint ;")
    out = io.StringIO()
    for error in result.errors:
        out.write(formatter.format_error(error.error, out))
    formatter.print_summary(out)
    assert out.getvalue().endswith("\n2 errors generated\n")


def test_max_errors_cap(session):
    formatter = DiagnosticFormatter(color_mode=ColorMode.NEVER, max_errors=1)
    result = session.run("print ;\nprint ;\nprint ;")
    texts = [formatter.format_error(e.error, io.StringIO()) for e in result.errors]
    assert texts[0].startswith("Error [LOX2002]")
    assert texts[1] == "... (too many errors, stopping)\n"
    assert texts[2] == ""


def test_colors(session):
    result = session.run("print ;")
    error = result.errors[0].error

    plain = DiagnosticFormatter(color_mode=ColorMode.NEVER).format_error(error, io.StringIO())
    colored = DiagnosticFormatter(color_mode=ColorMode.ALWAYS).format_error(error, io.StringIO())
    auto = DiagnosticFormatter(color_mode=ColorMode.AUTO).format_error(error, io.StringIO())

    assert "\033[" not in plain
    assert "\033[" in colored
    # StringIO is not a terminal
    assert auto == plain


def test_reset_counts(formatter):
    formatter.error_count = 3
    formatter.reset_counts()
    out = io.StringIO()
    formatter.print_summary(out)
    assert out.getvalue() == ""
