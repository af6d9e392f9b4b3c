"""Tests for the run pipeline and its execution results."""

import io

from errors import LoxRuntimeError
from lox import ErrorReport, RuntimeFailure, StaticErrors, Success, run


def test_module_level_run():
    output = io.StringIO()
    result = run('print "hello";', output=output)
    assert result == Success()
    assert output.getvalue() == "hello\n"


def test_static_errors_are_sorted_and_nothing_runs(session):
    result = session.run('print "before";\n@\nprint ;')
    assert isinstance(result, StaticErrors)
    assert [(e.line, e.message) for e in result.errors] == [
        (2, "Unexpected character: @"),
        (3, "Expect expression."),
    ]
    assert session.lines() == []


def test_static_error_report_text(session):
    result = session.run("print ;")
    assert [str(e) for e in result.errors] == ["[line 1] Error at ';': Expect expression."]


def test_unterminated_string(session):
    result = session.run('print "oops;')
    assert isinstance(result, StaticErrors)
    assert [e.message for e in result.errors][0] == "Unterminated string."


def test_resolution_errors_stop_execution(session):
    result = session.run('print "no";\nreturn 1;')
    assert isinstance(result, StaticErrors)
    assert [str(e) for e in result.errors] == [
        "[line 2] Error at 'return': Can't return from top-level code."
    ]
    assert session.lines() == []


def test_runtime_failure_carries_the_error(session):
    result = session.run("nil();")
    assert isinstance(result, RuntimeFailure)
    assert isinstance(result.error.error, LoxRuntimeError)
    assert result.error == ErrorReport("Can only call functions and classes.", 1)


def test_globals_persist_between_runs(session):
    assert session.run("var a = 1;") == Success()
    assert session.run("fun inc() { a = a + 1; return a; }") == Success()
    assert session.run("print inc(); print inc();") == Success()
    assert session.lines() == ["2", "3"]


def test_closures_persist_between_runs(session):
    session.run("fun make() { var x = 10; fun get() { return x; } return get; }")
    session.run("var get = make();")
    session.run("print get();")
    assert session.lines() == ["10"]


def test_state_survives_errors(session):
    session.run("var a = 1;")
    assert isinstance(session.run("var b = ;"), StaticErrors)
    assert isinstance(session.run("a = 2; print missing;"), RuntimeFailure)
    session.run("print a;")
    assert session.lines() == ["2"]


def test_empty_program(session):
    assert session.run("") == Success()
    assert session.run("// only a comment") == Success()
    assert session.lines() == []


def test_excessive_nesting_is_reported_not_raised(session):
    result = session.run("print " + "(" * 200_000 + "1" + ")" * 200_000 + ";")
    assert isinstance(result, StaticErrors)
    assert [str(e) for e in result.errors][0].endswith("Nesting is too deep.")
    assert session.run("print 1;") == Success()
    assert session.lines() == ["1"]
