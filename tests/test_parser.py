"""Tests for the parser, checked through the s-expression AST printer."""

import pytest

from ast_nodes import (
    BlockStatement,
    ClassStatement,
    ExpressionStatement,
    FunctionExpression,
    VarStatement,
    WhileStatement,
)
from ast_printer import AstPrinter
from parser import Parser
from scanner import Scanner


def _parse(source: str):
    scanner = Scanner(source, "<test>")
    parser = Parser(scanner.tokenize())
    program = parser.parse()
    assert scanner.errors == []
    return program, parser.errors


def _ast(source: str) -> str:
    program, errors = _parse(source)
    assert errors == [], [e.report() for e in errors]
    return AstPrinter().print(program)


@pytest.mark.parametrize(
    "source,expected",
    [
        ("1 + 2 * 3;", "(; (+ 1 (* 2 3)))"),
        ("(1 + 2) * 3;", "(; (* (group (+ 1 2)) 3))"),
        ("1 - 2 - 3;", "(; (- (- 1 2) 3))"),
        ("8 / 4 / 2;", "(; (/ (/ 8 4) 2))"),
        ("-!x;", "(; (- (! x)))"),
        ("1 < 2 == 3 >= 4;", "(; (== (< 1 2) (>= 3 4)))"),
        ("a or b and c;", "(; (or a (and b c)))"),
        ("a and b or c and d;", "(; (or (and a b) (and c d)))"),
        ("a = b = 3;", "(; (= a (= b 3)))"),
        ("a.b.c = 1;", "(; (= .c (. b a) 1))"),
        ("f(1)(2, 3).x;", "(; (. x (call (call f 1) 2 3)))"),
        ('print "hi" + 2.5;', '(print (+ "hi" 2.5))'),
        ("x == nil != true;", "(; (!= (== x nil) true))"),
    ],
)
def test_expression_precedence(source, expected):
    assert _ast(source) == expected


def test_var_declarations():
    assert _ast("var a; var b = 1;") == "(var a)\n(var b 1)"


def test_if_else_binds_to_nearest_if():
    assert _ast("if (a) if (b) x; else y;") == "(if a (if-else b (; x) (; y)))"


def test_for_desugars_to_while_in_block():
    program, _ = _parse("for (var i = 0; i < 3; i = i + 1) print i;")
    outer = program.statements[0]
    assert isinstance(outer, BlockStatement)
    assert isinstance(outer.statements[0], VarStatement)
    loop = outer.statements[1]
    assert isinstance(loop, WhileStatement)
    # The increment runs after the body
    assert isinstance(loop.body, BlockStatement)
    assert AstPrinter().print(loop.body) == "(block (print i) (; (= i (+ i 1))))"


def test_for_without_clauses_loops_on_true():
    assert _ast("for (;;) x;") == "(while true (; x))"


def test_function_and_class_declarations():
    source = """
    fun add(a, b) { return a + b; }
    class B < A {
      init(x) { this.x = x; }
      get() { return super.get(); }
    }
    """
    assert _ast(source) == (
        "(fun add (a b) (return (+ a b)))\n"
        "(class B < A (fun init (x) (; (= .x this x))) (fun get () (return (call (super get)))))"
    )


def test_class_methods_are_function_statements():
    program, _ = _parse("class A { m() {} n(a) {} }")
    cls = program.statements[0]
    assert isinstance(cls, ClassStatement)
    assert cls.superclass is None
    assert [m.name.lexeme for m in cls.methods] == ["m", "n"]


def test_function_literal_expression():
    program, _ = _parse("var f = fun (a) { return a; }; fun (b) {};")
    assert isinstance(program.statements[0].initializer, FunctionExpression)
    stmt = program.statements[1]
    assert isinstance(stmt, ExpressionStatement)
    assert isinstance(stmt.expression, FunctionExpression)
    assert [p.lexeme for p in stmt.expression.params] == ["b"]


def test_expression_node_ids_are_distinct_for_identical_text():
    program, _ = _parse("a; a;")
    first = program.statements[0].expression
    second = program.statements[1].expression
    assert first.node_id != second.node_id


def test_invalid_assignment_target():
    _, errors = _parse("1 + 2 = 3;")
    assert len(errors) == 1
    assert errors[0].report() == "[line 1] Error at '=': Invalid assignment target."


def test_missing_semicolon_reports_at_next_token():
    _, errors = _parse("print 1\nprint 2;")
    assert [e.report() for e in errors] == [
        "[line 2] Error at 'print': Expect ';' after value.",
    ]


def test_error_at_end():
    _, errors = _parse("print 1")
    assert errors[0].report() == "[line 1] Error at end: Expect ';' after value."


def test_panic_mode_reports_multiple_independent_errors():
    source = "var = 1;\nprint 2;\nvar x = ;\nprint (3;\nprint 4;"
    program, errors = _parse(source)
    assert [e.line for e in errors] == [1, 3, 4]
    assert [e.message for e in errors] == [
        "Expect variable name.",
        "Expect expression.",
        "Expect ')' after expression.",
    ]
    # The well-formed statements survive
    assert AstPrinter().print(program) == "(print 2)\n(print 4)"


def test_errors_inside_block_resume_inside_block():
    program, errors = _parse("{ var a = ; print 1; }")
    assert len(errors) == 1
    assert AstPrinter().print(program) == "(block (print 1))"


def test_too_many_arguments():
    args = ", ".join("1" for _ in range(256))
    program, errors = _parse(f"f({args});")
    assert [e.message for e in errors] == ["Can't have more than 255 arguments."]
    # Reported without discarding the call
    assert len(program.statements) == 1


def test_too_many_parameters():
    params = ", ".join(f"p{i}" for i in range(256))
    _, errors = _parse(f"fun f({params}) {{}}")
    assert [e.message for e in errors] == ["Can't have more than 255 parameters."]


def test_super_requires_method_name():
    _, errors = _parse("super;")
    assert errors[0].message == "Expect '.' after 'super'."


@pytest.mark.parametrize(
    "nested",
    [
        "(" * 200_000 + "1" + ")" * 200_000,
        "-" * 200_000 + "1",
    ],
)
def test_excessive_nesting_is_a_syntax_error(nested):
    program, errors = _parse(f"print {nested};\nprint 2;")
    assert [e.message for e in errors] == ["Nesting is too deep."]
    assert errors[0].line == 1
    assert AstPrinter().print(program) == "(print 2)"
