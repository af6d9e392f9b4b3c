"""
Debug rendering of Lox ASTs as parenthesised prefix expressions
"""

from typing import Iterable
from ast_nodes import *

class AstPrinter:
    def print(self, node: ASTNode) -> str:
        if isinstance(node, Program):
            return "\n".join(self.print(stmt) for stmt in node.statements)
        if isinstance(node, Statement):
            return self.statement(node)
        return self.expression(node)

    def statement(self, stmt: Statement) -> str:
        if isinstance(stmt, ExpressionStatement):
            return self.parenthesize(";", stmt.expression)
        if isinstance(stmt, PrintStatement):
            return self.parenthesize("print", stmt.expression)
        if isinstance(stmt, VarStatement):
            if stmt.initializer is None:
                return f"(var {stmt.name.lexeme})"
            return self.parenthesize(f"var {stmt.name.lexeme}", stmt.initializer)
        if isinstance(stmt, BlockStatement):
            return self.parenthesize("block", *stmt.statements)
        if isinstance(stmt, IfStatement):
            if stmt.else_branch is None:
                return self.parenthesize("if", stmt.condition, stmt.then_branch)
            return self.parenthesize("if-else", stmt.condition, stmt.then_branch, stmt.else_branch)
        if isinstance(stmt, WhileStatement):
            return self.parenthesize("while", stmt.condition, stmt.body)
        if isinstance(stmt, FunctionStatement):
            return self.function(f"fun {stmt.name.lexeme}", stmt.params, stmt.body)
        if isinstance(stmt, ReturnStatement):
            if stmt.value is None:
                return "(return)"
            return self.parenthesize("return", stmt.value)
        if isinstance(stmt, ClassStatement):
            head = f"class {stmt.name.lexeme}"
            if stmt.superclass is not None:
                head += f" < {stmt.superclass.name.lexeme}"
            return self.parenthesize(head, *stmt.methods)
        return f"(? {type(stmt).__name__})"

    def expression(self, expr: Expression) -> str:
        if isinstance(expr, LiteralExpression):
            return self.literal(expr.value)
        if isinstance(expr, VariableExpression):
            return expr.name.lexeme
        if isinstance(expr, AssignmentExpression):
            return self.parenthesize(f"= {expr.name.lexeme}", expr.value)
        if isinstance(expr, UnaryExpression):
            return self.parenthesize(expr.operator.lexeme, expr.operand)
        if isinstance(expr, (BinaryExpression, LogicalExpression)):
            return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)
        if isinstance(expr, GroupingExpression):
            return self.parenthesize("group", expr.expression)
        if isinstance(expr, CallExpression):
            return self.parenthesize("call", expr.callee, *expr.arguments)
        if isinstance(expr, GetExpression):
            return self.parenthesize(f". {expr.name.lexeme}", expr.object)
        if isinstance(expr, SetExpression):
            return self.parenthesize(f"= .{expr.name.lexeme}", expr.object, expr.value)
        if isinstance(expr, ThisExpression):
            return "this"
        if isinstance(expr, SuperExpression):
            return f"(super {expr.method.lexeme})"
        if isinstance(expr, FunctionExpression):
            return self.function("fun", expr.params, expr.body)
        return f"(? {type(expr).__name__})"

    def function(self, head: str, params, body: Iterable[Statement]) -> str:
        names = " ".join(param.lexeme for param in params)
        return self.parenthesize(f"{head} ({names})", *body)

    def literal(self, value) -> str:
        if value is None:
            return "nil"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float):
            return str(int(value)) if value.is_integer() else repr(value)
        return f'"{value}"'

    def parenthesize(self, head: str, *parts: ASTNode) -> str:
        rendered = [self.print(part) for part in parts]
        return "(" + " ".join([head] + rendered) + ")"
