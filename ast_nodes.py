"""
Abstract Syntax Tree node definitions for the Lox scripting language
"""

from abc import ABC
from itertools import count
from typing import Any, List, Optional
from source_map import Span
from tokens import Token

# Expression ids are unique for the life of the process, so resolution
# data from successive REPL lines never collides.
_node_ids = count(1)

# Base classes
class ASTNode(ABC):
    """Base class for all AST nodes"""
    def __init__(self, span: Optional[Span] = None):
        self.span = span

class Expression(ASTNode):
    """Base class for all expressions. node_id keys the resolver's output."""
    def __init__(self, span: Optional[Span] = None):
        super().__init__(span)
        self.node_id = next(_node_ids)

class Statement(ASTNode):
    """Base class for all statements"""
    def __init__(self, span: Optional[Span] = None):
        super().__init__(span)

# Expressions
class LiteralExpression(Expression):
    def __init__(self, value: Any, span: Optional[Span] = None):
        super().__init__(span)
        self.value = value

class VariableExpression(Expression):
    def __init__(self, name: Token):
        super().__init__(name.span)
        self.name = name

class AssignmentExpression(Expression):
    def __init__(self, name: Token, value: Expression):
        super().__init__(name.span.to(value.span) if name.span else None)
        self.name = name
        self.value = value

class UnaryExpression(Expression):
    def __init__(self, operator: Token, operand: Expression):
        super().__init__(operator.span.to(operand.span) if operator.span else None)
        self.operator = operator
        self.operand = operand

class BinaryExpression(Expression):
    def __init__(self, left: Expression, operator: Token, right: Expression):
        super().__init__(left.span.to(right.span) if left.span else operator.span)
        self.left = left
        self.operator = operator
        self.right = right

class LogicalExpression(Expression):
    """Short-circuiting 'and' / 'or'"""
    def __init__(self, left: Expression, operator: Token, right: Expression):
        super().__init__(left.span.to(right.span) if left.span else operator.span)
        self.left = left
        self.operator = operator
        self.right = right

class CallExpression(Expression):
    def __init__(self, callee: Expression, paren: Token, arguments: List[Expression]):
        super().__init__(callee.span.to(paren.span) if callee.span else paren.span)
        self.callee = callee
        self.paren = paren  # closing paren, used to report call errors
        self.arguments = arguments

class GetExpression(Expression):
    """Property access (obj.name)"""
    def __init__(self, object: Expression, name: Token):
        super().__init__(object.span.to(name.span) if object.span else name.span)
        self.object = object
        self.name = name

class SetExpression(Expression):
    """Property assignment (obj.name = value)"""
    def __init__(self, object: Expression, name: Token, value: Expression):
        super().__init__(object.span.to(value.span) if object.span else name.span)
        self.object = object
        self.name = name
        self.value = value

class ThisExpression(Expression):
    def __init__(self, keyword: Token):
        super().__init__(keyword.span)
        self.keyword = keyword

class SuperExpression(Expression):
    """super.method"""
    def __init__(self, keyword: Token, method: Token):
        super().__init__(keyword.span.to(method.span) if keyword.span else None)
        self.keyword = keyword
        self.method = method

class GroupingExpression(Expression):
    def __init__(self, expression: Expression, span: Optional[Span] = None):
        super().__init__(span)
        self.expression = expression

class FunctionExpression(Expression):
    """Anonymous function literal: fun (a, b) { ... }"""
    def __init__(self, keyword: Token, params: List[Token], body: List[Statement]):
        super().__init__(keyword.span)
        self.keyword = keyword
        self.params = params
        self.body = body

# Statements
class ExpressionStatement(Statement):
    def __init__(self, expression: Expression):
        super().__init__(expression.span)
        self.expression = expression

class PrintStatement(Statement):
    def __init__(self, keyword: Token, expression: Expression):
        super().__init__(keyword.span)
        self.keyword = keyword
        self.expression = expression

class VarStatement(Statement):
    def __init__(self, name: Token, initializer: Optional[Expression]):
        super().__init__(name.span)
        self.name = name
        self.initializer = initializer

class BlockStatement(Statement):
    def __init__(self, statements: List[Statement], span: Optional[Span] = None):
        super().__init__(span)
        self.statements = statements

class IfStatement(Statement):
    def __init__(self, condition: Expression, then_branch: Statement,
                 else_branch: Optional[Statement] = None):
        super().__init__(condition.span)
        self.condition = condition
        self.then_branch = then_branch
        self.else_branch = else_branch

class WhileStatement(Statement):
    """Also the target of 'for' desugaring"""
    def __init__(self, condition: Expression, body: Statement):
        super().__init__(condition.span)
        self.condition = condition
        self.body = body

class FunctionStatement(Statement):
    def __init__(self, name: Token, params: List[Token], body: List[Statement]):
        super().__init__(name.span)
        self.name = name
        self.params = params
        self.body = body

class ReturnStatement(Statement):
    def __init__(self, keyword: Token, value: Optional[Expression]):
        super().__init__(keyword.span)
        self.keyword = keyword
        self.value = value

class ClassStatement(Statement):
    def __init__(self, name: Token, superclass: Optional[VariableExpression],
                 methods: List[FunctionStatement]):
        super().__init__(name.span)
        self.name = name
        self.superclass = superclass
        self.methods = methods

class Program(ASTNode):
    """Root node containing all top-level statements"""
    def __init__(self, statements: List[Statement]):
        super().__init__()
        self.statements = statements
