"""
Static scope resolution for the Lox scripting language

Walks the AST once before execution and records, for each variable
reference that binds to a local, how many scopes out its declaration
lives. References with no entry are globals and are looked up by name at
run time.
"""

import logging
from enum import Enum, auto
from typing import Dict, List, Set, Union
from ast_nodes import *
from errors import ResolveError, InternalError
from tokens import Token

logger = logging.getLogger(__name__)

class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()

class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()

class Resolver:
    def __init__(self):
        # Each scope maps a name to whether its initializer has finished
        self.scopes: List[Dict[str, bool]] = []
        self.locals: Dict[int, int] = {}
        self.errors: List[ResolveError] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE
        # Globals whose initializer is being resolved right now
        self.pending_globals: Set[str] = set()

    def resolve(self, node: Union[Program, List[Statement]]) -> Dict[int, int]:
        """Resolve a program and return its resolution map (expression
        node id -> scope distance). Errors are collected in self.errors."""
        statements = node.statements if isinstance(node, Program) else node
        for statement in statements:
            try:
                self.resolve_statement(statement)
            except RecursionError:
                self.errors.append(ResolveError.nesting_too_deep(statement.span))
                self.reset_state()
        logger.debug("resolved %d local reference(s), %d error(s)",
                     len(self.locals), len(self.errors))
        return self.locals

    def resolve_statement(self, stmt: Statement):
        if isinstance(stmt, BlockStatement):
            self.begin_scope()
            for statement in stmt.statements:
                self.resolve_statement(statement)
            self.end_scope()
        elif isinstance(stmt, VarStatement):
            self.resolve_var_statement(stmt)
        elif isinstance(stmt, FunctionStatement):
            # Defined before the body so the function can refer to itself
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt.params, stmt.body, FunctionType.FUNCTION)
        elif isinstance(stmt, ClassStatement):
            self.resolve_class_statement(stmt)
        elif isinstance(stmt, ExpressionStatement):
            self.resolve_expression(stmt.expression)
        elif isinstance(stmt, PrintStatement):
            self.resolve_expression(stmt.expression)
        elif isinstance(stmt, IfStatement):
            self.resolve_expression(stmt.condition)
            self.resolve_statement(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_statement(stmt.else_branch)
        elif isinstance(stmt, WhileStatement):
            self.resolve_expression(stmt.condition)
            self.resolve_statement(stmt.body)
        elif isinstance(stmt, ReturnStatement):
            self.resolve_return_statement(stmt)
        else:
            raise InternalError(f"Unknown statement type: {type(stmt).__name__}")

    def resolve_var_statement(self, stmt: VarStatement):
        self.declare(stmt.name)
        if stmt.initializer is not None:
            if not self.scopes:
                self.pending_globals.add(stmt.name.lexeme)
            try:
                self.resolve_expression(stmt.initializer)
            finally:
                self.pending_globals.discard(stmt.name.lexeme)
        self.define(stmt.name)

    def resolve_class_statement(self, stmt: ClassStatement):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.errors.append(ResolveError.self_inheritance(stmt.superclass.name))
            else:
                self.current_class = ClassType.SUBCLASS
                self.resolve_expression(stmt.superclass)

            self.begin_scope()
            self.scopes[-1]["super"] = True

        self.begin_scope()
        self.scopes[-1]["this"] = True

        for method in stmt.methods:
            if method.name.lexeme == "init":
                function_type = FunctionType.INITIALIZER
            else:
                function_type = FunctionType.METHOD
            self.resolve_function(method.params, method.body, function_type)

        self.end_scope()
        if stmt.superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    def resolve_return_statement(self, stmt: ReturnStatement):
        if self.current_function == FunctionType.NONE:
            self.errors.append(ResolveError.top_level_return(stmt.keyword))

        if stmt.value is not None:
            if self.current_function == FunctionType.INITIALIZER:
                self.errors.append(ResolveError.initializer_return(stmt.keyword))
            self.resolve_expression(stmt.value)

    def resolve_function(self, params: List[Token], body: List[Statement],
                         function_type: FunctionType):
        enclosing_function = self.current_function
        self.current_function = function_type

        self.begin_scope()
        for param in params:
            self.declare(param)
            self.define(param)
        for statement in body:
            self.resolve_statement(statement)
        self.end_scope()

        self.current_function = enclosing_function

    def resolve_expression(self, expr: Expression):
        if isinstance(expr, VariableExpression):
            name = expr.name.lexeme
            if self.scopes and self.scopes[-1].get(name) is False:
                self.errors.append(ResolveError.self_reference(expr.name))
            elif not self.scopes and name in self.pending_globals:
                self.errors.append(ResolveError.self_reference(expr.name))
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, AssignmentExpression):
            self.resolve_expression(expr.value)
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, (BinaryExpression, LogicalExpression)):
            self.resolve_expression(expr.left)
            self.resolve_expression(expr.right)
        elif isinstance(expr, UnaryExpression):
            self.resolve_expression(expr.operand)
        elif isinstance(expr, CallExpression):
            self.resolve_expression(expr.callee)
            for argument in expr.arguments:
                self.resolve_expression(argument)
        elif isinstance(expr, GetExpression):
            # Property names are looked up dynamically
            self.resolve_expression(expr.object)
        elif isinstance(expr, SetExpression):
            self.resolve_expression(expr.value)
            self.resolve_expression(expr.object)
        elif isinstance(expr, GroupingExpression):
            self.resolve_expression(expr.expression)
        elif isinstance(expr, LiteralExpression):
            pass
        elif isinstance(expr, ThisExpression):
            if self.current_class == ClassType.NONE:
                self.errors.append(ResolveError.this_outside_class(expr.keyword))
                return
            self.resolve_local(expr, expr.keyword)
        elif isinstance(expr, SuperExpression):
            if self.current_class == ClassType.NONE:
                self.errors.append(ResolveError.super_outside_class(expr.keyword))
                return
            if self.current_class != ClassType.SUBCLASS:
                self.errors.append(ResolveError.super_without_superclass(expr.keyword))
                return
            self.resolve_local(expr, expr.keyword)
        elif isinstance(expr, FunctionExpression):
            self.resolve_function(expr.params, expr.body, FunctionType.FUNCTION)
        else:
            raise InternalError(f"Unknown expression type: {type(expr).__name__}")

    def resolve_local(self, expr: Expression, name: Token):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr.node_id] = depth
                return
        # Not found in any local scope: global

    def reset_state(self):
        """Back to top level after an abandoned statement"""
        self.scopes = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE
        self.pending_globals.clear()

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()

    def declare(self, name: Token):
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.errors.append(ResolveError.duplicate_declaration(name))
        scope[name.lexeme] = False

    def define(self, name: Token):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True
