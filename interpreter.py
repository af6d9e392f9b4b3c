"""
Tree-walking interpreter for the Lox scripting language
"""

import logging
import math
import sys
from typing import Any, Dict, List, Optional, TextIO
from ast_nodes import *
from environment import (Environment, LoxCallable, LoxFunction, LoxClass,
                         LoxInstance, NATIVES)
from errors import LoxRuntimeError, LoxTypeError, StackOverflowError, InternalError
from tokens import Token, TokenType

logger = logging.getLogger(__name__)

DEFAULT_MAX_CALL_DEPTH = 2000

# Rough upper bound on Python frames consumed per Lox call
FRAMES_PER_CALL = 30

# Ceiling for the host recursion limit; deeper programs get "Stack overflow."
MAX_RECURSION_LIMIT = 100_000

class ReturnSignal:
    """Result of executing a 'return'. Statement execution hands this back
    up to the nearest function call instead of raising."""
    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value

def is_truthy(value: Any) -> bool:
    """Only nil and false are falsey"""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True

def is_equal(a: Any, b: Any) -> bool:
    """Values of different types are never equal; callables, classes and
    instances compare by identity"""
    if a is None and b is None:
        return True
    if type(a) is not type(b):
        return False
    if isinstance(a, (bool, float, str)):
        return a == b
    return a is b

def type_name(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, LoxClass):
        return "class"
    if isinstance(value, LoxCallable):
        return "function"
    if isinstance(value, LoxInstance):
        return "instance"
    return type(value).__name__

def stringify(value: Any) -> str:
    """Textual form used by 'print'"""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e16:
            if value == 0 and math.copysign(1.0, value) < 0:
                return "-0"
            return str(int(value))
        return repr(value)
    return str(value)

def divide(left: float, right: float) -> float:
    """IEEE-754 division: x/0 is a signed infinity and 0/0 is NaN"""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right

class Interpreter:
    """Executes a resolved AST against a chain of Environments"""

    def __init__(self, output: Optional[TextIO] = None,
                 max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
        self.output = output
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[int, int] = {}
        self.max_call_depth = max_call_depth
        self.call_depth = 0

        # Raised as needed, capped at MAX_RECURSION_LIMIT
        needed = min(max_call_depth * FRAMES_PER_CALL + 1000, MAX_RECURSION_LIMIT)
        if sys.getrecursionlimit() < needed:
            sys.setrecursionlimit(needed)

        self.define_natives()

    def define_natives(self):
        for native in NATIVES:
            self.globals.define(native.name, native)

    def resolve(self, locals: Dict[int, int]):
        """Merge resolution data from the resolver"""
        self.locals.update(locals)

    def interpret(self, program: Program, locals: Optional[Dict[int, int]] = None):
        """Run a program. A LoxRuntimeError stops execution and propagates;
        output already written stays written."""
        if locals is not None:
            self.resolve(locals)
        logger.debug("interpreting %d statement(s)", len(program.statements))
        self.environment = self.globals
        self.call_depth = 0
        for statement in program.statements:
            try:
                self.execute(statement)
            except RecursionError:
                # Deeply nested expressions outside any call
                raise StackOverflowError.in_statement(statement.span) from None

    def execute(self, stmt: Statement) -> Optional[ReturnSignal]:
        """Execute a statement; a ReturnSignal means a 'return' is unwinding"""
        return self.visit_statement(stmt)

    def visit_statement(self, stmt: Statement) -> Optional[ReturnSignal]:
        if isinstance(stmt, ExpressionStatement):
            self.evaluate(stmt.expression)
        elif isinstance(stmt, PrintStatement):
            self.execute_print_statement(stmt)
        elif isinstance(stmt, VarStatement):
            self.execute_var_statement(stmt)
        elif isinstance(stmt, BlockStatement):
            return self.execute_block(stmt.statements, Environment(self.environment))
        elif isinstance(stmt, IfStatement):
            return self.execute_if_statement(stmt)
        elif isinstance(stmt, WhileStatement):
            return self.execute_while_statement(stmt)
        elif isinstance(stmt, FunctionStatement):
            function = LoxFunction.from_declaration(stmt, self.environment)
            self.environment.define(stmt.name.lexeme, function)
        elif isinstance(stmt, ReturnStatement):
            return self.execute_return_statement(stmt)
        elif isinstance(stmt, ClassStatement):
            self.execute_class_statement(stmt)
        else:
            raise InternalError(f"Unknown statement type: {type(stmt).__name__}")
        return None

    def execute_print_statement(self, stmt: PrintStatement):
        value = self.evaluate(stmt.expression)
        print(stringify(value), file=self.output or sys.stdout)

    def execute_var_statement(self, stmt: VarStatement):
        value = None
        if stmt.initializer is not None:
            value = self.evaluate(stmt.initializer)
        self.environment.define(stmt.name.lexeme, value)

    def execute_block(self, statements: List[Statement],
                      environment: Environment) -> Optional[ReturnSignal]:
        """Execute statements in the given environment, restoring the
        current one afterwards even when an error unwinds"""
        previous = self.environment
        try:
            self.environment = environment
            for statement in statements:
                signal = self.execute(statement)
                if signal is not None:
                    return signal
        finally:
            self.environment = previous
        return None

    def execute_if_statement(self, stmt: IfStatement) -> Optional[ReturnSignal]:
        if is_truthy(self.evaluate(stmt.condition)):
            return self.execute(stmt.then_branch)
        if stmt.else_branch is not None:
            return self.execute(stmt.else_branch)
        return None

    def execute_while_statement(self, stmt: WhileStatement) -> Optional[ReturnSignal]:
        while is_truthy(self.evaluate(stmt.condition)):
            signal = self.execute(stmt.body)
            if signal is not None:
                return signal
        return None

    def execute_return_statement(self, stmt: ReturnStatement) -> ReturnSignal:
        value = None
        if stmt.value is not None:
            value = self.evaluate(stmt.value)
        return ReturnSignal(value)

    def execute_class_statement(self, stmt: ClassStatement):
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError.superclass_not_class(stmt.superclass.name)

        self.environment.define(stmt.name.lexeme, None)

        # Methods of a subclass close over a scope that binds 'super'
        method_closure = self.environment
        if superclass is not None:
            method_closure = Environment(self.environment)
            method_closure.define("super", superclass)

        methods = {}
        for method in stmt.methods:
            is_initializer = method.name.lexeme == "init"
            methods[method.name.lexeme] = LoxFunction.from_declaration(
                method, method_closure, is_initializer)

        klass = LoxClass(stmt.name.lexeme, superclass, methods)
        self.environment.assign(stmt.name, klass)
        logger.debug("defined class %s (%d method(s))", klass.name, len(methods))

    def evaluate(self, expr: Expression) -> Any:
        return self.visit_expression(expr)

    def visit_expression(self, expr: Expression) -> Any:
        if isinstance(expr, LiteralExpression):
            return expr.value
        elif isinstance(expr, GroupingExpression):
            return self.evaluate(expr.expression)
        elif isinstance(expr, VariableExpression):
            return self.look_up_variable(expr.name, expr)
        elif isinstance(expr, AssignmentExpression):
            return self.evaluate_assignment_expression(expr)
        elif isinstance(expr, UnaryExpression):
            return self.evaluate_unary_expression(expr)
        elif isinstance(expr, BinaryExpression):
            return self.evaluate_binary_expression(expr)
        elif isinstance(expr, LogicalExpression):
            return self.evaluate_logical_expression(expr)
        elif isinstance(expr, CallExpression):
            return self.evaluate_call_expression(expr)
        elif isinstance(expr, GetExpression):
            return self.evaluate_get_expression(expr)
        elif isinstance(expr, SetExpression):
            return self.evaluate_set_expression(expr)
        elif isinstance(expr, ThisExpression):
            return self.look_up_variable(expr.keyword, expr)
        elif isinstance(expr, SuperExpression):
            return self.evaluate_super_expression(expr)
        elif isinstance(expr, FunctionExpression):
            return LoxFunction(None, expr.params, expr.body, self.environment)
        else:
            raise InternalError(f"Unknown expression type: {type(expr).__name__}")

    def look_up_variable(self, name: Token, expr: Expression) -> Any:
        distance = self.locals.get(expr.node_id)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def evaluate_assignment_expression(self, expr: AssignmentExpression) -> Any:
        value = self.evaluate(expr.value)

        distance = self.locals.get(expr.node_id)
        if distance is not None:
            self.environment.assign_at(distance, expr.name, value)
        else:
            self.globals.assign(expr.name, value)
        return value

    def evaluate_unary_expression(self, expr: UnaryExpression) -> Any:
        operand = self.evaluate(expr.operand)

        if expr.operator.type == TokenType.MINUS:
            if not isinstance(operand, float):
                raise LoxTypeError.number_operand(expr.operator, type_name(operand))
            return -operand
        if expr.operator.type == TokenType.BANG:
            return not is_truthy(operand)

        raise InternalError(f"Unknown unary operator: {expr.operator.lexeme}")

    def evaluate_binary_expression(self, expr: BinaryExpression) -> Any:
        # Both operands are evaluated before any type check
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator

        if operator.type == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if operator.type == TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if operator.type == TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxTypeError.addition_operands(operator, type_name(left), type_name(right))

        self.check_number_operands(operator, left, right)

        if operator.type == TokenType.MINUS:
            return left - right
        if operator.type == TokenType.STAR:
            return left * right
        if operator.type == TokenType.SLASH:
            return divide(left, right)
        if operator.type == TokenType.GREATER:
            return left > right
        if operator.type == TokenType.GREATER_EQUAL:
            return left >= right
        if operator.type == TokenType.LESS:
            return left < right
        if operator.type == TokenType.LESS_EQUAL:
            return left <= right

        raise InternalError(f"Unknown binary operator: {operator.lexeme}")

    def evaluate_logical_expression(self, expr: LogicalExpression) -> Any:
        left = self.evaluate(expr.left)

        if expr.operator.type == TokenType.OR:
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left

        return self.evaluate(expr.right)

    def evaluate_call_expression(self, expr: CallExpression) -> Any:
        callee = self.evaluate(expr.callee)

        arguments = []
        for argument in expr.arguments:
            arguments.append(self.evaluate(argument))

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError.not_callable(expr.paren)

        if len(arguments) != callee.arity():
            raise LoxRuntimeError.wrong_arity(expr.paren, callee.arity(), len(arguments))

        return self.call(callee, arguments, expr.paren)

    def call(self, callee: LoxCallable, arguments: List[Any], paren: Token) -> Any:
        """Invoke a callable, tracking depth so runaway recursion becomes a
        Lox error instead of a host crash"""
        if self.call_depth >= self.max_call_depth:
            raise StackOverflowError.at(paren)

        self.call_depth += 1
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise StackOverflowError.at(paren) from None
        finally:
            self.call_depth -= 1

    def evaluate_get_expression(self, expr: GetExpression) -> Any:
        obj = self.evaluate(expr.object)
        if isinstance(obj, LoxInstance):
            return obj.get(expr.name)

        raise LoxRuntimeError.only_instances_have_properties(expr.name)

    def evaluate_set_expression(self, expr: SetExpression) -> Any:
        obj = self.evaluate(expr.object)
        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError.only_instances_have_fields(expr.name)

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    def evaluate_super_expression(self, expr: SuperExpression) -> Any:
        distance = self.locals.get(expr.node_id)
        if distance is None:
            raise InternalError("'super' was not resolved")

        superclass = self.environment.get_at(distance, "super")
        # 'this' always lives in the scope just inside the one binding 'super'
        instance = self.environment.get_at(distance - 1, "this")

        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError.undefined_property(expr.method)
        return method.bind(instance)

    def check_number_operands(self, operator: Token, left: Any, right: Any):
        if not isinstance(left, float) or not isinstance(right, float):
            raise LoxTypeError.number_operands(operator, type_name(left), type_name(right))
