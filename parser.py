"""
Recursive descent parser for the Lox scripting language
"""

import logging
from typing import List, Optional
from tokens import Token, TokenType, STATEMENT_KEYWORDS
from ast_nodes import *
from errors import ParseError

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 255

class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = list(tokens)
        self.current = 0
        self.errors: List[ParseError] = []

    def parse(self) -> Program:
        """Parse tokens into an AST. Syntax errors are collected in
        self.errors; statements that failed to parse are left out."""
        statements = []
        while not self.is_at_end():
            try:
                stmt = self.declaration()
            except RecursionError:
                # Input nested deeper than the host stack allows; the whole
                # top-level declaration is dropped
                self.errors.append(ParseError.nesting_too_deep(self.peek()))
                self.synchronize()
                continue
            if stmt is not None:
                statements.append(stmt)

        if self.errors:
            logger.debug("parse finished with %d error(s)", len(self.errors))
        return Program(statements)

    def declaration(self) -> Optional[Statement]:
        """Parse declarations (var, fun, class) or fall through to a statement"""
        try:
            if self.match(TokenType.CLASS):
                return self.class_declaration()
            # 'fun (' starts a function literal, handled as an expression statement
            if self.check(TokenType.FUN) and self.check_next(TokenType.IDENTIFIER):
                self.advance()
                return self.function_declaration("function")
            if self.match(TokenType.VAR):
                return self.var_declaration()

            return self.statement()
        except ParseError as e:
            self.errors.append(e)
            self.synchronize()
            return None

    def class_declaration(self) -> ClassStatement:
        name = self.consume(TokenType.IDENTIFIER, "Expect class name.")

        superclass = None
        if self.match(TokenType.LESS):
            self.consume(TokenType.IDENTIFIER, "Expect superclass name.")
            superclass = VariableExpression(self.previous())

        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")

        methods = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            methods.append(self.function_declaration("method"))

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return ClassStatement(name, superclass, methods)

    def function_declaration(self, kind: str) -> FunctionStatement:
        """Parse a named function; kind is 'function' or 'method'"""
        name = self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        params, body = self.function_body(kind)
        return FunctionStatement(name, params, body)

    def function_body(self, kind: str):
        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    # Reported without unwinding; the parser is not confused
                    self.errors.append(ParseError.too_many_parameters(self.peek()))
                params.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenType.COMMA):
                    break
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")

        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return params, self.block()

    def var_declaration(self) -> VarStatement:
        name = self.consume(TokenType.IDENTIFIER, "Expect variable name.")

        initializer = None
        if self.match(TokenType.EQUAL):
            initializer = self.expression()

        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return VarStatement(name, initializer)

    def statement(self) -> Statement:
        if self.match(TokenType.FOR):
            return self.for_statement()
        if self.match(TokenType.IF):
            return self.if_statement()
        if self.match(TokenType.PRINT):
            return self.print_statement()
        if self.match(TokenType.RETURN):
            return self.return_statement()
        if self.match(TokenType.WHILE):
            return self.while_statement()
        if self.match(TokenType.LEFT_BRACE):
            brace = self.previous()
            return BlockStatement(self.block(), brace.span)

        return self.expression_statement()

    def for_statement(self) -> Statement:
        """Parse a C-style for loop and desugar it into a while loop"""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression()
        semicolon = self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.statement()

        # for (init; cond; incr) body  =>  { init; while (cond) { body; incr; } }
        if increment is not None:
            body = BlockStatement([body, ExpressionStatement(increment)], body.span)
        if condition is None:
            condition = LiteralExpression(True, semicolon.span)
        body = WhileStatement(condition, body)
        if initializer is not None:
            body = BlockStatement([initializer, body], initializer.span)

        return body

    def if_statement(self) -> IfStatement:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self.statement()
        # The else binds to the nearest if
        else_branch = None
        if self.match(TokenType.ELSE):
            else_branch = self.statement()

        return IfStatement(condition, then_branch, else_branch)

    def print_statement(self) -> PrintStatement:
        keyword = self.previous()
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return PrintStatement(keyword, value)

    def return_statement(self) -> ReturnStatement:
        keyword = self.previous()
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.expression()

        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ReturnStatement(keyword, value)

    def while_statement(self) -> WhileStatement:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return WhileStatement(condition, self.statement())

    def block(self) -> List[Statement]:
        """Parse declarations up to the closing brace (the '{' is consumed)"""
        statements = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def expression_statement(self) -> ExpressionStatement:
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ExpressionStatement(expr)

    def expression(self) -> Expression:
        return self.assignment()

    def assignment(self) -> Expression:
        """Parse assignment (right-associative)"""
        expr = self.logic_or()

        if self.match(TokenType.EQUAL):
            equals = self.previous()
            value = self.assignment()

            if isinstance(expr, VariableExpression):
                return AssignmentExpression(expr.name, value)
            if isinstance(expr, GetExpression):
                return SetExpression(expr.object, expr.name, value)

            raise ParseError.invalid_assignment_target(equals)

        return expr

    def logic_or(self) -> Expression:
        expr = self.logic_and()

        while self.match(TokenType.OR):
            operator = self.previous()
            right = self.logic_and()
            expr = LogicalExpression(expr, operator, right)

        return expr

    def logic_and(self) -> Expression:
        expr = self.equality()

        while self.match(TokenType.AND):
            operator = self.previous()
            right = self.equality()
            expr = LogicalExpression(expr, operator, right)

        return expr

    def equality(self) -> Expression:
        expr = self.comparison()

        while self.match(TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL):
            operator = self.previous()
            right = self.comparison()
            expr = BinaryExpression(expr, operator, right)

        return expr

    def comparison(self) -> Expression:
        expr = self.term()

        while self.match(TokenType.GREATER, TokenType.GREATER_EQUAL,
                         TokenType.LESS, TokenType.LESS_EQUAL):
            operator = self.previous()
            right = self.term()
            expr = BinaryExpression(expr, operator, right)

        return expr

    def term(self) -> Expression:
        """Parse addition and subtraction"""
        expr = self.factor()

        while self.match(TokenType.MINUS, TokenType.PLUS):
            operator = self.previous()
            right = self.factor()
            expr = BinaryExpression(expr, operator, right)

        return expr

    def factor(self) -> Expression:
        """Parse multiplication and division"""
        expr = self.unary()

        while self.match(TokenType.SLASH, TokenType.STAR):
            operator = self.previous()
            right = self.unary()
            expr = BinaryExpression(expr, operator, right)

        return expr

    def unary(self) -> Expression:
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.previous()
            right = self.unary()
            return UnaryExpression(operator, right)

        return self.call()

    def call(self) -> Expression:
        """Parse function calls and property access"""
        expr = self.primary()

        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = GetExpression(expr, name)
            else:
                break

        return expr

    def finish_call(self, callee: Expression) -> CallExpression:
        arguments = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self.errors.append(ParseError.too_many_arguments(self.peek()))
                arguments.append(self.expression())
                if not self.match(TokenType.COMMA):
                    break

        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return CallExpression(callee, paren, arguments)

    def primary(self) -> Expression:
        if self.match(TokenType.FALSE):
            return LiteralExpression(False, self.previous().span)
        if self.match(TokenType.TRUE):
            return LiteralExpression(True, self.previous().span)
        if self.match(TokenType.NIL):
            return LiteralExpression(None, self.previous().span)

        if self.match(TokenType.NUMBER, TokenType.STRING):
            token = self.previous()
            return LiteralExpression(token.literal, token.span)

        if self.match(TokenType.SUPER):
            keyword = self.previous()
            self.consume(TokenType.DOT, "Expect '.' after 'super'.")
            method = self.consume(TokenType.IDENTIFIER, "Expect superclass method name.")
            return SuperExpression(keyword, method)

        if self.match(TokenType.THIS):
            return ThisExpression(self.previous())

        if self.match(TokenType.IDENTIFIER):
            return VariableExpression(self.previous())

        if self.match(TokenType.FUN):
            keyword = self.previous()
            params, body = self.function_body("function")
            return FunctionExpression(keyword, params, body)

        if self.match(TokenType.LEFT_PAREN):
            opening = self.previous()
            expr = self.expression()
            closing = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            span = opening.span.to(closing.span) if opening.span else None
            return GroupingExpression(expr, span)

        raise ParseError.expected_expression(self.peek())

    # Utility methods
    def match(self, *types: TokenType) -> bool:
        """Consume the current token if it has one of the given types"""
        for token_type in types:
            if self.check(token_type):
                self.advance()
                return True
        return False

    def check(self, token_type: TokenType) -> bool:
        if self.is_at_end():
            return False
        return self.peek().type == token_type

    def check_next(self, token_type: TokenType) -> bool:
        if self.is_at_end() or self.current + 1 >= len(self.tokens):
            return False
        return self.tokens[self.current + 1].type == token_type

    def advance(self) -> Token:
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def peek(self) -> Token:
        return self.tokens[self.current]

    def previous(self) -> Token:
        return self.tokens[self.current - 1]

    def consume(self, token_type: TokenType, message: str) -> Token:
        if self.check(token_type):
            return self.advance()

        raise ParseError.expected(self.peek(), message)

    def synchronize(self):
        """Discard tokens until the next statement boundary"""
        self.advance()

        while not self.is_at_end():
            if self.previous().type == TokenType.SEMICOLON:
                return
            if self.peek().type in STATEMENT_KEYWORDS:
                return
            self.advance()
