"""
Error handling for the Lox scripting language
Includes diagnostics, error codes, and the exception hierarchy used by
every stage of the pipeline
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional
from source_map import Span, get_source_map
from tokens import Token, TokenType

class Severity(Enum):
    """Error severity levels"""
    ERROR = "error"

@dataclass
class LabeledSpan:
    """A span with an optional label"""
    span: Span
    label: Optional[str] = None
    is_primary: bool = False

class ErrorCode:
    """Error code constants"""
    # Lexical errors (LOX1xxx)
    UNEXPECTED_CHARACTER = "LOX1001"
    UNTERMINATED_STRING = "LOX1002"

    # Syntax errors (LOX2xxx)
    EXPECTED_TOKEN = "LOX2001"
    EXPECTED_EXPRESSION = "LOX2002"
    INVALID_ASSIGNMENT_TARGET = "LOX2003"
    TOO_MANY_ARGUMENTS = "LOX2004"
    TOO_MANY_PARAMETERS = "LOX2005"
    NESTING_TOO_DEEP = "LOX2006"

    # Resolution errors (LOX3xxx)
    SELF_REFERENCING_INITIALIZER = "LOX3001"
    DUPLICATE_DECLARATION = "LOX3002"
    TOP_LEVEL_RETURN = "LOX3003"
    INITIALIZER_RETURN_VALUE = "LOX3004"
    THIS_OUTSIDE_CLASS = "LOX3005"
    SUPER_OUTSIDE_CLASS = "LOX3006"
    SUPER_WITHOUT_SUPERCLASS = "LOX3007"
    SELF_INHERITANCE = "LOX3008"
    RESOLUTION_TOO_DEEP = "LOX3009"

    # Runtime errors (LOX4xxx)
    UNDEFINED_VARIABLE = "LOX4001"
    OPERAND_TYPE = "LOX4002"
    NOT_CALLABLE = "LOX4003"
    WRONG_ARITY = "LOX4004"
    NOT_AN_INSTANCE = "LOX4005"
    UNDEFINED_PROPERTY = "LOX4006"
    SUPERCLASS_NOT_CLASS = "LOX4007"
    STACK_OVERFLOW = "LOX4008"

@dataclass
class Diagnostic:
    """Everything needed to report one error"""
    code: str
    severity: Severity
    message: str
    line: int
    labels: List[LabeledSpan] = field(default_factory=list)
    where: str = ""
    help: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    def __post_init__(self):
        # Exactly one primary label
        if self.labels and not any(label.is_primary for label in self.labels):
            self.labels[0].is_primary = True

    def primary_span(self) -> Optional[Span]:
        for label in self.labels:
            if label.is_primary:
                return label.span
        return None

def _labels(token: Optional[Token], label: Optional[str]) -> List[LabeledSpan]:
    if token is None or token.span is None:
        return []
    return [LabeledSpan(token.span, label, is_primary=True)]

def _where(token: Token) -> str:
    if token.type == TokenType.EOF:
        return " at end"
    return f" at '{token.lexeme}'"

class LoxError(Exception):
    """Base class for every error a Lox program can produce"""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(self.report())

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def line(self) -> int:
        return self.diagnostic.line

    def report(self) -> str:
        return f"[line {self.line}] Error{self.diagnostic.where}: {self.message}"

    @classmethod
    def at_token(cls, token: Token, code: str, message: str,
                 label: Optional[str] = None, help_text: Optional[str] = None):
        diagnostic = Diagnostic(
            code=code,
            severity=Severity.ERROR,
            message=message,
            line=token.line,
            labels=_labels(token, label),
            where=_where(token),
            help=help_text
        )
        return cls(diagnostic)

    @classmethod
    def at_span(cls, span: Optional[Span], code: str, message: str,
                help_text: Optional[str] = None):
        """Error located by a node's span rather than a single token"""
        position = get_source_map().start_position(span) if span else None
        diagnostic = Diagnostic(
            code=code,
            severity=Severity.ERROR,
            message=message,
            line=position.line if position else 0,
            labels=[LabeledSpan(span, is_primary=True)] if position else [],
            help=help_text
        )
        return cls(diagnostic)

class LexError(LoxError):
    """Lexical analysis errors"""

    @classmethod
    def unexpected_character(cls, line: int, span: Optional[Span], char: str):
        diagnostic = Diagnostic(
            code=ErrorCode.UNEXPECTED_CHARACTER,
            severity=Severity.ERROR,
            message=f"Unexpected character: {char}",
            line=line,
            labels=[LabeledSpan(span, "not valid here", is_primary=True)] if span else [],
            help="check for typos or unsupported characters"
        )
        return cls(diagnostic)

    @classmethod
    def unterminated_string(cls, line: int, span: Optional[Span]):
        diagnostic = Diagnostic(
            code=ErrorCode.UNTERMINATED_STRING,
            severity=Severity.ERROR,
            message="Unterminated string.",
            line=line,
            labels=[LabeledSpan(span, "string starts here", is_primary=True)] if span else [],
            help='add a closing " to terminate the string'
        )
        return cls(diagnostic)

class ParseError(LoxError):
    """Syntax errors"""

    @classmethod
    def expected(cls, token: Token, message: str):
        return cls.at_token(token, ErrorCode.EXPECTED_TOKEN, message, "unexpected token")

    @classmethod
    def expected_expression(cls, token: Token):
        return cls.at_token(
            token, ErrorCode.EXPECTED_EXPRESSION, "Expect expression.",
            "expected expression here",
            "add a valid expression (variable, literal, or function call)"
        )

    @classmethod
    def invalid_assignment_target(cls, equals: Token):
        return cls.at_token(
            equals, ErrorCode.INVALID_ASSIGNMENT_TARGET, "Invalid assignment target.",
            "cannot assign to the expression before this",
            "only variables and properties can be assigned to"
        )

    @classmethod
    def too_many_arguments(cls, token: Token):
        return cls.at_token(token, ErrorCode.TOO_MANY_ARGUMENTS,
                            "Can't have more than 255 arguments.")

    @classmethod
    def too_many_parameters(cls, token: Token):
        return cls.at_token(token, ErrorCode.TOO_MANY_PARAMETERS,
                            "Can't have more than 255 parameters.")

    @classmethod
    def nesting_too_deep(cls, token: Token):
        return cls.at_token(token, ErrorCode.NESTING_TOO_DEEP, "Nesting is too deep.",
                            help_text="split the expression or block into smaller pieces")

class ResolveError(LoxError):
    """Static scoping errors found after parsing"""

    @classmethod
    def self_reference(cls, name: Token):
        return cls.at_token(
            name, ErrorCode.SELF_REFERENCING_INITIALIZER,
            "Can't read local variable in its own initializer.",
            "read before the declaration finishes"
        )

    @classmethod
    def duplicate_declaration(cls, name: Token):
        return cls.at_token(
            name, ErrorCode.DUPLICATE_DECLARATION,
            "Already a variable with this name in this scope.",
            help_text="rename one of the variables or assign instead of redeclaring"
        )

    @classmethod
    def top_level_return(cls, keyword: Token):
        return cls.at_token(keyword, ErrorCode.TOP_LEVEL_RETURN,
                            "Can't return from top-level code.")

    @classmethod
    def initializer_return(cls, keyword: Token):
        return cls.at_token(
            keyword, ErrorCode.INITIALIZER_RETURN_VALUE,
            "Can't return a value from an initializer.",
            help_text="init always returns the new instance; use a bare 'return;'"
        )

    @classmethod
    def this_outside_class(cls, keyword: Token):
        return cls.at_token(keyword, ErrorCode.THIS_OUTSIDE_CLASS,
                            "Can't use 'this' outside of a class.")

    @classmethod
    def super_outside_class(cls, keyword: Token):
        return cls.at_token(keyword, ErrorCode.SUPER_OUTSIDE_CLASS,
                            "Can't use 'super' outside of a class.")

    @classmethod
    def super_without_superclass(cls, keyword: Token):
        return cls.at_token(keyword, ErrorCode.SUPER_WITHOUT_SUPERCLASS,
                            "Can't use 'super' in a class with no superclass.")

    @classmethod
    def self_inheritance(cls, name: Token):
        return cls.at_token(name, ErrorCode.SELF_INHERITANCE,
                            "A class can't inherit from itself.")

    @classmethod
    def nesting_too_deep(cls, span: Optional[Span]):
        return cls.at_span(span, ErrorCode.RESOLUTION_TOO_DEEP, "Nesting is too deep.")

class LoxRuntimeError(LoxError):
    """Errors raised while a program executes"""

    def report(self) -> str:
        return f"{self.message}\n[line {self.line}]"

    @classmethod
    def undefined_variable(cls, name: Token):
        return cls.at_token(
            name, ErrorCode.UNDEFINED_VARIABLE, f"Undefined variable '{name.lexeme}'.",
            f"'{name.lexeme}' not found",
            f"declare the variable with 'var {name.lexeme} = value;' before using it"
        )

    @classmethod
    def not_callable(cls, paren: Token):
        return cls.at_token(paren, ErrorCode.NOT_CALLABLE,
                            "Can only call functions and classes.")

    @classmethod
    def wrong_arity(cls, paren: Token, expected: int, got: int):
        return cls.at_token(paren, ErrorCode.WRONG_ARITY,
                            f"Expected {expected} arguments but got {got}.")

    @classmethod
    def only_instances_have_properties(cls, name: Token):
        return cls.at_token(name, ErrorCode.NOT_AN_INSTANCE,
                            "Only instances have properties.")

    @classmethod
    def only_instances_have_fields(cls, name: Token):
        return cls.at_token(name, ErrorCode.NOT_AN_INSTANCE,
                            "Only instances have fields.")

    @classmethod
    def undefined_property(cls, name: Token):
        return cls.at_token(name, ErrorCode.UNDEFINED_PROPERTY,
                            f"Undefined property '{name.lexeme}'.")

    @classmethod
    def superclass_not_class(cls, name: Token):
        return cls.at_token(name, ErrorCode.SUPERCLASS_NOT_CLASS,
                            "Superclass must be a class.")

class LoxTypeError(LoxRuntimeError):
    """Operator applied to operands of the wrong type"""

    @classmethod
    def number_operand(cls, operator: Token, operand_type: str):
        return cls.at_token(
            operator, ErrorCode.OPERAND_TYPE,
            f"Operand must be a number, got {operand_type}.",
            f"operand has type {operand_type}"
        )

    @classmethod
    def number_operands(cls, operator: Token, left_type: str, right_type: str):
        return cls.at_token(
            operator, ErrorCode.OPERAND_TYPE,
            f"Operands must be numbers, got {left_type} and {right_type}.",
            f"operator '{operator.lexeme}' requires numeric operands"
        )

    @classmethod
    def addition_operands(cls, operator: Token, left_type: str, right_type: str):
        return cls.at_token(
            operator, ErrorCode.OPERAND_TYPE,
            f"Operands must be two numbers or two strings, got {left_type} and {right_type}.",
            help_text="the + operator is only defined for number + number and string + string"
        )

class StackOverflowError(LoxRuntimeError):
    """Call depth exceeded the interpreter's limit"""

    @classmethod
    def at(cls, paren: Token):
        return cls.at_token(paren, ErrorCode.STACK_OVERFLOW, "Stack overflow.",
                            help_text="check for unbounded recursion")

    @classmethod
    def in_statement(cls, span: Optional[Span]):
        return cls.at_span(span, ErrorCode.STACK_OVERFLOW, "Stack overflow.",
                           help_text="the statement nests too deeply to evaluate")

class InternalError(Exception):
    """Interpreter invariant violated; never a Lox-level error"""
    pass
