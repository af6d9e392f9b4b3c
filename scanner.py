"""
Scanner for the Lox scripting language
Converts source text into tokens
"""

import logging
from typing import Iterator, List
from tokens import Token, TokenType, KEYWORDS
from errors import LexError
from source_map import get_source_map, Span

logger = logging.getLogger(__name__)

SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
}

# char -> (type without '=', type with trailing '=')
EQUAL_SUFFIX_TOKENS = {
    '!': (TokenType.BANG, TokenType.BANG_EQUAL),
    '=': (TokenType.EQUAL, TokenType.EQUAL_EQUAL),
    '<': (TokenType.LESS, TokenType.LESS_EQUAL),
    '>': (TokenType.GREATER, TokenType.GREATER_EQUAL),
}

def is_digit(c: str) -> bool:
    return '0' <= c <= '9'

def is_alpha(c: str) -> bool:
    return ('a' <= c <= 'z') or ('A' <= c <= 'Z') or c == '_'

def is_alnum(c: str) -> bool:
    return is_alpha(c) or is_digit(c)

class Scanner:
    def __init__(self, source: str, source_label: str = "<script>"):
        self.source = source
        self.source_label = source_label
        self.errors: List[LexError] = []
        self.current = 0
        self.start = 0
        self.line = 1
        self.line_start = 0  # offset of the first character on the current line
        self.start_line = 1
        self.start_column = 1

        self.file_id = get_source_map().add_source(source_label, source)

    def tokenize(self) -> List[Token]:
        """Scan the whole source and return every token, EOF included"""
        return list(self.scan_tokens())

    def scan_tokens(self) -> Iterator[Token]:
        """Lazily yield tokens. Invalid input is recorded in self.errors and
        skipped, so the stream always runs to a single EOF token."""
        while not self.is_at_end():
            self.start = self.current
            self.start_line = self.line
            self.start_column = self.current - self.line_start + 1
            token = self.scan_token()
            if token is not None:
                yield token

        eof_span = Span(self.file_id, len(self.source), len(self.source))
        yield Token(TokenType.EOF, "", None, self.line,
                    len(self.source) - self.line_start + 1, eof_span)
        if self.errors:
            logger.debug("%s: %d lexical error(s)", self.source_label, len(self.errors))

    def is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def scan_token(self):
        c = self.advance()

        if c in SINGLE_CHAR_TOKENS:
            return self.make_token(SINGLE_CHAR_TOKENS[c])
        if c in EQUAL_SUFFIX_TOKENS:
            plain, with_equal = EQUAL_SUFFIX_TOKENS[c]
            return self.make_token(with_equal if self.match('=') else plain)
        if c == '/':
            if self.match('/'):
                # A comment goes until the end of the line
                while self.peek() != '\n' and not self.is_at_end():
                    self.advance()
                return None
            return self.make_token(TokenType.SLASH)
        if c in (' ', '\r', '\t'):
            return None
        if c == '\n':
            self.newline()
            return None
        if c == '"':
            return self.string()
        if is_digit(c):
            return self.number()
        if is_alpha(c):
            return self.identifier()

        self.errors.append(LexError.unexpected_character(self.line, self.create_span(), c))
        return None

    def advance(self) -> str:
        char = self.source[self.current]
        self.current += 1
        return char

    def match(self, expected: str) -> bool:
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self) -> str:
        if self.is_at_end():
            return '\0'
        return self.source[self.current]

    def peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def newline(self):
        self.line += 1
        self.line_start = self.current

    def string(self):
        while self.peek() != '"' and not self.is_at_end():
            if self.advance() == '\n':
                self.newline()

        if self.is_at_end():
            # Report at the opening quote, not at end of input
            span = Span(self.file_id, self.start, self.start + 1)
            self.errors.append(LexError.unterminated_string(self.start_line, span))
            return None

        # The closing quote
        self.advance()
        return self.make_token(TokenType.STRING, self.source[self.start + 1:self.current - 1])

    def number(self):
        while is_digit(self.peek()):
            self.advance()

        # A fractional part needs digits on both sides of the dot
        if self.peek() == '.' and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()

        return self.make_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self):
        while is_alnum(self.peek()):
            self.advance()

        text = self.source[self.start:self.current]
        return self.make_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def make_token(self, token_type: TokenType, literal=None) -> Token:
        text = self.source[self.start:self.current]
        return Token(token_type, text, literal, self.start_line, self.start_column,
                     self.create_span())

    def create_span(self) -> Span:
        return Span(self.file_id, self.start, self.current)
