"""Tests for the scanner."""

import dataclasses

import pytest

from scanner import Scanner
from tokens import TokenType


def _scan(source: str):
    scanner = Scanner(source, "<test>")
    tokens = scanner.tokenize()
    return tokens, scanner.errors


def _types(source: str) -> list[TokenType]:
    tokens, errors = _scan(source)
    assert errors == []
    return [t.type for t in tokens]


def test_punctuation_and_operators():
    assert _types("(){},.-+;/*") == [
        TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN,
        TokenType.LEFT_BRACE, TokenType.RIGHT_BRACE,
        TokenType.COMMA, TokenType.DOT, TokenType.MINUS, TokenType.PLUS,
        TokenType.SEMICOLON, TokenType.SLASH, TokenType.STAR, TokenType.EOF,
    ]


def test_two_character_operators_are_greedy():
    assert _types("! != = == < <= > >=") == [
        TokenType.BANG, TokenType.BANG_EQUAL,
        TokenType.EQUAL, TokenType.EQUAL_EQUAL,
        TokenType.LESS, TokenType.LESS_EQUAL,
        TokenType.GREATER, TokenType.GREATER_EQUAL,
        TokenType.EOF,
    ]
    assert _types("===") == [TokenType.EQUAL_EQUAL, TokenType.EQUAL, TokenType.EOF]


def test_keywords_and_identifiers():
    tokens, _ = _scan("var classy = class; fun orchid")
    assert [t.type for t in tokens] == [
        TokenType.VAR, TokenType.IDENTIFIER, TokenType.EQUAL, TokenType.CLASS,
        TokenType.SEMICOLON, TokenType.FUN, TokenType.IDENTIFIER, TokenType.EOF,
    ]
    assert tokens[1].lexeme == "classy"
    assert tokens[6].lexeme == "orchid"


def test_number_literals():
    tokens, _ = _scan("123 4.5")
    assert tokens[0].literal == 123.0
    assert isinstance(tokens[0].literal, float)
    assert tokens[1].literal == 4.5


def test_no_leading_or_trailing_dot_in_numbers():
    assert _types(".5") == [TokenType.DOT, TokenType.NUMBER, TokenType.EOF]
    assert _types("5.") == [TokenType.NUMBER, TokenType.DOT, TokenType.EOF]


def test_string_literal_has_no_escapes():
    tokens, _ = _scan('"a\\nb"')
    assert tokens[0].type == TokenType.STRING
    assert tokens[0].literal == "a\\nb"
    assert tokens[0].lexeme == '"a\\nb"'


def test_comments_are_discarded():
    assert _types("1 // two three\n4") == [TokenType.NUMBER, TokenType.NUMBER, TokenType.EOF]


def test_line_numbers_count_newlines_in_strings_and_comments():
    tokens, _ = _scan('"one\ntwo"\n// c\nx')
    assert tokens[0].line == 1
    assert tokens[1].line == 4
    assert tokens[1].lexeme == "x"


def test_columns():
    tokens, _ = _scan("var  x\n  y")
    assert (tokens[1].line, tokens[1].column) == (1, 6)
    assert (tokens[2].line, tokens[2].column) == (2, 3)


def test_unexpected_characters_are_collected_and_scanning_continues():
    tokens, errors = _scan("1 @ 2 # 3")
    assert [t.type for t in tokens] == [
        TokenType.NUMBER, TokenType.NUMBER, TokenType.NUMBER, TokenType.EOF,
    ]
    assert [e.message for e in errors] == [
        "Unexpected character: @",
        "Unexpected character: #",
    ]


def test_unterminated_string_reported_at_starting_line():
    tokens, errors = _scan('x\n"abc\n\ndef')
    assert [t.type for t in tokens] == [TokenType.IDENTIFIER, TokenType.EOF]
    assert len(errors) == 1
    assert errors[0].message == "Unterminated string."
    assert errors[0].line == 2
    # The line counter still advanced past the string
    assert tokens[-1].line == 4


def test_scan_tokens_is_lazy():
    scanner = Scanner("a b c", "<test>")
    stream = scanner.scan_tokens()
    first = next(stream)
    assert first.lexeme == "a"
    assert scanner.current == 1


def test_non_ascii_letters_are_not_identifiers():
    tokens, errors = _scan("é")
    assert [t.type for t in tokens] == [TokenType.EOF]
    assert errors[0].message == "Unexpected character: é"


def test_tokens_are_immutable():
    tokens, _ = _scan("x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        tokens[0].lexeme = "y"
