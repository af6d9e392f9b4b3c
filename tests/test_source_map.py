"""Tests for source registration and span arithmetic."""

import pytest

from scanner import Scanner
from source_map import Position, SourceMap, Span, get_source_map


def test_token_spans_cover_their_lexemes():
    scanner = Scanner('var name = "two\nlines";', "<test>")
    tokens = scanner.tokenize()
    source_file = get_source_map().get_file(tokens[0].span.file_id)
    for token in tokens[:-1]:
        assert source_file.content[token.span.start:token.span.end] == token.lexeme


def test_positions_are_one_based():
    file_id = get_source_map().add_source("<test>", "ab\ncd\n")
    source_file = get_source_map().get_file(file_id)
    assert source_file.offset_to_position(0) == Position(1, 1)
    assert source_file.offset_to_position(4) == Position(2, 2)
    assert str(source_file.offset_to_position(3)) == "2:1"


def test_span_end_position_is_inclusive():
    file_id = get_source_map().add_source("<test>", "print missing;")
    source_file = get_source_map().get_file(file_id)
    start, end = source_file.span_to_positions(Span(file_id, 6, 13))
    assert (start.column, end.column) == (7, 13)


def test_get_line_strips_line_endings():
    file_id = get_source_map().add_source("<test>", "one\r\ntwo")
    source_file = get_source_map().get_file(file_id)
    assert source_file.get_line(1) == "one"
    assert source_file.get_line(2) == "two"
    with pytest.raises(ValueError):
        source_file.get_line(3)


def test_every_registration_gets_a_fresh_id():
    source_map = get_source_map()
    first = source_map.add_source("<stdin>", "print 1;")
    second = source_map.add_source("<stdin>", "print 1;")
    assert first != second
    assert source_map.get_file(first).label == "<stdin>"


def test_span_join():
    a = Span(1, 2, 4)
    b = Span(1, 8, 10)
    assert a.to(b) == Span(1, 2, 10)
    assert a.to(None) is a
    assert a.to(Span(2, 0, 1)) is a
    with pytest.raises(ValueError):
        Span(1, 5, 4)


def test_oldest_sources_are_dropped():
    source_map = SourceMap(max_sources=3)
    ids = [source_map.add_source("<stdin>", f"print {n};") for n in range(5)]
    assert source_map.get_file(ids[0]) is None
    assert source_map.get_file(ids[1]) is None
    assert [source_map.get_file(i).content for i in ids[2:]] == [
        "print 2;", "print 3;", "print 4;"
    ]
    assert source_map.start_position(Span(ids[0], 0, 5)) is None
    assert source_map.start_position(Span(ids[4], 6, 7)) == Position(1, 7)
