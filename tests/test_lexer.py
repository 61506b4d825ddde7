"""Tests for the _lexer module."""

import re

import pytest

from typed_dotenv import _lexer


def make_states() -> tuple[_lexer.State, _lexer.State]:
    """Return a tiny grammar of words and parenthesized groups."""
    outer = _lexer.State("OUTER", (
        ("WS", r"\s+"),
        ("WORD", r"\w+"),
        ("OPEN", r"\("),
    ))
    inner = _lexer.State("INNER", (
        ("TEXT", r"[^)]+"),
        ("CLOSE", r"\)"),
    ))
    outer.on("WS", lambda stream: stream.skip())
    outer.on("OPEN", lambda stream: stream.push(inner))
    inner.on("CLOSE", lambda stream: stream.pop())
    return outer, inner


def tokens(stream: _lexer.TokenStream) -> list[tuple[str, str]]:
    result = []
    while (token := stream.next_token()) is not None:
        result.append((token.kind, token.lexeme))
        if token.kind == "EOS":
            break
    return result


def test_state_first_rule_wins() -> None:
    """Check that rules are tried in declaration order."""
    state = _lexer.State("S", (("KEYWORD", r"\bif\b"), ("NAME", r"[a-z]+")))
    assert state.match("if x", 0) == ("KEYWORD", "if")
    assert state.match("iffy", 0) == ("NAME", "iffy")
    assert state.match("iffy", 4) is None
    assert state.match("x iffy", 2) == ("NAME", "iffy")


def test_state_ignores_empty_match() -> None:
    """Check that a zero-length match is not reported as a token."""
    state = _lexer.State("S", (("MAYBE", "a*"),))
    assert state.match("b", 0) is None


def test_stream_push_pop_skip() -> None:
    """Check that actions switch states and discard tokens."""
    outer, _ = make_states()
    stream = _lexer.TokenStream(outer, "one (two three) four")
    assert tokens(stream) == [
        ("WORD", "one"),
        ("OPEN", "("),
        ("TEXT", "two three"),
        ("CLOSE", ")"),
        ("WORD", "four"),
        ("EOS", ""),
    ]
    assert stream.depth == 1


def test_stream_eos_in_nested_state() -> None:
    """Check that EOS is produced whatever state is active."""
    outer, inner = make_states()
    stream = _lexer.TokenStream(outer, "(open")
    assert tokens(stream) == [("OPEN", "("), ("TEXT", "open"), ("EOS", "")]
    assert stream.state is inner


def test_stream_no_match() -> None:
    """Check that unmatched text produces no token and does not advance."""
    outer, _ = make_states()
    stream = _lexer.TokenStream(outer, "word )")
    assert tokens(stream) == [("WORD", "word")]
    assert stream.location == (5, 1, 5)
    assert stream.next_token() is None


def test_stream_locations() -> None:
    """Check offsets, lines and columns of tokens."""
    outer, _ = make_states()
    stream = _lexer.TokenStream(outer, "a\n  bc (d\ne) f")
    found = []
    while (token := stream.next_token()) is not None and token.kind != "EOS":
        found.append((token.lexeme, token.offset, token.line, token.column))
    assert found == [
        ("a", 0, 1, 0),
        ("bc", 4, 2, 2),
        ("(", 7, 2, 5),
        ("d\ne", 8, 2, 6),
        (")", 11, 3, 1),
        ("f", 13, 3, 3),
    ]


def test_stream_cannot_pop_initial_state() -> None:
    """Check that the bottom state is never popped."""
    outer, _ = make_states()
    stream = _lexer.TokenStream(outer, "")
    with pytest.raises(RuntimeError, match="Cannot pop the initial lexer state 'OUTER'"):
        stream.pop()


def test_scanner_match_consume_demand() -> None:
    """Check the scanner's lookahead operations."""
    outer, _ = make_states()
    scanner = _lexer.Scanner(_lexer.TokenStream(outer, "one two"))
    assert scanner.match("WORD")
    assert not scanner.match("OPEN")
    assert scanner.consume("OPEN") is None
    token = scanner.consume("WORD")
    assert token is not None
    assert token.lexeme == "one"
    assert scanner.demand("WORD").lexeme == "two"
    assert scanner.match("EOS")


@pytest.mark.parametrize(("text", "error", "offset", "column"), [
    ("one", "Expected opening, found WORD 'one'", 0, 1),
    ("", "Expected opening, unexpected end of input", 0, 1),
    ("  )", "Expected opening, unexpected character ')'", 2, 3),
])
def test_scanner_demand_failure(text: str, error: str, offset: int, column: int) -> None:
    """Check the location and message of a failed demand."""
    outer, _ = make_states()
    scanner = _lexer.Scanner(_lexer.TokenStream(outer, text), {"OPEN": "opening"})
    with pytest.raises(_lexer.ParseFailure, match=re.escape(error)) as exc_info:
        scanner.demand("OPEN")
    assert isinstance(exc_info.value, SyntaxError)
    assert exc_info.value.position == offset
    assert exc_info.value.offset == column
    assert exc_info.value.lineno == 1
    assert exc_info.value.expected == ("OPEN",)


def test_scanner_error_at_token() -> None:
    """Check that an error can be located at an earlier token."""
    outer, _ = make_states()
    text = "one\n  (two"
    scanner = _lexer.Scanner(_lexer.TokenStream(outer, text))
    scanner.demand("WORD")
    opening = scanner.demand("OPEN")
    scanner.demand("TEXT")
    error = scanner.error("Unclosed group", opening)
    assert str(error) == "Unclosed group (line 2)"
    assert error.text == "  (two"
    assert (error.lineno, error.offset, error.end_offset) == (2, 3, 4)
    assert error.position == 6
