r"""Parse dotenv text into an ordered mapping of typed values.

Each assignment starts on a new line and consists of a variable name, an
equal (=) and an optional value, with no white space around the equal.
Names may be preceded by the export keyword, which is ignored. A missing
value assigns None.

Unquoted values may not contain white space, unless escaped with a
backslash, and are converted to None, booleans, integers or floats when
they spell one (see values.coerce()). Quoted values are always strings.
Single-quoted values are taken literally, except for escaped single quotes
(\'). Double-quoted values expand ${name} references to earlier
assignments and resolve the \", \r, \n and \t escapes. White space runs in
any value are collapsed to a single space.

Comments begin with a hash/pound (#) at the beginning of a line or after a
value and continue to the end of the line.

Syntax:
    document      ::=  (ws | comment | assignment)*
    assignment    ::=  ("export" ws)? name "=" value? comment? (eol | eos)
    name          ::=  letter (letter | digit | "_" | ".")*
    value         ::=  bare | single-quoted | double-quoted
    bare          ::=  (not-ws | "\" (" " | "\t"))+
    single-quoted ::=  "'" (not-single-quote | "\" "'"?)* "'"
    double-quoted ::=  '"' (not-double-quote | "\" '"'?)* '"'
    comment       ::=  (" " | "\t")* "#" not-newline*
    eol           ::=  "\r"? "\n"
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final, Literal

from . import values
from ._lexer import ParseFailure, Scanner, State, Token, TokenStream
from .values import EnvValue

__all__ = "ParseFailure", "TokenKind", "parse"


TokenKind = Literal["WHITESPACE", "COMMENT", "EXPORT", "NAME", "ASSIGN",
                    "SQUOTE", "DQUOTE", "RAW_TEXT", "VALUE", "EOL", "EOS"]

KIND_NAMES: Final[Mapping[str, str]] = {
    "WHITESPACE": "white space",
    "COMMENT": "comment",
    "EXPORT": "export keyword",
    "NAME": "variable name",
    "ASSIGN": "'='",
    "SQUOTE": "single quote",
    "DQUOTE": "double quote",
    "RAW_TEXT": "quoted text",
    "VALUE": "value",
    "EOL": "end of line",
    "EOS": "end of input",
}

MAIN: Final = State("MAIN", (
    ("WHITESPACE", r"\s+"),
    ("COMMENT", r"#[^\r\n]*"),
    ("EXPORT", r"\bexport\b"),
    ("NAME", r"[A-Za-z][A-Za-z0-9_.]*"),
))
VALUE: Final = State("VALUE", (
    ("COMMENT", r"[ \t]*#[^\r\n]*"),
    ("ASSIGN", "="),
    ("SQUOTE", "'"),
    ("DQUOTE", '"'),
    ("VALUE", r"(?:\\[ \t]|\S)+"),  # Escaped white space does not end a bare value
    ("EOL", r"\r?\n"),
))
SINGLE_QUOTED: Final = State("SINGLE_QUOTED", (
    ("RAW_TEXT", r"(?:[^'\\]|\\'?)+"),
    ("SQUOTE", "'"),
))
DOUBLE_QUOTED: Final = State("DOUBLE_QUOTED", (
    ("RAW_TEXT", r'(?:[^"\\]|\\"?)+'),
    ("DQUOTE", '"'),
))


def _skip(stream: TokenStream) -> None:
    stream.skip()


def _pop(stream: TokenStream) -> None:
    stream.pop()


MAIN.on("WHITESPACE", _skip).on("COMMENT", _skip).on("EXPORT", _skip)
MAIN.on("NAME", lambda stream: stream.push(VALUE))
VALUE.on("COMMENT", _skip).on("EOL", _pop)
VALUE.on("SQUOTE", lambda stream: stream.push(SINGLE_QUOTED))
VALUE.on("DQUOTE", lambda stream: stream.push(DOUBLE_QUOTED))
SINGLE_QUOTED.on("SQUOTE", _pop)
DOUBLE_QUOTED.on("DQUOTE", _pop)


def parse(text: str, constants: Mapping[str, EnvValue] | None = None) -> dict[str, EnvValue]:
    """Parse text and return a dictionary of variable assignments.

    Assignments are processed in order, so a reference only sees variables
    assigned on earlier lines, and a later assignment to the same name
    replaces the earlier value. Bare values naming an entry of constants
    are replaced with that entry.

    Raises ParseFailure if text is malformed. No partial result is
    returned.
    """
    env: dict[str, EnvValue] = {}
    scanner = Scanner(TokenStream(MAIN, text), KIND_NAMES)

    while not scanner.match("EOS"):
        name = scanner.demand("NAME", "Expected a variable assignment or comment").lexeme
        scanner.demand("ASSIGN", "Expected '=' after variable name")

        value: EnvValue = None
        if token := scanner.consume("VALUE"):
            value = values.interpret(token.lexeme, cast=True, unfold=True,
                                     env=env, constants=constants)
        elif quote := scanner.consume("SQUOTE"):
            value = values.single_quoted(_quoted(scanner, quote))
        elif quote := scanner.consume("DQUOTE"):
            value = values.double_quoted(_quoted(scanner, quote), env)

        if not scanner.match("EOS"):
            scanner.demand("EOL", "Expected end of line after value")

        env[name] = value

    return env


def _quoted(scanner: Scanner, quote: Token) -> str:
    """Collect the raw text of a quoted value and its closing quote."""
    parts: list[str] = []
    while token := scanner.consume("RAW_TEXT"):
        parts.append(token.lexeme)
    if not scanner.consume(quote.kind):
        raise scanner.error("Expected a matching end quote", quote, expected=(quote.kind,))
    return "".join(parts)
