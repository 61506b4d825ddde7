"""Stateful regular expression lexer.

The lexer is driven by a stack of states. Each state holds an ordered list
of token rules, joined into a single alternation so the first rule that
matches at the current position wins, and the actions fired when a rule
matches. An action may discard the token or push and pop nested states,
which lets a small grammar describe nested lexical contexts such as quoted
strings without recursion.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
import dataclasses
import re
from typing import cast, Final, TYPE_CHECKING

if TYPE_CHECKING:
    from typing_extensions import Self

__all__ = "ParseFailure", "Scanner", "State", "Token", "TokenStream"


EOS: Final = "EOS"

Action = Callable[["TokenStream"], None]


@dataclasses.dataclass(frozen=True, slots=True)
class Token:
    """Represents a token recognized in the source text."""

    kind: str
    lexeme: str
    _: dataclasses.KW_ONLY
    offset: int
    line: int
    column: int


class ParseFailure(SyntaxError):
    """Raised when text does not follow the expected grammar.

    In addition to the usual SyntaxError attributes, position holds the
    character offset of the failure and expected the token kinds that
    would have been accepted there.
    """

    position: int
    expected: tuple[str, ...]

    @classmethod
    def build(cls, msg: str, text: str, *, offset: int, line: int, column: int,
              length: int = 1, expected: Iterable[str] = ()) -> ParseFailure:
        """Build and return a ParseFailure located in text."""
        error = cls(msg)
        start = offset - column
        end = text.find("\n", offset)
        error.text = text[start:] if end < 0 else text[start:end + 1]
        error.lineno = line
        error.offset = column + 1
        error.end_offset = error.offset + max(length, 1)
        error.print_file_and_line = True  # type: ignore[assignment]
        error.position = offset
        error.expected = tuple(expected)
        return error


class State:
    """A named set of token rules and the actions fired when they match."""

    __slots__ = "_actions", "_regex", "name"

    def __init__(self, name: str, rules: Iterable[tuple[str, str]]) -> None:
        self.name: Final = name
        self._regex: Final = re.compile("|".join(f"(?P<{kind}>{pattern})"
                                                 for kind, pattern in rules))
        self._actions: Final[dict[str, Action]] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__module__}.{self.__class__.__qualname__}({self.name!r})"

    def on(self, kind: str, action: Action) -> Self:
        """Fire action whenever a token of the given kind is recognized."""
        self._actions[kind] = action
        return self

    def action(self, kind: str) -> Action | None:
        return self._actions.get(kind)

    def match(self, text: str, pos: int) -> tuple[str, str] | None:
        """Return the kind and lexeme of the token at pos, if any."""
        match = self._regex.match(text, pos)
        if match is None or match.end() == pos:
            return None
        return cast(str, match.lastgroup), match.group(0)


class TokenStream:
    """Produce tokens from text using a stack of lexer states."""

    __slots__ = "_column", "_line", "_offset", "_skip", "_stack", "text"

    def __init__(self, initial: State, text: str) -> None:
        self.text: Final = text
        self._stack = [initial]
        self._offset = 0
        self._line = 1
        self._column = 0
        self._skip = False

    @property
    def state(self) -> State:
        return self._stack[-1]

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def location(self) -> tuple[int, int, int]:
        """Return the offset, line and column of the current position."""
        return self._offset, self._line, self._column

    def push(self, state: State) -> None:
        self._stack.append(state)

    def pop(self) -> None:
        if len(self._stack) == 1:
            raise RuntimeError(f"Cannot pop the initial lexer state {self.state.name!r}")
        self._stack.pop()

    def skip(self) -> None:
        """Discard the token currently being recognized."""
        self._skip = True

    def next_token(self) -> Token | None:
        """Return the next token that is not discarded.

        An EOS token is returned once the text is exhausted, whatever the
        active state. None is returned, without advancing, when no rule of
        the active state matches the remaining text.
        """
        while True:
            if self._offset >= len(self.text):
                return Token(EOS, "", offset=self._offset, line=self._line, column=self._column)
            state = self.state
            matched = state.match(self.text, self._offset)
            if matched is None:
                return None
            kind, lexeme = matched
            token = Token(kind, lexeme, offset=self._offset, line=self._line, column=self._column)
            self._advance(lexeme)
            self._skip = False
            action = state.action(kind)
            if action is not None:
                action(self)
            if not self._skip:
                return token

    def _advance(self, lexeme: str) -> None:
        self._offset += len(lexeme)
        newlines = lexeme.count("\n")
        if newlines:
            self._line += newlines
            self._column = len(lexeme) - lexeme.rindex("\n") - 1
        else:
            self._column += len(lexeme)


class Scanner:
    """One token lookahead over a TokenStream.

    names maps token kinds to the descriptions used in error messages.
    """

    __slots__ = "_lookahead", "_names", "_stream"

    def __init__(self, stream: TokenStream, names: Mapping[str, str] | None = None) -> None:
        self._stream: Final = stream
        self._names: Final = names or {}
        self._lookahead: Token | None = None

    def peek(self) -> Token | None:
        """Return the next token without consuming it."""
        if self._lookahead is None:
            self._lookahead = self._stream.next_token()
        return self._lookahead

    def match(self, kind: str) -> bool:
        token = self.peek()
        return token is not None and token.kind == kind

    def consume(self, kind: str) -> Token | None:
        """Consume and return the next token if it is of the given kind."""
        if not self.match(kind):
            return None
        token, self._lookahead = self._lookahead, None
        return token

    def demand(self, kind: str, msg: str | None = None) -> Token:
        """Consume and return the next token, which must be of the given kind."""
        token = self.consume(kind)
        if token is None:
            raise self.error(msg or f"Expected {self.describe(kind)}", expected=(kind,))
        return token

    def describe(self, kind: str) -> str:
        return self._names.get(kind, kind)

    def error(self, msg: str, token: Token | None = None,
              expected: Iterable[str] = ()) -> ParseFailure:
        """Build a ParseFailure located at token.

        Without a token, the failure is located at the lookahead and the
        message is completed with what was found there.
        """
        text = self._stream.text
        if token is not None:
            return ParseFailure.build(msg, text, offset=token.offset, line=token.line,
                                      column=token.column, length=len(token.lexeme),
                                      expected=expected)
        token = self.peek()
        if token is None:
            # Nothing matched, so point at the offending character
            offset, line, column = self._stream.location
            found = f"unexpected character {text[offset]!r}"
            length = 1
        elif token.kind == EOS:
            offset, line, column = token.offset, token.line, token.column
            found = "unexpected end of input"
            length = 1
        else:
            offset, line, column = token.offset, token.line, token.column
            found = f"found {self.describe(token.kind)} {token.lexeme!r}"
            length = len(token.lexeme)
        return ParseFailure.build(f"{msg}, {found}", text, offset=offset, line=line,
                                  column=column, length=length, expected=expected)
