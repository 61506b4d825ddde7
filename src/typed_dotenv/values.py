"""Interpret the right-hand side of dotenv assignments.

Bare values are coerced to the scalar they denote. Quoting opts out of
coercion, so quoted values always remain strings, modulo their escapes.
Values may refer to earlier assignments using ${name}.
"""

from __future__ import annotations

from collections.abc import Mapping
import decimal
import math
import re
from typing import cast, Final

__all__ = ("EnvValue", "coerce", "double_quoted", "fold", "interpolate",
           "interpret", "single_quoted", "to_string")


EnvValue = str | int | float | bool | None

WHITESPACE_RE: Final = re.compile(r"\s+")
UNFOLD_RE: Final = re.compile(r"\\(?= )")
NUMBER_RE: Final = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
INTEGER_RE: Final = re.compile(r"[+-]?[0-9]+")
EXPAND_RE: Final = re.compile(r"\$\{(?P<name>[^}]*)\}")
ESCAPE_RE: Final = re.compile(r'\\(["rnt])')

BOOL_VALUES: Final[Mapping[str, bool]] = {
    "true": True,
    "on": True,
    "yes": True,
    "false": False,
    "off": False,
    "no": False,
}
ESCAPES: Final[Mapping[str, str]] = {'"': '"', "r": "\r", "n": "\n", "t": "\t"}


def fold(value: str, *, unfold: bool = False) -> str:
    r"""Collapse runs of white space to a single space.

    If unfold is true, a backslash escaping a space is also removed, so
    'foo\ bar' becomes 'foo bar'. Values without white space are returned
    unchanged.
    """
    if not WHITESPACE_RE.search(value):
        return value
    value = WHITESPACE_RE.sub(" ", value)
    if unfold:
        value = UNFOLD_RE.sub("", value)
    return value


def _number(text: str) -> int | float | None:
    if INTEGER_RE.fullmatch(text):
        try:
            return int(text)
        except ValueError:
            pass  # Too many digits for int(); try it as a float
    number = float(text)
    if not math.isfinite(number):
        return None
    try:
        exact = decimal.Decimal(text)
        # The number must denote exactly the literal, e.g. 4.50 but not 0.1000000000000000001
        if number.is_integer():
            integer = int(exact)
            if integer == exact:
                return integer
        if decimal.Decimal(repr(number)) == exact:
            return number
    except decimal.InvalidOperation:
        pass  # Exponent beyond the range of Decimal
    return None


def coerce(value: str, constants: Mapping[str, EnvValue] | None = None) -> EnvValue:
    """Convert a bare literal to the scalar it denotes.

    Recognizes null, the boolean words (true, on, yes, false, off, no)
    regardless of case, and integer and floating point numbers. Numbers
    with an integral value, such as 4.0 or 1e3, become integers. Any other
    literal naming an entry of constants is replaced by that entry.
    Numeric-looking literals which cannot be represented exactly, and all
    other literals, are returned unchanged.
    """
    test = value.lower()
    if test == "null":
        return None
    if test in BOOL_VALUES:
        return BOOL_VALUES[test]
    if NUMBER_RE.fullmatch(value):
        number = _number(value)
        return value if number is None else number
    if constants and value in constants:
        return constants[value]
    return value


def to_string(value: EnvValue) -> str:
    """Return the string form of a value used for interpolation.

    None expands to the empty string. Booleans deliberately expand to the
    lowercase words true and false, which read back as the same booleans,
    rather than Python's True and False.
    """
    match value:
        case None:
            return ""
        case bool():
            return "true" if value else "false"
        case float():
            return repr(value)
    return str(value)


def interpolate(value: str, env: Mapping[str, EnvValue]) -> str:
    """Expand ${name} references to values from env.

    Names missing from env expand to the empty string.
    """
    def repl(match: re.Match[str]) -> str:
        return to_string(env.get(match.group("name")))

    return EXPAND_RE.sub(repl, value)


def interpret(raw: str, *, cast: bool = False, unfold: bool = False,
              env: Mapping[str, EnvValue] | None = None,
              constants: Mapping[str, EnvValue] | None = None) -> EnvValue:
    """Interpret a raw value.

    White space is folded (see fold()). Values without white space are
    coerced if cast is true, and a non-string result is returned as is.
    References are then expanded if env is given, even when empty, so
    that unknown names always expand to the empty string.
    """
    if WHITESPACE_RE.search(raw):
        raw = fold(raw, unfold=unfold)
    elif cast:
        value = coerce(raw, constants)
        if not isinstance(value, str):
            return value
        raw = value
    if env is not None:
        raw = interpolate(raw, env)
    return raw


def single_quoted(raw: str) -> str:
    """Interpret the contents of a single-quoted value."""
    value = cast(str, interpret(raw))
    return value.replace("\\'", "'")


def double_quoted(raw: str, env: Mapping[str, EnvValue] | None = None) -> str:
    r"""Interpret the contents of a double-quoted value.

    References are expanded before the \", \r, \n and \t escapes are
    resolved.
    """
    value = cast(str, interpret(raw, env=env))
    return ESCAPE_RE.sub(lambda match: ESCAPES[match.group(1)], value)
