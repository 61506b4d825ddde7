"""Load dotenv files."""

from __future__ import annotations

from collections.abc import Mapping
import logging
import os
from pathlib import Path
import traceback
from typing import cast, Final

from . import parser
from .values import EnvValue

__all__ = "LoadFailure", "Loader", "include", "require"

_log = logging.getLogger(__name__)


class LoadFailure(Exception):
    """Raised when a dotenv file cannot be read or parsed."""

    def __init__(self, msg: str, filename: str | os.PathLike[str]) -> None:
        super().__init__(msg)
        self.filename = os.fspath(filename)


class Loader:
    """Load dotenv files, expanding bare values that name a constant."""

    __slots__ = "constants", "encoding"

    def __init__(self, constants: Mapping[str, EnvValue] | None = None, *,
                 encoding: str = "utf-8") -> None:
        self.constants: Final = dict(constants or {})
        self.encoding: Final = encoding

    def __repr__(self) -> str:
        args = f"constants={self.constants!r}, encoding={self.encoding!r}"
        return f"{self.__class__.__module__}.{self.__class__.__qualname__}({args})"

    def require(self, path: str | os.PathLike[str]) -> dict[str, EnvValue]:
        """Load a dotenv file which must exist."""
        return cast("dict[str, EnvValue]", self._load(path, required=True))

    def include(self, path: str | os.PathLike[str]) -> dict[str, EnvValue] | None:
        """Load a dotenv file, returning None if it does not exist."""
        return self._load(path, required=False)

    def _load(self, path: str | os.PathLike[str], *,
              required: bool) -> dict[str, EnvValue] | None:
        file = Path(path).resolve()
        try:
            text = file.read_text(encoding=self.encoding)
        except OSError as exc:
            if required:
                raise LoadFailure(f"Unable to read dotenv file {str(file)!r}: "
                                  f"{exc.strerror or exc}", file) from exc
            _log.debug("Skipping unreadable dotenv file %s: %s", file, exc)
            return None
        except UnicodeDecodeError as exc:
            raise LoadFailure(f"Unable to decode dotenv file {str(file)!r}: {exc}", file) from exc

        # Only trailing white space is removed, keeping line numbers intact
        text = text.rstrip()
        if not text:
            _log.debug("Dotenv file %s is empty", file)
            return {}

        try:
            env = parser.parse(text, self.constants)
        except parser.ParseFailure as exc:
            exc.filename = str(file)
            error = "".join(traceback.format_exception_only(exc)).rstrip()
            raise LoadFailure(f"Failed to parse dotenv file {str(file)!r}\n{error}", file) from exc
        _log.debug("Loaded %d variables from %s", len(env), file)
        return env


def require(path: str | os.PathLike[str],
            constants: Mapping[str, EnvValue] | None = None) -> dict[str, EnvValue]:
    """Load a dotenv file which must exist.

    Raises LoadFailure if the file is missing, unreadable or malformed.
    """
    return Loader(constants).require(path)


def include(path: str | os.PathLike[str],
            constants: Mapping[str, EnvValue] | None = None) -> dict[str, EnvValue] | None:
    """Load a dotenv file if it exists.

    Returns None if the file is missing or unreadable. Raises LoadFailure
    if the file is malformed.
    """
    return Loader(constants).include(path)
