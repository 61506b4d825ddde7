"""Parse dotenv files into ordered mappings of typed values."""

from .loader import include, Loader, LoadFailure, require
from .parser import parse, ParseFailure
from .values import EnvValue

__all__ = "EnvValue", "LoadFailure", "Loader", "ParseFailure", "include", "parse", "require"
