"""Flattened, dot-delimited configuration merged from JSON/TOML files, the environment, and code."""

from . import dict_utils, env, log, values  # noqa: F401
from .store import (  # noqa: F401
    ConfigParseError,
    MergeResult,
    MissingKeyError,
    Store,
    read_from_env,
    read_from_file,
)
from .values import UnsupportedValueError, Value, WrongTypeError  # noqa: F401
