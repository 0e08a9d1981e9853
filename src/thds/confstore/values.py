"""The closed set of types a config value may take, and conversions between them.

Everything that enters a Store passes through `normalize`, so accessors only ever
have to handle str, float, bool, None, and lists of those (plus mappings that
live inside lists, which are leaves like any other list element).
"""

import datetime
import json
import math
import typing as ty

from typing_extensions import TypeAlias

Scalar: TypeAlias = ty.Union[str, float, bool, None]
Value: TypeAlias = ty.Union[Scalar, ty.List[ty.Any]]
# list elements are themselves Values; mypy cannot express the recursion here.

_DATETIME_TYPES = (datetime.datetime, datetime.date, datetime.time)


class UnsupportedValueError(TypeError):
    pass


class WrongTypeError(TypeError):
    def __init__(self, key: str, value: Value, wanted: str):
        super().__init__(f"Config key '{key}' should be {wanted}, got {type_name(value)}")
        self.key = key
        self.value = value
        self.wanted = wanted


def type_name(value: ty.Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, ty.Mapping):
        return "object"
    return type(value).__name__


def normalize(value: ty.Any) -> ty.Any:
    """Convert decoded or caller-provided input into the closed Value union.

    - all numbers become floats (booleans stay booleans)
    - tuples become lists
    - dates and times become ISO-8601 strings
    - mappings are walked, which only matters for mappings found inside lists

    Raises UnsupportedValueError for anything else.
    """
    if value is None or isinstance(value, (str, bool, float)):
        return value
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError as err:
            raise UnsupportedValueError(f"Number too large to store: {value}") from err
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    if isinstance(value, ty.Mapping):
        out = dict()
        for k, v in value.items():
            if not isinstance(k, str):
                raise UnsupportedValueError(f"Config keys must be strings, got {k!r}")
            out[k] = normalize(v)
        return out
    if isinstance(value, _DATETIME_TYPES):
        return value.isoformat()
    raise UnsupportedValueError(f"Cannot store a value of type {type(value).__name__}: {value!r}")


def _for_display(value: ty.Any) -> ty.Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, list):
        return [_for_display(v) for v in value]
    if isinstance(value, dict):
        return {k: _for_display(v) for k, v in value.items()}
    return value


def render(value: ty.Any) -> str:
    """The canonical string form of a value.

    Integral numbers render without a fractional part, so a JSON `123` comes back as "123".
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(_for_display(value))
    return json.dumps(_for_display(value))


def _is_number(value: ty.Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# degrading conversions. these never raise.


def to_int(value: ty.Any) -> int:
    if _is_number(value) and math.isfinite(value):
        return int(value)  # truncates toward zero
    return 0


def to_bool(value: ty.Any) -> bool:
    return value is True


def to_string_array(value: ty.Any) -> ty.List[str]:
    if isinstance(value, list):
        return [render(v) for v in value]
    return list()


# fallible conversions, for callers who would rather fail than run on a bad config.


def strict_string(key: str, value: Value) -> str:
    if isinstance(value, list):
        raise WrongTypeError(key, value, "a string")
    return render(value)


def strict_int(key: str, value: Value) -> int:
    if not _is_number(value):
        raise WrongTypeError(key, value, "an integer")
    assert isinstance(value, (int, float))
    if not math.isfinite(value) or not float(value).is_integer():
        raise WrongTypeError(key, value, "an integer")
    return int(value)


def strict_bool(key: str, value: Value) -> bool:
    if not isinstance(value, bool):
        raise WrongTypeError(key, value, "a boolean")
    return value


def strict_string_array(key: str, value: Value) -> ty.List[str]:
    if not isinstance(value, list):
        raise WrongTypeError(key, value, "an array")
    return to_string_array(value)
