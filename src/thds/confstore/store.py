"""A flat, dot-delimited key/value store for configuration, built by merging sources.

Sources are merged one at a time - JSON or TOML files, the process environment,
and defaults set from code. Nested objects are flattened on the way in, so
`{"svc": {"port": 8080}}` becomes the single key `svc.port`. Each merge can be
placed under a namespace (the destination prefix) and decides, key by key,
whether it may replace values that are already present (the override flag).

The typical lifecycle is to populate one Store at startup, on a single thread,
and only then hand it to everything that reads from it:

from thds.confstore import Store

store = Store()
store.set_default("port", 8080, section="svc")
store.load_file("app.json")  # cannot replace svc.port, since override is False
store.load_environment("SVC_", dest_prefix="env", override=True)

port = store.get_int("svc.port")

There is no global instance; if your application wants one, make it yourself, once.

Two families of accessors exist. The get_* accessors never fail: an absent or
mistyped key reads as "", 0, False, or [], which cannot be told apart from a
deliberately configured zero value. The as_* accessors raise MissingKeyError or
WrongTypeError instead. Use as_* for anything your program cannot sensibly run
without, and get_* for optional tuning knobs.
"""

import json
import os
import typing as ty
from functools import partial
from pathlib import Path

import toml

from . import dict_utils, env, values
from .log import getLogger
from .values import Value

StrOrPath = ty.Union[str, os.PathLike]
logger = getLogger(__name__)


def _reject_constant(name: str) -> ty.NoReturn:
    raise ValueError(f"{name} is not valid JSON")


_decode_json = partial(json.loads, parse_constant=_reject_constant)


class ConfigParseError(ValueError):
    def __init__(self, path: StrOrPath, reason: str):
        super().__init__(f"Could not parse config file {path}: {reason}")
        self.path = path
        self.reason = reason


class MissingKeyError(KeyError):
    pass


class MergeResult(ty.NamedTuple):
    added: int = 0
    replaced: int = 0
    skipped: int = 0
    # skipped means the key was already set and the merge was not allowed to override it.


class Store(ty.Mapping[str, Value]):
    """Not thread-safe for writes. Concurrent reads are fine once all merges are done."""

    def __init__(self) -> None:
        self._values: ty.Dict[str, Value] = dict()

    def __getitem__(self, key: str) -> Value:
        return self._values[key]

    def __iter__(self) -> ty.Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Store({len(self)} keys)"

    # merging

    def merge(self, nested: ty.Mapping[str, ty.Any], prefix: str = "", override: bool = False) -> MergeResult:
        """Flatten `nested` under `prefix` and fold its leaves into the store.

        Keys not yet present are always set. Keys already present are replaced only if
        `override` is True. Nothing is written if any leaf has an unsupported type.
        """
        leaves = list(dict_utils.flatten_items(values.normalize(nested), prefix))
        added = replaced = skipped = 0
        for key, value in leaves:
            if key not in self._values:
                added += 1
            elif override:
                replaced += 1
            else:
                skipped += 1
                continue
            self._values[key] = value
        return MergeResult(added, replaced, skipped)

    def _load_document(
        self,
        path: StrOrPath,
        decode: ty.Callable[[str], ty.Any],
        dest_prefix: str,
        override: bool,
    ) -> MergeResult:
        raw = Path(path).read_bytes()  # OSError propagates as-is
        try:
            document = decode(raw.decode("utf-8"))
        except ValueError as err:  # includes UnicodeDecodeError and both decoders' errors
            raise ConfigParseError(path, str(err)) from err
        if not isinstance(document, dict):
            raise ConfigParseError(
                path, f"top level must be an object, not {values.type_name(document)}"
            )

        try:
            result = self.merge(document, dest_prefix, override)
        except values.UnsupportedValueError as err:
            raise ConfigParseError(path, str(err)) from err
        logger.info("Loaded config file", path=os.fspath(path), prefix=dest_prefix)
        logger.debug("Merged config file", path=os.fspath(path), **result._asdict())
        return result

    def load_file(self, path: StrOrPath, dest_prefix: str = "", override: bool = False) -> MergeResult:
        """Merge a JSON file whose top level is an object.

        Raises OSError if the file can't be read and ConfigParseError if it isn't
        a JSON object. In both cases the store is left untouched.
        """
        return self._load_document(path, _decode_json, dest_prefix, override)

    def load_toml_file(self, path: StrOrPath, dest_prefix: str = "", override: bool = False) -> MergeResult:
        """Same contract as load_file, for TOML. Dates and times are stored as ISO strings.

        Parsed by the `toml` library, which implements TOML 0.5: arrays mixing element types
        (allowed since TOML 1.0) are rejected as a ConfigParseError.
        """
        return self._load_document(path, toml.loads, dest_prefix, override)

    def load_environment(
        self,
        source_prefix: str = "",
        dest_prefix: str = "",
        override: bool = False,
        environ: ty.Optional[env.EnvSource] = None,
    ) -> MergeResult:
        """Merge every environment variable whose name starts with source_prefix.

        The prefix is not stripped: FOO_A loaded with dest_prefix 'env' lands at 'env.FOO_A'.
        All values are strings. Never fails.
        """
        matched = env.matching_env(source_prefix, environ)
        result = self.merge(matched, dest_prefix, override)
        # never log values: environments hold secrets.
        logger.debug(
            "Merged environment", source_prefix=source_prefix, prefix=dest_prefix, **result._asdict()
        )
        return result

    def set_default(self, key: str, value: ty.Any, section: str = "", override: bool = False) -> MergeResult:
        """Merge a single value at `section.key` (or just `key`, without a section)."""
        return self.merge({key: value}, section, override)

    def set_defaults(
        self, defaults: ty.Mapping[str, ty.Any], section: str = "", override: bool = False
    ) -> MergeResult:
        return self.merge(defaults, section, override)

    def set_override(self, key: str, value: ty.Any, section: str = "") -> MergeResult:
        return self.set_default(key, value, section, override=True)

    # reading, degrading to zero values

    def get(self, key: str, default: ty.Any = None) -> ty.Any:
        """Exact match only - a namespace like 'svc' is absent even when 'svc.port' is set."""
        return self._values.get(key, default)

    def has_key(self, key: str) -> bool:
        return self._values.get(key) is not None

    def get_string(self, key: str) -> str:
        return values.render(self._values.get(key))

    def get_int(self, key: str) -> int:
        return values.to_int(self._values.get(key))

    def get_bool(self, key: str) -> bool:
        return values.to_bool(self._values.get(key))

    def get_string_array(self, key: str) -> ty.List[str]:
        return values.to_string_array(self._values.get(key))

    # reading, failing loudly

    def _require(self, key: str) -> Value:
        value = self._values.get(key)
        if value is None:
            raise MissingKeyError(key)
        return value

    def as_string(self, key: str) -> str:
        return values.strict_string(key, self._require(key))

    def as_int(self, key: str) -> int:
        return values.strict_int(key, self._require(key))

    def as_bool(self, key: str) -> bool:
        return values.strict_bool(key, self._require(key))

    def as_string_array(self, key: str) -> ty.List[str]:
        return values.strict_string_array(key, self._require(key))

    # introspection

    def keys_in(self, section: str) -> ty.List[str]:
        """Every key under the given namespace, in the order they were first set.

        An empty section is the top level, so every key is returned.
        """
        if not section:
            return list(self._values)
        namespace = section + dict_utils.DEFAULT_SEP
        return [k for k in self._values if k.startswith(namespace)]

    def to_dict(self) -> ty.Dict[str, Value]:
        return dict(self._values)

    def to_nested(self) -> ty.Dict[str, ty.Any]:
        """Raises ValueError if some key is both a leaf and a namespace, e.g. 'a' and 'a.b'."""
        return dict_utils.unflatten(self._values)


def read_from_file(path: StrOrPath) -> Store:
    """A new store holding just the given JSON file, at the top level."""
    store = Store()
    store.load_file(path)
    return store


def read_from_env(prefix: str = "") -> Store:
    """A new store holding the matching environment variables, at the top level."""
    store = Store()
    store.load_environment(prefix)
    return store
