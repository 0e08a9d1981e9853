"""Reading the process environment as a source of configuration."""

import os
import typing as ty

EnvSource = ty.Union[ty.Mapping[str, str], ty.Iterable[str]]
# either a mapping like os.environ, or raw 'NAME=VALUE' strings.


def split_entry(entry: str) -> ty.Tuple[str, str]:
    """Only the first '=' separates; values may contain more of them.
    An entry without any '=' is a name with an empty value.
    """
    name, _, value = entry.partition("=")
    return name, value


def _pairs(environ: EnvSource) -> ty.Iterator[ty.Tuple[str, str]]:
    if isinstance(environ, ty.Mapping):
        yield from environ.items()
    else:
        yield from map(split_entry, environ)


def matching_env(source_prefix: str = "", environ: ty.Optional[EnvSource] = None) -> ty.Dict[str, str]:
    """All variables whose name starts with source_prefix, names left as they are.

    An empty prefix matches everything. Defaults to the current process environment.
    """
    return {
        name: value
        for name, value in _pairs(os.environ if environ is None else environ)
        if name.startswith(source_prefix)
    }
