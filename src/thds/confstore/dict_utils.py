import typing as ty

DEFAULT_SEP = "."


def join_key(parent_key: str, key: str, sep: str = DEFAULT_SEP) -> str:
    return parent_key + sep + key if parent_key else key


def flatten_items(
    d: ty.Mapping, parent_key: str = "", sep: str = DEFAULT_SEP
) -> ty.Iterator[ty.Tuple[str, ty.Any]]:
    """
    flattens a mapping (usually a dict) using a separator, yielding the flattened keys and leaf values.

    Empty nested mappings produce nothing. Mappings inside lists are leaves and are not flattened.

    Example
    ---------

    d = {"a": {"b": {"c": 1}}, "d": [{"e": 2}]}
    print(dict(flatten_items(d, "ns")))
    > {"ns.a.b.c": 1, "ns.d": [{"e": 2}]}
    """
    for k, v in d.items():
        new_key = join_key(parent_key, k, sep)
        if isinstance(v, ty.Mapping):
            yield from flatten_items(v, new_key, sep=sep)
        else:
            yield new_key, v


def flatten(d: ty.Mapping, parent_key: str = "", sep: str = DEFAULT_SEP) -> ty.Dict[str, ty.Any]:
    return dict(flatten_items(d, parent_key, sep))


def unflatten(flat_d: ty.Mapping[str, ty.Any], sep: str = DEFAULT_SEP) -> ty.Dict[str, ty.Any]:
    """Given a flattened mapping returns the nested representation.

    A flat mapping can hold both 'a' and 'a.b'. That has no nested form, so it raises ValueError.
    """
    nested: ty.Dict[str, ty.Any] = dict()
    for path, val in flat_d.items():
        ref = nested
        path_parts = path.split(sep)
        for i, p in enumerate(path_parts[:-1]):
            ref = ref.setdefault(p, dict())
            if not isinstance(ref, dict):
                leaf = sep.join(path_parts[: i + 1])
                raise ValueError(f"'{path}' is nested under '{leaf}', which is a leaf")
        if isinstance(ref.get(path_parts[-1]), dict):
            raise ValueError(f"'{path}' is a leaf but also has keys nested under it")
        ref[path_parts[-1]] = val
    return nested
