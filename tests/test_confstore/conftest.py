import tempfile
import typing as ty
import uuid
from pathlib import Path

import pytest

from thds.confstore import Store


@pytest.fixture
def temp_file() -> ty.Iterator[ty.Callable[..., Path]]:
    with tempfile.TemporaryDirectory() as tempdir:

        def make_temp_file(some_text: str, suffix: str = ".json") -> Path:
            p = Path(tempdir) / ("cfile-" + uuid.uuid4().hex + suffix)
            with open(p, "w", encoding="utf-8") as f:
                f.write(some_text)
            return p

        yield make_temp_file


@pytest.fixture
def store() -> Store:
    return Store()
