"""Root conftest: shared settings and storage fixtures.

Invariants:
    - Every test gets a fresh storage root under tmp_path
    - DUST_* variables from the developer's shell never leak into tests
"""

import os

import pytest

from dustdb.config import Settings
from dustdb.infrastructure.pile_storage import PileStorage

for _name in list(os.environ):
    if _name.upper().startswith("DUST_"):
        del os.environ[_name]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        host="127.0.0.1",
        port=0,
        storage_root=tmp_path / "data",
        data_format="json",
        max_connections=8,
        max_line_bytes=4096,
        _env_file=None,
    )


@pytest.fixture
def storage(settings):
    return PileStorage.from_settings(settings)
