"""Shared fixtures for the SealDrop test suite."""

import pytest

from sealdrop.core.service import SealService
from sealdrop.core.storage import BlobStore
from sealdrop.security.kdf import KdfParams


@pytest.fixture
def fast_kdf():
    """scrypt with a tiny cost factor; same code path, much faster."""
    return KdfParams(n=2**10, r=8, p=1)


@pytest.fixture
def store(tmp_path):
    """Return a BlobStore rooted in tmp_path."""
    return BlobStore(tmp_path / "storage")


@pytest.fixture
def service(store, fast_kdf):
    return SealService(store, fast_kdf)
