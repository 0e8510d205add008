import pytest

from shopscope.backends import MemoryBackend
from shopscope.store import CollectionStore


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> CollectionStore:
    return CollectionStore(backend)
