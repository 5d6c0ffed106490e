import pytest

from tests.shared import (
    FakeCatalogSource,
    FakeEmbeddingService,
    FakeVectorIndex,
    InMemoryReferenceStore,
    SequentialIds,
)


@pytest.fixture
def catalog_source():
    return FakeCatalogSource()


@pytest.fixture
def reference_store():
    return InMemoryReferenceStore()


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def vector_index():
    return FakeVectorIndex()


@pytest.fixture
def id_generator():
    return SequentialIds()
