"""Shared fixtures.  The API key must be set before any package import."""

import os

os.environ.setdefault("GOOGLE_API_KEY", "test-key")
os.environ.setdefault("ENV", "prod")

import pytest  # noqa: E402

from fakes import FakeEmbedder  # noqa: E402


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def store(tmp_path, embedder):
    from cityguide.src.database.vector_store import CityVectorStore

    return CityVectorStore(embedder, db_path=tmp_path / "lancedb", table_name="test_docs")
