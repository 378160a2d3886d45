"""
Pytest fixtures for the knowledge-base memory tests.
"""

import math
import re
import uuid
from pathlib import Path

import chromadb
import pytest

from common.config import AppConfig
from embedding import EmbeddingService
from server.wiring import build_services
from vector_store import StoreConfig, VectorStore

FAKE_DIMENSIONS = 256

_WORD = re.compile(r"\w+")


class FakeEmbedder:
    """
    Deterministic bag-of-words embedder.

    Every distinct word gets its own dimension (index 0 is a small bias so no
    vector is all zeros). Texts sharing words get similar vectors, so ranking
    behaves like a real model in small tests without Ollama running.
    """

    def __init__(self, dimensions: int = FAKE_DIMENSIONS):
        self._dimensions = dimensions
        self._vocabulary: dict[str, int] = {}
        self.calls: list[list[str]] = []

    @property
    def model(self) -> str:
        return "fake-embed"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def vector(self, text: str) -> list[float]:
        values = [0.0] * self._dimensions
        values[0] = 0.01
        for word in _WORD.findall(text.lower()):
            if word not in self._vocabulary:
                self._vocabulary[word] = 1 + len(self._vocabulary) % (self._dimensions - 1)
            values[self._vocabulary[word]] += 1.0
        norm = math.sqrt(sum(v * v for v in values))
        return [v / norm for v in values]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vector(text) for text in texts]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def chroma_client():
    """In-memory ChromaDB client (state is shared per process)."""
    return chromadb.EphemeralClient()


@pytest.fixture
def collection_prefix() -> str:
    """Unique collection prefix so tests never see each other's collections."""
    return f"t{uuid.uuid4().hex[:8]}"


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def store(chroma_client, collection_prefix) -> VectorStore:
    config = StoreConfig(collection_prefix=collection_prefix, batch_size=3)
    return VectorStore(config, chroma_client=chroma_client)


@pytest.fixture
def embedding_service(fake_embedder) -> EmbeddingService:
    return EmbeddingService(fake_embedder, batch_size=4)


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        data_dir=str(tmp_path / "data"),
        persist_directory=str(tmp_path / "data" / "chroma"),
        chunk_size=200,
        chunk_overlap=20,
        store_batch_size=5,
    )


@pytest.fixture
def services(app_config, chroma_client, collection_prefix, fake_embedder):
    """All services wired together over an in-memory store."""
    return build_services(
        app_config,
        chroma_client=chroma_client,
        provider=fake_embedder,
        collection_prefix=collection_prefix,
    )


@pytest.fixture
def docs_dir(tmp_path) -> Path:
    """A small document tree with supported and unsupported files."""
    root = tmp_path / "docs"
    (root / "guide").mkdir(parents=True)
    (root / "guide" / "deploy.md").write_text(
        "# Deployment\n\n"
        "Run the release script to deploy the service.\n\n"
        "## Rollback\n\n"
        "Use the rollback command to restore the previous release.\n",
        encoding="utf-8",
    )
    (root / "notes.txt").write_text(
        "Refunds are processed within five business days.\n",
        encoding="utf-8",
    )
    (root / "data.xyz").write_text("binary-ish", encoding="utf-8")
    return root
