"""
Embedding Module - Cached text embeddings via a local Ollama model

Quick Start:
    from embedding import EmbeddingCache, EmbeddingService, OllamaEmbedder

    service = EmbeddingService(OllamaEmbedder("nomic-embed-text"), EmbeddingCache())
    vectors = service.embed_batch(["Text 1", "Text 2"])
"""

__version__ = "1.0.0"

from .cache import EmbeddingCache, content_hash
from .embedder import EmbeddingProvider, OllamaEmbedder
from .service import EmbeddingService

__all__ = [
    "__version__",
    "EmbeddingCache",
    "EmbeddingProvider",
    "EmbeddingService",
    "OllamaEmbedder",
    "content_hash",
]
