"""
Ollama Embedder - Local embedding generation via the Ollama API

Wraps the Ollama Python client to turn texts into dense vectors. This is the
black-box "embed(text) -> vector" capability behind EmbeddingService.

Design:
- Thin wrapper around ollama.Client.embed() (ollama 0.4+)
- Batch embedding for efficient ingestion
- Health check to verify Ollama is running and the model is pulled
- No caching and no ChromaDB dependency: pure model access

Usage:
    from embedding import OllamaEmbedder

    embedder = OllamaEmbedder(model="nomic-embed-text")
    vectors = embedder.embed_batch(["first text", "second text"])
"""

import logging
from typing import Optional, Protocol, runtime_checkable

import ollama

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that turns a batch of texts into vectors of one fixed dimension."""

    @property
    def model(self) -> str:
        ...

    @property
    def dimensions(self) -> Optional[int]:
        ...

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        ...


def _is_connection_failure(error: Exception) -> bool:
    return "Connection" in type(error).__name__ or "refused" in str(error).lower()


class OllamaEmbedder:
    """
    Generates text embeddings using a local Ollama model.
    """

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
    ):
        """
        Initialize the embedder.

        Args:
            model: Ollama model name for embeddings.
            base_url: Ollama API base URL.
        """
        self._model = model
        self.base_url = base_url
        self._client = ollama.Client(host=base_url)
        self._dimensions: Optional[int] = None

    @property
    def model(self) -> str:
        return self._model

    @property
    def dimensions(self) -> Optional[int]:
        """Embedding dimensions (known after the first successful call)."""
        return self._dimensions

    def embed(self, text: str) -> list[float]:
        """
        Generate an embedding for a single text.

        Raises:
            ValueError: If the text is empty.
            ConnectionError: If Ollama is not reachable.
            RuntimeError: If embedding generation fails.
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings for multiple texts in one request.

        Args:
            texts: Non-empty texts to embed.

        Returns:
            One embedding vector per input text, in input order.

        Raises:
            ConnectionError: If Ollama is not reachable.
            RuntimeError: If embedding generation fails.
        """
        if not texts:
            return []

        try:
            response = self._client.embed(model=self._model, input=texts)
        except ollama.ResponseError as e:
            raise RuntimeError(
                f"Ollama embedding failed for model '{self._model}': {e}"
            ) from e
        except Exception as e:
            if _is_connection_failure(e):
                raise ConnectionError(
                    f"Cannot connect to Ollama at {self.base_url}. "
                    f"Is Ollama running? Start it with: ollama serve"
                ) from e
            raise RuntimeError(f"Embedding generation failed: {e}") from e

        embeddings = [list(vector) for vector in response["embeddings"]]
        if len(embeddings) != len(texts):
            raise RuntimeError(
                f"Ollama returned {len(embeddings)} embeddings for {len(texts)} texts"
            )
        if embeddings:
            self._dimensions = len(embeddings[0])
        return embeddings

    def health_check(self) -> dict[str, bool | str]:
        """
        Check if Ollama is running and the embedding model is available.

        Returns:
            Dict with 'healthy', 'ollama_running', 'model_available',
            'model' and 'error' (empty if healthy).
        """
        result: dict[str, bool | str] = {
            "healthy": False,
            "ollama_running": False,
            "model_available": False,
            "model": self._model,
            "error": "",
        }

        try:
            models = self._client.list()
        except Exception as e:
            result["error"] = f"Cannot connect to Ollama: {e}"
            return result

        result["ollama_running"] = True
        model_names = [m.model for m in models.models]
        # "nomic-embed-text" matches "nomic-embed-text:latest"
        result["model_available"] = any(name.startswith(self._model) for name in model_names)

        if result["model_available"]:
            result["healthy"] = True
        else:
            result["error"] = (
                f"Model '{self._model}' not found. "
                f"Available: {model_names}. "
                f"Pull it with: ollama pull {self._model}"
            )
        return result
