"""
Process wiring: builds every component from one AppConfig.

The HTTP app, the MCP server and the CLI all obtain their services here, so
they share one vector store client, one embedding cache and one search cache.
"""

from dataclasses import dataclass
from typing import Optional

import chromadb

from chunking import StructureAwareChunker
from common.config import AppConfig
from embedding import EmbeddingCache, EmbeddingProvider, EmbeddingService, OllamaEmbedder
from ingestion import IngestionPipeline, ScanOptions
from knowledgebase import KnowledgeBaseService
from search import SearchCache, SearchService
from vector_store import StoreConfig, VectorStore


@dataclass
class Services:
    config: AppConfig
    store: VectorStore
    provider: EmbeddingProvider
    embeddings: EmbeddingService
    pipeline: IngestionPipeline
    search: SearchService
    knowledge_bases: KnowledgeBaseService


def store_config(config: AppConfig) -> StoreConfig:
    return StoreConfig(
        persist_directory=config.persist_directory,
        batch_size=config.store_batch_size,
    )


def scan_options(config: AppConfig) -> ScanOptions:
    return ScanOptions(
        respect_ignore_file=config.respect_ignore_file,
        skip_hidden=config.skip_hidden,
        max_file_size=config.max_file_size,
    )


def build_services(
    config: Optional[AppConfig] = None,
    chroma_client: Optional[chromadb.ClientAPI] = None,
    provider: Optional[EmbeddingProvider] = None,
    collection_prefix: Optional[str] = None,
) -> Services:
    """
    Build all services.

    Args:
        config: Application configuration. Read from the environment if not provided.
        chroma_client: Optional pre-created ChromaDB client (for testing).
        provider: Optional embedding provider. An OllamaEmbedder is created
                  if not provided.
        collection_prefix: Optional collection name prefix (for testing).
    """
    config = config or AppConfig.from_env()

    store_cfg = store_config(config)
    if collection_prefix:
        store_cfg = store_cfg.model_copy(update={"collection_prefix": collection_prefix})
    store = VectorStore(store_cfg, chroma_client=chroma_client)

    provider = provider or OllamaEmbedder(
        model=config.embedding_model,
        base_url=config.ollama_base_url,
    )
    embeddings = EmbeddingService(
        provider,
        EmbeddingCache(max_entries=config.embedding_cache_size),
        batch_size=config.embedding_batch_size,
        expected_dimension=config.embedding_dimension,
    )

    pipeline = IngestionPipeline(
        store,
        embeddings,
        chunker=StructureAwareChunker(
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
        ),
        scan_options=scan_options(config),
    )
    search = SearchService(
        store,
        embeddings,
        SearchCache(ttl_seconds=config.search_cache_ttl_seconds),
        default_max_results=config.default_max_results,
        timeout_seconds=config.search_timeout_seconds,
        max_workers=config.search_max_workers,
    )
    knowledge_bases = KnowledgeBaseService(store, on_change=search.clear_cache)

    return Services(
        config=config,
        store=store,
        provider=provider,
        embeddings=embeddings,
        pipeline=pipeline,
        search=search,
        knowledge_bases=knowledge_bases,
    )
