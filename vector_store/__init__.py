"""
Vector Store Module - ChromaDB storage, one collection per knowledge base

Quick Start:
    from vector_store import VectorStore, StoreConfig

    store = VectorStore(StoreConfig(persist_directory="data/chroma"))
    for info in store.list_collections():
        print(info.name, info.chunk_count)
"""

__version__ = "1.0.0"

from .models import (
    DISTANCE_METRIC,
    CollectionInfo,
    CollectionLookup,
    Found,
    KnowledgeBaseMetadata,
    NotFound,
    QueryHit,
    StoreConfig,
    StoredRecord,
    sanitize_name,
)
from .store import VectorStore, build_where

__all__ = [
    "__version__",
    "VectorStore",
    "build_where",
    "DISTANCE_METRIC",
    "CollectionInfo",
    "CollectionLookup",
    "Found",
    "KnowledgeBaseMetadata",
    "NotFound",
    "QueryHit",
    "StoreConfig",
    "StoredRecord",
    "sanitize_name",
]
