"""
Knowledge-Base Module - Lifecycle management of knowledge bases

Quick Start:
    from knowledgebase import KnowledgeBaseService

    service = KnowledgeBaseService(store)
    for kb in service.list():
        print(kb.name, kb.chunk_count)
"""

__version__ = "1.0.0"

from .models import (
    ChunkSetInfo,
    DeleteChunkSetResult,
    DeleteResult,
    KnowledgeBaseStats,
    KnowledgeBaseSummary,
    RenameResult,
    TypeCount,
)
from .service import KnowledgeBaseService

__all__ = [
    "__version__",
    "KnowledgeBaseService",
    "ChunkSetInfo",
    "DeleteChunkSetResult",
    "DeleteResult",
    "KnowledgeBaseStats",
    "KnowledgeBaseSummary",
    "RenameResult",
    "TypeCount",
]
