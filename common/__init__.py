"""
Common Module - Configuration, logging and errors shared by all components

Quick Start:
    from common import AppConfig, setup_logging

    config = AppConfig.from_env()
    setup_logging(config.log_level)
"""

__version__ = "1.0.0"

from .config import AppConfig
from .exceptions import (
    ChunkingError,
    CollectionNotFoundError,
    EmbeddingDimensionError,
    EmbeddingError,
    EmbeddingUnavailableError,
    IngestionError,
    KnowledgeBaseError,
    KnowledgeBaseExistsError,
    KnowledgeBaseMemoryError,
    KnowledgeBaseNotFoundError,
    ScanError,
    SearchError,
    StoreError,
    format_error_chain,
    is_not_found,
)
from .logging_config import get_logger, log_duration, setup_logging

__all__ = [
    "__version__",
    "AppConfig",
    "setup_logging",
    "get_logger",
    "log_duration",
    "KnowledgeBaseMemoryError",
    "ScanError",
    "ChunkingError",
    "EmbeddingError",
    "EmbeddingUnavailableError",
    "EmbeddingDimensionError",
    "StoreError",
    "CollectionNotFoundError",
    "KnowledgeBaseError",
    "KnowledgeBaseNotFoundError",
    "KnowledgeBaseExistsError",
    "SearchError",
    "IngestionError",
    "is_not_found",
    "format_error_chain",
]
