"""
Ingestion Module - File discovery and the ingest pipeline

Quick Start:
    from ingestion import FileScanner, IngestionPipeline, ScanOptions

    result = FileScanner().scan("docs", ScanOptions())
    print(result.statistics.unsupported_by_extension)

    stats = IngestionPipeline(store, embedding_service).ingest("docs", "handbook")
"""

__version__ = "1.0.0"

from .classification import DOCUMENT_TYPES, detect_document_type, is_test_file
from .models import (
    IngestStats,
    ScannedFile,
    ScanOptions,
    ScanResult,
    ScanStatistics,
    SkippedFile,
)
from .pipeline import IngestionPipeline, new_ingestion_timestamp
from .readers import has_reader, read_document
from .scanner import FileScanner

__all__ = [
    "__version__",
    "DOCUMENT_TYPES",
    "detect_document_type",
    "is_test_file",
    "IngestStats",
    "ScannedFile",
    "ScanOptions",
    "ScanResult",
    "ScanStatistics",
    "SkippedFile",
    "IngestionPipeline",
    "new_ingestion_timestamp",
    "has_reader",
    "read_document",
    "FileScanner",
]
