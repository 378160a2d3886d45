"""
Data Models for File Scanning and Ingestion

Defines:
1. ScanOptions - Options for the recursive directory scan
2. ScannedFile - One file found by the scanner, with its classification
3. ScanStatistics - Counters collected while scanning
4. ScanResult - Files plus statistics
5. SkippedFile - A supported file that could not be turned into chunks
6. IngestStats - Summary of one ingest run
"""

from typing import Optional

from pydantic import BaseModel, Field

from common.models import ApiModel


DEFAULT_MAX_FILE_SIZE = 1024 * 1024


class ScanOptions(BaseModel):
    """Options for FileScanner.scan()."""
    respect_ignore_file: bool = Field(
        True,
        description="Apply .gitignore patterns found at the scan root",
    )
    skip_hidden: bool = Field(
        True,
        description="Skip files and directories whose name starts with '.'",
    )
    max_file_size: int = Field(
        DEFAULT_MAX_FILE_SIZE,
        description="Files larger than this many bytes are skipped",
        ge=0,
    )


class ScannedFile(BaseModel):
    """A file discovered during a scan."""
    path: str = Field(..., description="Absolute file path")
    relative_path: str = Field(..., description="Path relative to the scan root, '/'-separated")
    extension: str = Field("", description="Lower-cased extension including the dot")
    supported: bool = False
    document_type: Optional[str] = None
    is_test_file: bool = False
    size_bytes: int = 0


class ScanStatistics(ApiModel):
    """Counters collected during a scan."""
    total_files: int = 0
    supported_files: int = 0
    unsupported_files: int = 0
    unsupported_by_extension: dict[str, int] = Field(default_factory=dict)
    skipped_hidden: int = 0
    skipped_by_ignore_file: int = 0
    skipped_too_large: int = 0
    unreadable_directories: int = 0


class ScanResult(BaseModel):
    files: list[ScannedFile] = Field(default_factory=list)
    statistics: ScanStatistics = Field(default_factory=ScanStatistics)


class SkippedFile(ApiModel):
    relative_path: str
    reason: str


class IngestStats(ApiModel):
    """Statistics from one ingest run."""
    knowledge_base_name: str
    root_path: str
    ingestion_timestamp: str
    files_scanned: int = 0
    supported_files: int = 0
    unsupported_files: int = 0
    unsupported_by_extension: dict[str, int] = Field(default_factory=dict)
    files_chunked: int = 0
    skipped_files: list[SkippedFile] = Field(default_factory=list)
    chunks_created: int = 0
    stale_chunks_removed: int = 0
    warnings: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0
