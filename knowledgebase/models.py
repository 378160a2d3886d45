"""
Data Models for knowledge-base lifecycle operations

Serialized with camelCase keys for the HTTP API and the tool surface.
"""

from pydantic import Field

from common.models import ApiModel


class KnowledgeBaseSummary(ApiModel):
    """One entry of list()."""
    name: str
    path: str = Field("", description="Root path of the last ingest")
    chunk_count: int = 0
    file_count: int = 0
    created_at: str = ""
    last_ingestion: str = ""
    schema_version: str = ""


class TypeCount(ApiModel):
    type: str
    count: int


class ChunkSetInfo(ApiModel):
    """Chunks sharing one ingestion timestamp."""
    ingestion_timestamp: str
    chunk_count: int


class KnowledgeBaseStats(ApiModel):
    """Result of stats(): a full scan over a knowledge base's chunk records."""
    name: str
    path: str = ""
    chunk_count: int = 0
    file_count: int = 0
    created_at: str = ""
    last_ingestion: str = ""
    schema_version: str = ""
    chunk_types: list[TypeCount] = Field(default_factory=list)
    document_types: list[TypeCount] = Field(default_factory=list)
    chunk_sets: list[ChunkSetInfo] = Field(default_factory=list)
    size_bytes: int = Field(0, description="Total UTF-8 size of all chunk contents")
    renamed_from: str | None = None


class RenameResult(ApiModel):
    old_name: str
    new_name: str
    chunks_copied: int = 0
    old_collection_dropped: bool = True
    warnings: list[str] = Field(default_factory=list)


class DeleteResult(ApiModel):
    name: str
    deleted: bool = True


class DeleteChunkSetResult(ApiModel):
    name: str
    ingestion_timestamp: str
    deleted_count: int = 0
