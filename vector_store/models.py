"""
Data Models for the Vector Store Adapter

Defines:
1. StoreConfig - ChromaDB location, collection naming and batching
2. KnowledgeBaseMetadata - Knowledge-base identity kept on the collection
3. StoredRecord - One chunk record as stored (content + metadata [+ vector])
4. QueryHit - A nearest-neighbour candidate with distance/similarity
5. CollectionInfo - A knowledge-base collection as seen by list_collections()
6. Found / NotFound - Explicit result of a collection lookup

Design Principles:
- Pydantic v2 for validation (consistent with the chunking models)
- Chunk metadata is stored as flat scalar values (ChromaDB limitation):
  the heading path is JSON-encoded and None values are omitted
- One fixed metric (cosine) for every collection: similarity = 1 - distance
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from chromadb.api.models.Collection import Collection
from pydantic import BaseModel, Field

from chunking.models import Chunk
from common.config import SCHEMA_VERSION

DISTANCE_METRIC = "cosine"

# ChromaDB collection names are limited in length and character set
MAX_COLLECTION_NAME_LENGTH = 63
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


class StoreConfig(BaseModel):
    """Configuration for the vector store."""
    persist_directory: str = Field(
        "data/chroma",
        description="Directory for ChromaDB persistent storage",
    )
    collection_prefix: str = Field(
        "kb",
        description="Prefix of every knowledge-base collection name",
        pattern=r"^[a-zA-Z0-9][a-zA-Z0-9_-]*$",
    )
    schema_version: str = Field(
        SCHEMA_VERSION,
        description="Record schema version, part of the collection name",
    )
    batch_size: int = Field(
        500,
        description="Maximum records per ChromaDB write or page read",
        ge=1,
    )


def sanitize_name(name: str) -> str:
    """Replace every character outside [A-Za-z0-9_-] with '_'."""
    return _UNSAFE_CHARS.sub("_", name)


def version_tag(schema_version: str) -> str:
    return "v" + sanitize_name(schema_version.replace(".", "_"))


class KnowledgeBaseMetadata(BaseModel):
    """Knowledge-base identity stored as ChromaDB collection metadata."""
    knowledge_base_name: str
    root_path: str = ""
    file_count: int = 0
    created_at: str = ""
    last_ingestion: str = ""
    schema_version: str = SCHEMA_VERSION
    renamed_from: Optional[str] = None
    renamed_at: Optional[str] = None

    def to_chroma(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_chroma(cls, metadata: Optional[dict[str, Any]]) -> Optional["KnowledgeBaseMetadata"]:
        """Parse collection metadata; None if it carries no knowledge-base identity."""
        if not metadata or not metadata.get("knowledge_base_name"):
            return None
        fields = {k: v for k, v in metadata.items() if k in cls.model_fields}
        return cls(**fields)


class StoredRecord(BaseModel):
    """A chunk record as read back from a collection."""
    chunk_id: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: Optional[list[float]] = None


class QueryHit(BaseModel):
    """A single nearest-neighbour candidate from one collection."""
    chunk_id: str = Field(..., description="ID of the matching chunk")
    content: str = Field(..., description="Text content of the matching chunk")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Decoded chunk metadata",
    )
    distance: float = Field(
        ...,
        description="Cosine distance (0 = identical)",
    )
    similarity: float = Field(
        ...,
        description="1 - distance (1 = identical)",
    )


class CollectionInfo(BaseModel):
    name: str = Field(..., description="Knowledge-base display name")
    collection_name: str = Field(..., description="Underlying ChromaDB collection")
    metadata: KnowledgeBaseMetadata
    chunk_count: int = 0


@dataclass(frozen=True)
class Found:
    collection: Collection


@dataclass(frozen=True)
class NotFound:
    collection_name: str


CollectionLookup = Union[Found, NotFound]


def chunk_to_metadata(chunk: Chunk, knowledge_base_name: str) -> dict[str, Any]:
    """Flatten a Chunk into ChromaDB-compatible record metadata."""
    metadata: dict[str, Any] = {
        "knowledge_base_name": knowledge_base_name,
        "file_path": chunk.file_path,
        "relative_path": chunk.relative_path,
        "chunk_kind": chunk.kind.value,
        "heading_path": json.dumps(chunk.heading_path, ensure_ascii=False),
        "start_offset": chunk.start_offset,
        "end_offset": chunk.end_offset,
        "start_line": chunk.start_line,
        "end_line": chunk.end_line,
        "token_count": chunk.token_count,
        "has_context": chunk.has_context,
        "chunk_index": chunk.chunk_index,
        "is_test_file": chunk.is_test_file,
        "ingestion_timestamp": chunk.ingestion_timestamp,
    }
    if chunk.document_type is not None:
        metadata["document_type"] = chunk.document_type
    return metadata


def decode_metadata(metadata: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Inverse of chunk_to_metadata for the fields that need decoding."""
    decoded = dict(metadata or {})
    raw_path = decoded.get("heading_path")
    if isinstance(raw_path, str):
        try:
            decoded["heading_path"] = json.loads(raw_path)
        except json.JSONDecodeError:
            decoded["heading_path"] = [raw_path] if raw_path else []
    elif raw_path is None:
        decoded["heading_path"] = []
    return decoded


def encode_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Re-encode decoded metadata for writing back to ChromaDB."""
    encoded = {k: v for k, v in metadata.items() if v is not None}
    if isinstance(encoded.get("heading_path"), list):
        encoded["heading_path"] = json.dumps(encoded["heading_path"], ensure_ascii=False)
    return encoded
