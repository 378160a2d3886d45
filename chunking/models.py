"""
Data Models for the Chunking Pipeline

Defines:
1. ChunkingConfig - Target chunk size and overlap (in characters)
2. ChunkKind - How a chunk was produced (section / paragraph / fragment)
3. Heading - A detected heading with nesting level and offset
4. TextChunk - Output of the pure chunker (text + provenance)
5. Chunk - A TextChunk bound to its source file and ingestion run,
   ready for embedding and storage

Design Principles:
- Pydantic v2 for validation and serialization (consistent with vector_store)
- Chunks are immutable once created (frozen models)
- Chunk identity is derived from (file path, ingestion timestamp, ordinal),
  so a re-ingest produces fresh IDs instead of patching old records

Usage:
    config = ChunkingConfig(chunk_size=2000, chunk_overlap=400)
    text_chunks = chunk_text(text, config)
"""

import hashlib
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Average characters per token used for token estimates.
CHARS_PER_TOKEN = 4


class ChunkingConfig(BaseModel):
    """
    Configuration for the structure-aware chunker.

    Sizes are measured in characters, not tokens.
    """
    chunk_size: int = Field(
        2000,
        description="Target maximum characters per chunk (excluding overlap)",
        ge=1,
    )
    chunk_overlap: int = Field(
        400,
        description="Trailing characters of the previous chunk prefixed to the next",
        ge=0,
    )

    def model_post_init(self, __context: Any) -> None:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )


class ChunkKind(str, Enum):
    """How a chunk was cut out of its source text."""
    SECTION = "section"
    PARAGRAPH = "paragraph"
    FRAGMENT = "fragment"


class Heading(BaseModel):
    """A heading detected in the source text."""
    model_config = ConfigDict(frozen=True)

    title: str
    level: int = Field(..., ge=1, le=6)
    offset: int = Field(..., ge=0, description="Character offset of the heading line")
    line: int = Field(..., ge=1, description="1-based line number of the heading")


class TextChunk(BaseModel):
    """
    A chunk produced by the pure chunker.

    ``content`` includes the overlap prefix taken from the previous chunk;
    ``core_content`` is the chunk's own span of the source text.
    """
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Ordinal of the chunk within its text")
    content: str = Field(..., description="Chunk text including overlap prefix")
    overlap_length: int = Field(
        0,
        ge=0,
        description="Number of leading characters copied from the previous chunk",
    )
    kind: ChunkKind
    heading_path: list[str] = Field(
        default_factory=list,
        description="Titles of the enclosing headings, outermost first",
    )
    start_offset: int = Field(..., ge=0)
    end_offset: int = Field(..., ge=0, description="Exclusive end offset of core content")
    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)
    token_count: int = Field(..., ge=0)
    has_context: bool = Field(
        True,
        description="False when the chunk boundary was a raw character cut",
    )

    @property
    def core_content(self) -> str:
        return self.content[self.overlap_length:]


def estimate_tokens(text: str) -> int:
    """Estimate the token count of a text from its character length."""
    if not text:
        return 0
    return -(-len(text) // CHARS_PER_TOKEN)


def make_chunk_id(file_path: str, ingestion_timestamp: str, index: int) -> str:
    """Deterministic chunk ID for (file path, ingestion timestamp, ordinal)."""
    key = f"{file_path}\x00{ingestion_timestamp}\x00{index}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]


class Chunk(BaseModel):
    """
    A chunk bound to its source file and ingestion run.

    This is the unit that gets embedded and stored in a knowledge-base
    collection.
    """
    model_config = ConfigDict(frozen=True)

    chunk_id: str
    content: str = Field(..., min_length=1)
    kind: ChunkKind
    heading_path: list[str] = Field(default_factory=list)
    start_offset: int = 0
    end_offset: int = 0
    start_line: int = 1
    end_line: int = 1
    token_count: int = 0
    has_context: bool = True
    chunk_index: int = 0
    file_path: str = Field(..., description="Absolute path of the source file")
    relative_path: str = ""
    document_type: Optional[str] = None
    is_test_file: bool = False
    ingestion_timestamp: str

    @classmethod
    def from_text_chunk(
        cls,
        text_chunk: TextChunk,
        file_path: str,
        ingestion_timestamp: str,
        relative_path: str = "",
        document_type: Optional[str] = None,
        is_test_file: bool = False,
    ) -> "Chunk":
        return cls(
            chunk_id=make_chunk_id(file_path, ingestion_timestamp, text_chunk.index),
            content=text_chunk.content,
            kind=text_chunk.kind,
            heading_path=list(text_chunk.heading_path),
            start_offset=text_chunk.start_offset,
            end_offset=text_chunk.end_offset,
            start_line=text_chunk.start_line,
            end_line=text_chunk.end_line,
            token_count=text_chunk.token_count,
            has_context=text_chunk.has_context,
            chunk_index=text_chunk.index,
            file_path=file_path,
            relative_path=relative_path,
            document_type=document_type,
            is_test_file=is_test_file,
            ingestion_timestamp=ingestion_timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
