"""
Chunking Module - Structure-aware chunking for the knowledge-base memory

Splits document text into heading-aware, size-bounded chunks with overlap,
each carrying its heading path, offsets, line range and a token estimate.

Quick Start:
    from chunking import StructureAwareChunker, ChunkingConfig

    chunker = StructureAwareChunker(ChunkingConfig(chunk_size=2000, chunk_overlap=400))
    for chunk in chunker.chunk(text):
        print(chunk.heading_path, chunk.start_line, chunk.end_line)
"""

__version__ = "1.0.0"

from .chunker import StructureAwareChunker, chunk_text
from .headings import detect_headings, heading_paths
from .models import (
    CHARS_PER_TOKEN,
    Chunk,
    ChunkingConfig,
    ChunkKind,
    Heading,
    TextChunk,
    estimate_tokens,
    make_chunk_id,
)

__all__ = [
    "__version__",
    "StructureAwareChunker",
    "chunk_text",
    "detect_headings",
    "heading_paths",
    "CHARS_PER_TOKEN",
    "Chunk",
    "ChunkingConfig",
    "ChunkKind",
    "Heading",
    "TextChunk",
    "estimate_tokens",
    "make_chunk_id",
]
