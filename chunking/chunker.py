"""
Structure-Aware Chunker - Core chunking logic for the ingest pipeline

Converts the text of one supported file into an ordered list of chunks with
heading provenance.

Algorithm:
1. Detect headings over the full text (markdown, underlined, ALL CAPS,
   numbered sections, Chapter/Section markers).
2. If headings exist, cut the text at heading offsets into spans. Each span
   carries the heading path active at its heading. Text before the first
   heading forms a span with an empty path.
3. Spans (or the whole text, when no heading was found) that exceed the
   target size are split recursively on paragraph, line, sentence, clause
   and word boundaries, with a raw character cut as the last resort.
4. Every chunk except the first is prefixed with the trailing `chunk_overlap`
   characters of the previous chunk.

The chunker is a pure function of (text, config): the same input always
produces the same boundaries and heading paths.

Usage:
    from chunking import StructureAwareChunker, ChunkingConfig

    chunker = StructureAwareChunker(ChunkingConfig(chunk_size=1000, chunk_overlap=200))
    chunks = chunker.chunk(text)
"""

import bisect
import logging
from typing import Optional

from common.exceptions import ChunkingError

from .headings import detect_headings, heading_paths
from .models import ChunkingConfig, ChunkKind, TextChunk, estimate_tokens
from .splitter import Piece, split_span

logger = logging.getLogger(__name__)


class StructureAwareChunker:
    """
    Splits text into heading-aware, size-bounded chunks with overlap.
    """

    def __init__(
        self,
        config: Optional[ChunkingConfig] = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ):
        """
        Initialize the chunker.

        Args:
            config: Chunking configuration. Uses defaults if not provided.
            chunk_size: Overrides config.chunk_size.
            chunk_overlap: Overrides config.chunk_overlap.

        Raises:
            ChunkingError: If the resulting configuration is invalid.
        """
        base = config or ChunkingConfig()
        if chunk_size is None and chunk_overlap is None:
            self.config = base
            return

        try:
            self.config = ChunkingConfig(
                chunk_size=base.chunk_size if chunk_size is None else chunk_size,
                chunk_overlap=base.chunk_overlap if chunk_overlap is None else chunk_overlap,
            )
        except ValueError as e:
            raise ChunkingError("Invalid chunking configuration", str(e)) from e

    def chunk(self, text: str) -> list[TextChunk]:
        """
        Chunk a text.

        Args:
            text: Full text of one document.

        Returns:
            Ordered chunks. Empty or whitespace-only text yields no chunks.
        """
        if not text or not text.strip():
            return []

        spans = self._build_spans(text)
        line_starts = self._line_starts(text)
        size = self.config.chunk_size

        # (piece, kind, heading_path)
        raw: list[tuple[Piece, ChunkKind, list[str]]] = []
        for start, end, path, from_heading in spans:
            if from_heading and end - start <= size:
                raw.append((Piece(start, end), ChunkKind.SECTION, path))
                continue
            for piece in split_span(text, start, end, size):
                kind = ChunkKind.FRAGMENT if piece.character_split else ChunkKind.PARAGRAPH
                raw.append((piece, kind, path))

        return self._assemble(text, raw, line_starts)

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _build_spans(self, text: str) -> list[tuple[int, int, list[str], bool]]:
        """Cut the text at heading offsets into (start, end, path, from_heading)."""
        headings = detect_headings(text)
        if not headings:
            logger.debug("No headings detected, using recursive split")
            return [(0, len(text), [], False)]

        spans: list[tuple[int, int, list[str], bool]] = []
        if text[:headings[0].offset].strip():
            spans.append((0, headings[0].offset, [], False))

        paths = heading_paths(headings)
        for i, heading in enumerate(headings):
            end = headings[i + 1].offset if i + 1 < len(headings) else len(text)
            spans.append((heading.offset, end, paths[i], True))

        return spans

    @staticmethod
    def _line_starts(text: str) -> list[int]:
        starts = [0]
        position = text.find("\n")
        while position != -1:
            starts.append(position + 1)
            position = text.find("\n", position + 1)
        return starts

    def _assemble(
        self,
        text: str,
        raw: list[tuple[Piece, ChunkKind, list[str]]],
        line_starts: list[int],
    ) -> list[TextChunk]:
        overlap = self.config.chunk_overlap
        chunks: list[TextChunk] = []
        previous_content = ""

        for index, (piece, kind, path) in enumerate(raw):
            core = text[piece.start:piece.end]
            prefix = previous_content[-overlap:] if overlap and previous_content else ""
            content = prefix + core

            chunks.append(TextChunk(
                index=index,
                content=content,
                overlap_length=len(prefix),
                kind=kind,
                heading_path=list(path),
                start_offset=piece.start,
                end_offset=piece.end,
                start_line=bisect.bisect_right(line_starts, piece.start),
                end_line=bisect.bisect_right(line_starts, max(piece.end - 1, piece.start)),
                token_count=estimate_tokens(content),
                has_context=not piece.character_split,
            ))
            previous_content = content

        return chunks


def chunk_text(text: str, config: Optional[ChunkingConfig] = None) -> list[TextChunk]:
    """Chunk a text with the given (or default) configuration."""
    return StructureAwareChunker(config).chunk(text)
