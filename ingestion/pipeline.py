"""
Ingestion Pipeline - scan -> read -> chunk -> embed -> store

Runs one full ingest of a directory into a knowledge base. Every ingest is a
full re-scan: all chunks of the run share one ingestion timestamp, and once
every write has succeeded the chunks of earlier runs are deleted.

Failure handling:
- Unsupported or unreadable files are skipped and reported in IngestStats
- Any other failure (embedding, store, metadata update) rolls back the
  records written under the new timestamp (dropping the collection if this
  run created it) and raises IngestionError, so the previous ingest stays
  the consistent state
- Stale chunks are removed last; if that fails the run still succeeds with
  a warning and both chunk sets remain until one is deleted

Usage:
    pipeline = IngestionPipeline(store, embedding_service)
    stats = pipeline.ingest("/path/to/docs", "handbook")
    print(stats.chunks_created, stats.stale_chunks_removed)
"""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from chunking import Chunk, StructureAwareChunker
from common.exceptions import IngestionError, StoreError, format_error_chain
from embedding import EmbeddingService
from vector_store import KnowledgeBaseMetadata, VectorStore

from .models import IngestStats, ScannedFile, ScanOptions, SkippedFile
from .readers import has_reader, read_document
from .scanner import FileScanner

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


def new_ingestion_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class IngestionPipeline:
    """
    Ingests a directory tree into one knowledge-base collection.
    """

    def __init__(
        self,
        store: VectorStore,
        embeddings: EmbeddingService,
        chunker: Optional[StructureAwareChunker] = None,
        scanner: Optional[FileScanner] = None,
        scan_options: Optional[ScanOptions] = None,
    ):
        self.store = store
        self.embeddings = embeddings
        self.chunker = chunker or StructureAwareChunker()
        self.scanner = scanner or FileScanner()
        self.scan_options = scan_options or ScanOptions()

    def ingest(
        self,
        root_path: str | Path,
        knowledge_base_name: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestStats:
        """
        Ingest a directory into a knowledge base.

        Args:
            root_path: Directory to ingest.
            knowledge_base_name: Target knowledge base (created if missing).
            progress_callback: Optional callback(current, total, status).

        Returns:
            IngestStats for the run.

        Raises:
            ScanError: If root_path is not a directory (nothing is written).
            IngestionError: If the run failed after writing started.
        """
        started = time.time()
        timestamp = new_ingestion_timestamp()
        scan = self.scanner.scan(root_path, self.scan_options)
        root = str(Path(root_path).expanduser().resolve())

        stats = IngestStats(
            knowledge_base_name=knowledge_base_name,
            root_path=root,
            ingestion_timestamp=timestamp,
            files_scanned=scan.statistics.total_files,
            supported_files=scan.statistics.supported_files,
            unsupported_files=scan.statistics.unsupported_files,
            unsupported_by_extension=dict(scan.statistics.unsupported_by_extension),
        )

        logger.info(
            "Ingesting %d supported files from %s into '%s'",
            stats.supported_files, root, knowledge_base_name,
        )

        _, created = self.store.ensure_collection(
            knowledge_base_name,
            KnowledgeBaseMetadata(
                knowledge_base_name=knowledge_base_name,
                root_path=root,
                created_at=timestamp,
            ),
        )

        try:
            self._ingest_files(
                FileScanner.supported_files(scan.files),
                knowledge_base_name,
                timestamp,
                stats,
                progress_callback,
            )
            self.store.update_metadata(
                knowledge_base_name,
                root_path=root,
                file_count=stats.files_chunked,
                last_ingestion=timestamp,
            )
        except Exception as e:
            self._rollback(knowledge_base_name, timestamp, created)
            raise IngestionError(knowledge_base_name, root, e) from e

        self._remove_stale(knowledge_base_name, timestamp, stats)

        stats.duration_seconds = round(time.time() - started, 2)
        logger.info(
            "Ingest of '%s' finished: %d files, %d chunks, %d stale removed in %.2fs",
            knowledge_base_name,
            stats.files_chunked,
            stats.chunks_created,
            stats.stale_chunks_removed,
            stats.duration_seconds,
        )
        return stats

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _ingest_files(
        self,
        files: list[ScannedFile],
        knowledge_base_name: str,
        timestamp: str,
        stats: IngestStats,
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        pending: list[Chunk] = []
        batch_size = self.store.config.batch_size

        for position, scanned in enumerate(files, start=1):
            if progress_callback:
                progress_callback(position, len(files), scanned.relative_path)

            chunks = self._chunk_file(scanned, timestamp, stats)
            if not chunks:
                continue

            stats.files_chunked += 1
            pending.extend(chunks)
            while len(pending) >= batch_size:
                self._store_batch(knowledge_base_name, pending[:batch_size], stats)
                pending = pending[batch_size:]

        if pending:
            self._store_batch(knowledge_base_name, pending, stats)

        if progress_callback:
            progress_callback(len(files), len(files), "Done")

    def _chunk_file(
        self,
        scanned: ScannedFile,
        timestamp: str,
        stats: IngestStats,
    ) -> list[Chunk]:
        if not has_reader(scanned.document_type):
            stats.skipped_files.append(SkippedFile(
                relative_path=scanned.relative_path,
                reason=f"No text reader for document type '{scanned.document_type}'",
            ))
            return []

        try:
            text = read_document(scanned.path, scanned.document_type)
        except (OSError, RuntimeError, ValueError) as e:
            logger.warning("Could not read %s, skipping: %s", scanned.relative_path, e)
            stats.skipped_files.append(SkippedFile(
                relative_path=scanned.relative_path,
                reason=f"Unreadable: {e}",
            ))
            return []

        chunks = [
            Chunk.from_text_chunk(
                text_chunk,
                file_path=scanned.path,
                ingestion_timestamp=timestamp,
                relative_path=scanned.relative_path,
                document_type=scanned.document_type,
                is_test_file=scanned.is_test_file,
            )
            for text_chunk in self.chunker.chunk(text)
            if text_chunk.content.strip()
        ]
        if not chunks:
            logger.debug("No text content in %s", scanned.relative_path)
            stats.skipped_files.append(SkippedFile(
                relative_path=scanned.relative_path,
                reason="No text content",
            ))
        return chunks

    def _store_batch(self, knowledge_base_name: str, chunks: list[Chunk], stats: IngestStats) -> None:
        vectors = self.embeddings.embed_batch([chunk.content for chunk in chunks])
        stats.chunks_created += self.store.upsert(knowledge_base_name, chunks, vectors)

    def _remove_stale(self, knowledge_base_name: str, timestamp: str, stats: IngestStats) -> None:
        try:
            stats.stale_chunks_removed = self.store.delete_by_filter(
                knowledge_base_name,
                {"ingestion_timestamp": {"$ne": timestamp}},
            )
        except StoreError as e:
            # The new chunk set is complete; older sets stay until deleted
            message = (
                f"Could not remove chunks of earlier ingests from '{knowledge_base_name}': "
                f"{e.message}"
            )
            logger.warning("%s\n%s", message, format_error_chain(e))
            stats.warnings.append(message)

    def _rollback(self, knowledge_base_name: str, timestamp: str, created: bool) -> None:
        try:
            if created:
                self.store.drop_collection(knowledge_base_name)
            else:
                self.store.delete_by_filter(
                    knowledge_base_name,
                    {"ingestion_timestamp": timestamp},
                )
        except Exception as e:
            logger.error(
                "Rollback of ingest %s for '%s' failed:\n%s",
                timestamp, knowledge_base_name, format_error_chain(e),
            )
        else:
            logger.info("Rolled back ingest %s for '%s'", timestamp, knowledge_base_name)
