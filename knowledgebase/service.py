"""
Knowledge-Base Service - list, stats, create, rename, delete, delete chunk set

All operations act on the vector store's per-knowledge-base collections.
Callers must not run a lifecycle operation concurrently with an ingest or
delete of the same knowledge base; operations on different knowledge bases
are independent.

Rename protocol:
1. Read every record (content, metadata, vector) from the old collection
2. Create the new collection with the carried-over identity metadata
3. Bulk-insert the records with their knowledge-base name rewritten
   - on failure the new collection is dropped and the error raised;
     the old collection is untouched
4. Drop the old collection, retrying `drop_attempts` times
   - if it still fails, the rename stands and a warning is returned

Usage:
    service = KnowledgeBaseService(store)
    result = service.rename("docs", "handbook")
    print(service.stats("handbook").chunk_count)
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Callable, Optional

from common.exceptions import (
    KnowledgeBaseError,
    KnowledgeBaseExistsError,
    KnowledgeBaseNotFoundError,
    StoreError,
    format_error_chain,
)
from vector_store import KnowledgeBaseMetadata, VectorStore

from .models import (
    ChunkSetInfo,
    DeleteChunkSetResult,
    DeleteResult,
    KnowledgeBaseStats,
    KnowledgeBaseSummary,
    RenameResult,
    TypeCount,
)

logger = logging.getLogger(__name__)


def _type_counts(counter: Counter) -> list[TypeCount]:
    return [TypeCount(type=key, count=count) for key, count in sorted(counter.items())]


class KnowledgeBaseService:
    """
    Lifecycle manager for knowledge bases.
    """

    def __init__(
        self,
        store: VectorStore,
        on_change: Optional[Callable[[], None]] = None,
        drop_attempts: int = 2,
    ):
        """
        Initialize the service.

        Args:
            store: Vector store holding the knowledge-base collections.
            on_change: Called after rename, delete and delete_chunk_set
                       (e.g. to clear the search cache).
            drop_attempts: Attempts to drop the old collection during rename.
        """
        self.store = store
        self.on_change = on_change
        self.drop_attempts = max(1, drop_attempts)

    def list(self) -> list[KnowledgeBaseSummary]:
        """List every knowledge base with chunk and file counts."""
        return [
            KnowledgeBaseSummary(
                name=info.name,
                path=info.metadata.root_path,
                chunk_count=info.chunk_count,
                file_count=info.metadata.file_count,
                created_at=info.metadata.created_at,
                last_ingestion=info.metadata.last_ingestion,
                schema_version=info.metadata.schema_version,
            )
            for info in self.store.list_collections()
        ]

    def stats(self, name: str) -> KnowledgeBaseStats:
        """
        Compute statistics over every chunk record of a knowledge base.

        Raises:
            KnowledgeBaseNotFoundError: If the knowledge base does not exist.
        """
        self._require(name, "stats")
        metadata = self.store.get_metadata(name)
        records = self.store.get_all(name)

        chunk_kinds: Counter = Counter()
        document_types: Counter = Counter()
        chunk_sets: Counter = Counter()
        files: set[str] = set()
        size_bytes = 0

        for record in records:
            meta = record.metadata
            chunk_kinds[meta.get("chunk_kind", "unknown")] += 1
            document_types[meta.get("document_type") or "unknown"] += 1
            chunk_sets[meta.get("ingestion_timestamp", "")] += 1
            if meta.get("file_path"):
                files.add(meta["file_path"])
            size_bytes += len(record.content.encode("utf-8"))

        return KnowledgeBaseStats(
            name=name,
            path=metadata.root_path,
            chunk_count=len(records),
            file_count=len(files),
            created_at=metadata.created_at,
            last_ingestion=metadata.last_ingestion,
            schema_version=metadata.schema_version,
            chunk_types=_type_counts(chunk_kinds),
            document_types=_type_counts(document_types),
            chunk_sets=[
                ChunkSetInfo(ingestion_timestamp=timestamp, chunk_count=count)
                for timestamp, count in sorted(chunk_sets.items())
            ],
            size_bytes=size_bytes,
            renamed_from=metadata.renamed_from,
        )

    def create(self, name: str, root_path: str = "") -> KnowledgeBaseSummary:
        """
        Create an empty knowledge base.

        Raises:
            KnowledgeBaseExistsError: If the knowledge base already exists.
        """
        if self.store.exists(name):
            raise KnowledgeBaseExistsError(name, "create")
        now = datetime.now(timezone.utc).isoformat()
        self.store.ensure_collection(
            name,
            KnowledgeBaseMetadata(knowledge_base_name=name, root_path=root_path, created_at=now),
        )
        logger.info("Created empty knowledge base '%s'", name)
        self._changed()
        return KnowledgeBaseSummary(name=name, path=root_path, created_at=now)

    def rename(self, old_name: str, new_name: str) -> RenameResult:
        """
        Rename a knowledge base by copying it into a new collection.

        Raises:
            KnowledgeBaseNotFoundError: If old_name does not exist.
            KnowledgeBaseExistsError: If new_name already exists.
            KnowledgeBaseError: If copying into the new collection failed.
        """
        self._require(old_name, "rename")
        if self.store.exists(new_name):
            raise KnowledgeBaseExistsError(new_name, "rename")

        records = self.store.get_all(old_name, include_embeddings=True)
        if not records:
            logger.warning("Knowledge base '%s' has no chunks to copy", old_name)

        old_metadata = self.store.get_metadata(old_name)
        new_metadata = old_metadata.model_copy(update={
            "knowledge_base_name": new_name,
            "renamed_from": old_name,
            "renamed_at": datetime.now(timezone.utc).isoformat(),
        })

        self.store.ensure_collection(new_name, new_metadata)
        try:
            for record in records:
                record.metadata["knowledge_base_name"] = new_name
            copied = self.store.upsert_records(new_name, records)
        except Exception as e:
            self._discard_partial_copy(new_name)
            raise KnowledgeBaseError(
                f"Failed to rename knowledge base '{old_name}' to '{new_name}'",
                name=old_name,
                operation="rename",
                details=str(e),
            ) from e

        result = RenameResult(old_name=old_name, new_name=new_name, chunks_copied=copied)
        drop_error = self._drop_with_retry(old_name)
        if drop_error is not None:
            result.old_collection_dropped = False
            result.warnings.append(
                f"Renamed, but the old collection "
                f"'{self.store.collection_name(old_name)}' could not be dropped: {drop_error}"
            )
            logger.warning(
                "Rename '%s' -> '%s' left the old collection behind:\n%s",
                old_name, new_name, format_error_chain(drop_error),
            )

        logger.info("Renamed knowledge base '%s' to '%s' (%d chunks)", old_name, new_name, copied)
        self._changed()
        return result

    def delete(self, name: str) -> DeleteResult:
        """
        Delete a knowledge base with all its chunks.

        Raises:
            KnowledgeBaseNotFoundError: If the knowledge base does not exist.
        """
        self._require(name, "delete")
        self.store.drop_collection(name)
        logger.info("Deleted knowledge base '%s'", name)
        self._changed()
        return DeleteResult(name=name)

    def delete_chunk_set(self, name: str, ingestion_timestamp: str) -> DeleteChunkSetResult:
        """
        Delete the chunks of one ingest run.

        Returns:
            The number of chunks removed (0 if none matched).

        Raises:
            KnowledgeBaseNotFoundError: If the knowledge base does not exist.
        """
        self._require(name, "delete_chunk_set")
        deleted = self.store.delete_by_filter(name, {"ingestion_timestamp": ingestion_timestamp})

        if deleted == 0:
            logger.warning(
                "No chunks of '%s' with ingestion timestamp %s", name, ingestion_timestamp
            )
        else:
            remaining_files = {
                record.metadata.get("file_path") for record in self.store.get_all(name)
            }
            remaining_files.discard(None)
            self.store.update_metadata(name, file_count=len(remaining_files))
            logger.info(
                "Deleted %d chunks of '%s' from ingest %s", deleted, name, ingestion_timestamp
            )
            self._changed()

        return DeleteChunkSetResult(
            name=name,
            ingestion_timestamp=ingestion_timestamp,
            deleted_count=deleted,
        )

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _require(self, name: str, operation: str) -> None:
        if not self.store.exists(name):
            raise KnowledgeBaseNotFoundError(name, operation)

    def _drop_with_retry(self, name: str) -> Optional[StoreError]:
        last_error: Optional[StoreError] = None
        for attempt in range(1, self.drop_attempts + 1):
            try:
                self.store.drop_collection(name)
                return None
            except StoreError as e:
                last_error = e
                logger.warning(
                    "Dropping collection of '%s' failed (attempt %d/%d): %s",
                    name, attempt, self.drop_attempts, e,
                )
        return last_error

    def _discard_partial_copy(self, name: str) -> None:
        try:
            self.store.drop_collection(name)
        except StoreError as e:
            logger.error(
                "Could not drop partially copied collection of '%s':\n%s",
                name, format_error_chain(e),
            )

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
