"""
Vector Store - ChromaDB-backed storage with one collection per knowledge base

Maps a knowledge-base name to a deterministic, versioned collection name
(``<prefix>_<sanitized name>_v<schema version>``) and provides the
operations the ingest, search and lifecycle components need:

- ensure_collection / get_collection / drop_collection / list_collections
- upsert (bounded batches), get_all (paged), count
- query_by_vector (cosine, similarity = 1 - distance)
- delete_by_filter, update_metadata

Design:
- Uses ChromaDB PersistentClient for on-disk storage
- Collections of another schema version are invisible to list_collections
- Knowledge-base identity lives in collection metadata, so listing never
  parses collection names
- ChromaDB failures are raised as StoreError; a missing collection is
  raised as CollectionNotFoundError, never auto-created by reads

Usage:
    from vector_store import VectorStore, StoreConfig

    store = VectorStore(StoreConfig(persist_directory="data/chroma"))
    store.ensure_collection("handbook", KnowledgeBaseMetadata(knowledge_base_name="handbook"))
    hits = store.query_by_vector("handbook", vector, k=10)
"""

import hashlib
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import chromadb
from chromadb.api.models.Collection import Collection

from chunking.models import Chunk
from common.exceptions import CollectionNotFoundError, KnowledgeBaseMemoryError, StoreError

from .models import (
    DISTANCE_METRIC,
    MAX_COLLECTION_NAME_LENGTH,
    CollectionInfo,
    CollectionLookup,
    Found,
    KnowledgeBaseMetadata,
    NotFound,
    QueryHit,
    StoreConfig,
    StoredRecord,
    chunk_to_metadata,
    decode_metadata,
    encode_metadata,
    sanitize_name,
    version_tag,
)

logger = logging.getLogger(__name__)


def build_where(filters: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Combine several field filters into one ChromaDB where clause."""
    if not filters:
        return None
    if len(filters) == 1 or any(key.startswith("$") for key in filters):
        return dict(filters)
    return {"$and": [{key: value} for key, value in filters.items()]}


class VectorStore:
    """
    Collection-per-knowledge-base vector store backed by ChromaDB.
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        chroma_client: Optional[chromadb.ClientAPI] = None,
    ):
        """
        Initialize the store.

        Args:
            config: Store configuration. Uses defaults if not provided.
            chroma_client: Optional pre-created ChromaDB client (for testing).
                           If not provided, a PersistentClient is created.
        """
        self.config = config or StoreConfig()
        if chroma_client is not None:
            self._client = chroma_client
        else:
            self._client = chromadb.PersistentClient(path=self.config.persist_directory)
        self._suffix = "_" + version_tag(self.config.schema_version)

    # -------------------------------------------------------------------------
    # Naming
    # -------------------------------------------------------------------------

    def collection_name(self, knowledge_base_name: str) -> str:
        """Deterministic collection name for a knowledge base."""
        base = f"{self.config.collection_prefix}_{sanitize_name(knowledge_base_name)}"
        name = base + self._suffix
        if len(name) <= MAX_COLLECTION_NAME_LENGTH:
            return name
        digest = hashlib.sha256(knowledge_base_name.encode("utf-8")).hexdigest()[:8]
        keep = MAX_COLLECTION_NAME_LENGTH - len(self._suffix) - len(digest) - 1
        return f"{base[:keep]}_{digest}{self._suffix}"

    def _is_own_collection(self, collection_name: str) -> bool:
        return (
            collection_name.startswith(f"{self.config.collection_prefix}_")
            and collection_name.endswith(self._suffix)
        )

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def get_collection(self, knowledge_base_name: str) -> CollectionLookup:
        """Look up a knowledge base's collection without creating it."""
        name = self.collection_name(knowledge_base_name)
        with self._operation("get_collection", name):
            if name not in self._collection_names():
                return NotFound(name)
            return Found(self._client.get_collection(name=name))

    def exists(self, knowledge_base_name: str) -> bool:
        return isinstance(self.get_collection(knowledge_base_name), Found)

    def ensure_collection(
        self,
        knowledge_base_name: str,
        metadata: Optional[KnowledgeBaseMetadata] = None,
    ) -> tuple[Collection, bool]:
        """
        Get or create a knowledge base's collection.

        Args:
            knowledge_base_name: Display name of the knowledge base.
            metadata: Collection metadata used when the collection is created.

        Returns:
            (collection, created)
        """
        name = self.collection_name(knowledge_base_name)
        lookup = self.get_collection(knowledge_base_name)
        if isinstance(lookup, Found):
            return lookup.collection, False

        metadata = metadata or KnowledgeBaseMetadata(knowledge_base_name=knowledge_base_name)
        with self._operation("ensure_collection", name):
            collection = self._client.get_or_create_collection(
                name=name,
                metadata={"hnsw:space": DISTANCE_METRIC, **metadata.to_chroma()},
            )
        logger.info("Created collection %s for knowledge base '%s'", name, knowledge_base_name)
        return collection, True

    def get_metadata(self, knowledge_base_name: str) -> KnowledgeBaseMetadata:
        collection = self._require("get_metadata", knowledge_base_name)
        parsed = KnowledgeBaseMetadata.from_chroma(collection.metadata)
        return parsed or KnowledgeBaseMetadata(knowledge_base_name=knowledge_base_name)

    def update_metadata(self, knowledge_base_name: str, **updates: Any) -> KnowledgeBaseMetadata:
        """Merge updates into the collection metadata and return the result."""
        collection = self._require("update_metadata", knowledge_base_name)
        current = KnowledgeBaseMetadata.from_chroma(collection.metadata) or KnowledgeBaseMetadata(
            knowledge_base_name=knowledge_base_name
        )
        merged = current.model_copy(update=updates)
        # The distance function cannot be changed after creation
        preserved = {
            k: v for k, v in (collection.metadata or {}).items()
            if not k.startswith("hnsw:") and k not in KnowledgeBaseMetadata.model_fields
        }
        with self._operation("update_metadata", collection.name):
            collection.modify(metadata={**preserved, **merged.to_chroma()})
        return merged

    def drop_collection(self, knowledge_base_name: str) -> None:
        """
        Delete a knowledge base's collection with all its records.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
        """
        collection = self._require("drop_collection", knowledge_base_name)
        with self._operation("drop_collection", collection.name):
            self._client.delete_collection(name=collection.name)
        logger.info("Dropped collection %s", collection.name)

    def list_collections(self) -> list[CollectionInfo]:
        """
        List knowledge-base collections of this schema version.

        Collections without knowledge-base identity metadata are ignored.
        """
        infos: list[CollectionInfo] = []
        with self._operation("list_collections"):
            for name in sorted(self._collection_names()):
                if not self._is_own_collection(name):
                    continue
                collection = self._client.get_collection(name=name)
                metadata = KnowledgeBaseMetadata.from_chroma(collection.metadata)
                if metadata is None:
                    continue
                infos.append(CollectionInfo(
                    name=metadata.knowledge_base_name,
                    collection_name=name,
                    metadata=metadata,
                    chunk_count=collection.count(),
                ))
        return infos

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def upsert(
        self,
        knowledge_base_name: str,
        chunks: list[Chunk],
        vectors: list[list[float]],
    ) -> int:
        """
        Store chunks with their vectors in bounded batches.

        Returns:
            Number of records written.
        """
        if len(chunks) != len(vectors):
            raise ValueError(
                f"Got {len(chunks)} chunks but {len(vectors)} vectors"
            )
        records = [
            StoredRecord(
                chunk_id=chunk.chunk_id,
                content=chunk.content,
                metadata=chunk_to_metadata(chunk, knowledge_base_name),
                embedding=vector,
            )
            for chunk, vector in zip(chunks, vectors)
        ]
        return self.upsert_records(knowledge_base_name, records)

    def upsert_records(self, knowledge_base_name: str, records: list[StoredRecord]) -> int:
        """Store already-built records (each must carry an embedding)."""
        if not records:
            return 0
        collection = self._require("upsert", knowledge_base_name)
        batch_size = self.config.batch_size
        stored = 0
        with self._operation("upsert", collection.name):
            for i in range(0, len(records), batch_size):
                batch = records[i:i + batch_size]
                collection.upsert(
                    ids=[r.chunk_id for r in batch],
                    embeddings=[r.embedding for r in batch],
                    documents=[r.content for r in batch],
                    metadatas=[encode_metadata(r.metadata) for r in batch],
                )
                stored += len(batch)
        logger.debug("Upserted %d records into %s", stored, collection.name)
        return stored

    def count(self, knowledge_base_name: str, where: Optional[dict[str, Any]] = None) -> int:
        collection = self._require("count", knowledge_base_name)
        with self._operation("count", collection.name):
            if not where:
                return collection.count()
            return len(collection.get(where=build_where(where), include=[])["ids"])

    def query_by_vector(
        self,
        knowledge_base_name: str,
        vector: list[float],
        k: int,
        where: Optional[dict[str, Any]] = None,
    ) -> list[QueryHit]:
        """
        Nearest-neighbour query within one knowledge base.

        Returns:
            Up to k hits ranked by similarity (best first).
        """
        collection = self._require("query_by_vector", knowledge_base_name)
        with self._operation("query_by_vector", collection.name):
            total = collection.count()
            if total == 0 or k < 1:
                return []

            query_params: dict[str, Any] = {
                "query_embeddings": [vector],
                "n_results": min(k, total),
                "include": ["documents", "metadatas", "distances"],
            }
            where_clause = build_where(where)
            if where_clause:
                query_params["where"] = where_clause

            raw = collection.query(**query_params)

        hits: list[QueryHit] = []
        if not raw["ids"] or not raw["ids"][0]:
            return hits

        for i, chunk_id in enumerate(raw["ids"][0]):
            distance = float(raw["distances"][0][i])
            hits.append(QueryHit(
                chunk_id=chunk_id,
                content=raw["documents"][0][i] or "",
                metadata=decode_metadata(raw["metadatas"][0][i]),
                distance=round(distance, 6),
                similarity=round(1 - distance, 6),
            ))
        return hits

    def get_all(
        self,
        knowledge_base_name: str,
        where: Optional[dict[str, Any]] = None,
        include_embeddings: bool = False,
    ) -> list[StoredRecord]:
        """Read every record (optionally filtered), paging through the collection."""
        collection = self._require("get_all", knowledge_base_name)
        include = ["documents", "metadatas"]
        if include_embeddings:
            include.append("embeddings")

        records: list[StoredRecord] = []
        page_size = self.config.batch_size
        offset = 0
        with self._operation("get_all", collection.name):
            while True:
                page = collection.get(
                    where=build_where(where),
                    include=include,
                    limit=page_size,
                    offset=offset,
                )
                records.extend(self._records_from_page(page, include_embeddings))
                if len(page["ids"]) < page_size:
                    break
                offset += page_size
        return records

    def delete_by_filter(self, knowledge_base_name: str, where: dict[str, Any]) -> int:
        """
        Delete every record matching the filter.

        Returns:
            Number of records deleted (0 if none matched).
        """
        if not where:
            raise ValueError("delete_by_filter requires a non-empty filter")
        collection = self._require("delete_by_filter", knowledge_base_name)
        with self._operation("delete_by_filter", collection.name):
            ids = collection.get(where=build_where(where), include=[])["ids"]
            for i in range(0, len(ids), self.config.batch_size):
                collection.delete(ids=ids[i:i + self.config.batch_size])
        logger.debug("Deleted %d records from %s", len(ids), collection.name)
        return len(ids)

    def heartbeat(self) -> bool:
        with self._operation("heartbeat"):
            self._client.heartbeat()
        return True

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _collection_names(self) -> set[str]:
        # chromadb 0.6 returns names, 1.x returns Collection objects
        return {getattr(c, "name", c) for c in self._client.list_collections()}

    def _require(self, operation: str, knowledge_base_name: str) -> Collection:
        lookup = self.get_collection(knowledge_base_name)
        if isinstance(lookup, NotFound):
            raise CollectionNotFoundError(operation, lookup.collection_name)
        return lookup.collection

    @staticmethod
    def _records_from_page(page: dict[str, Any], include_embeddings: bool) -> list[StoredRecord]:
        embeddings = page.get("embeddings") if include_embeddings else None
        records = []
        for i, chunk_id in enumerate(page["ids"]):
            embedding = None
            if embeddings is not None:
                embedding = [float(x) for x in embeddings[i]]
            records.append(StoredRecord(
                chunk_id=chunk_id,
                content=page["documents"][i] or "",
                metadata=decode_metadata(page["metadatas"][i]),
                embedding=embedding,
            ))
        return records

    @contextmanager
    def _operation(self, operation: str, collection: Optional[str] = None) -> Iterator[None]:
        try:
            yield
        except KnowledgeBaseMemoryError:
            raise
        except Exception as e:
            raise StoreError(operation, collection, e) from e
