"""
Search Service - Query embedding, multi-collection fan-out and ranking

Steps of search():
1. Build a cache key from the normalized (query, knowledge base, language,
   max results) tuple; a live cache entry is returned without touching the
   store.
2. Embed the query once.
3. Resolve the target collections: the named knowledge base (empty result
   if it does not exist) or every knowledge-base collection.
4. Query every collection concurrently with a shared deadline. A failing or
   slow collection is logged and skipped.
5. Merge, stable-sort by score (descending), truncate to max results, cache.

Usage:
    service = SearchService(store, embedding_service, SearchCache(ttl_seconds=300))
    response = service.search("how are refunds processed", max_results=10)
    for result in response.results:
        print(result.score, result.file_path, result.start_line)
"""

import json
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from common.exceptions import EmbeddingError, SearchError, format_error_chain
from common.logging_config import log_duration
from embedding import EmbeddingService
from vector_store import QueryHit, VectorStore

from .cache import SearchCache
from .models import SearchResponse, SearchResult

logger = logging.getLogger(__name__)


def make_cache_key(
    query: str,
    knowledge_base_name: Optional[str],
    language: Optional[str],
    max_results: int,
) -> str:
    normalized = " ".join(query.split())
    return json.dumps(
        [normalized, knowledge_base_name or None, language or None, max_results],
        ensure_ascii=False,
    )


class SearchService:
    """
    Semantic search across one or all knowledge bases.
    """

    def __init__(
        self,
        store: VectorStore,
        embeddings: EmbeddingService,
        cache: Optional[SearchCache[SearchResponse]] = None,
        default_max_results: int = 50,
        timeout_seconds: float = 10.0,
        max_workers: int = 4,
    ):
        self.store = store
        self.embeddings = embeddings
        self.cache = cache if cache is not None else SearchCache()
        self.default_max_results = default_max_results
        self.timeout_seconds = timeout_seconds
        self.max_workers = max_workers

    def search(
        self,
        query: str,
        knowledge_base_name: Optional[str] = None,
        language: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> SearchResponse:
        """
        Search knowledge bases for chunks similar to the query.

        Args:
            query: Free-text query.
            knowledge_base_name: Restrict to one knowledge base.
            language: Restrict to chunks of this document type.
            max_results: Maximum results (default from configuration).

        Returns:
            SearchResponse with results ranked by score (best first).

        Raises:
            SearchError: If the query cannot be embedded.
        """
        limit = max_results or self.default_max_results
        key = make_cache_key(query, knowledge_base_name, language, limit)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Search cache hit for %r", query[:100])
            return cached.model_copy(deep=True)

        with log_duration(logger, "search", query=query[:100]) as timer:
            targets = self._resolve_targets(knowledge_base_name)
            if not targets:
                return SearchResponse(query_time=timer.stop())

            try:
                vector = self.embeddings.embed(query)
            except EmbeddingError as e:
                raise SearchError("Could not embed search query", str(e)) from e

            where = {"document_type": language} if language else None
            hits = self._fan_out(targets, vector, limit, where)

            # sorted() is stable: ties keep collection order, then rank order
            ranked = sorted(hits, key=lambda result: result.score, reverse=True)[:limit]
            response = SearchResponse(
                results=ranked,
                total_results=len(ranked),
                query_time=timer.stop(),
            )

        self.cache.set(key, response.model_copy(deep=True))
        return response

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Search cache cleared")

    def cache_stats(self) -> dict[str, float]:
        return self.cache.stats()

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _resolve_targets(self, knowledge_base_name: Optional[str]) -> list[str]:
        if knowledge_base_name:
            if not self.store.exists(knowledge_base_name):
                logger.info("Search target '%s' does not exist", knowledge_base_name)
                return []
            return [knowledge_base_name]
        return [info.name for info in self.store.list_collections()]

    def _fan_out(
        self,
        targets: list[str],
        vector: list[float],
        limit: int,
        where: Optional[dict],
    ) -> list[SearchResult]:
        executor = ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, len(targets))),
            thread_name_prefix="kb-search",
        )
        deadline = time.monotonic() + self.timeout_seconds
        results: list[SearchResult] = []
        try:
            futures: list[tuple[str, Future[list[QueryHit]]]] = [
                (name, executor.submit(self.store.query_by_vector, name, vector, limit, where))
                for name in targets
            ]
            for name, future in futures:
                remaining = max(0.0, deadline - time.monotonic())
                try:
                    hits = future.result(timeout=remaining)
                except FutureTimeoutError:
                    logger.warning(
                        "Search in knowledge base '%s' timed out after %.1fs, skipping",
                        name, self.timeout_seconds,
                    )
                    continue
                except Exception as e:
                    logger.warning(
                        "Search in knowledge base '%s' failed, skipping:\n%s",
                        name, format_error_chain(e),
                    )
                    continue
                results.extend(SearchResult.from_hit(hit, name) for hit in hits)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return results
