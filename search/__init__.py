"""
Search Module - Ranked semantic search across knowledge bases

Quick Start:
    from search import SearchCache, SearchService

    service = SearchService(store, embedding_service, SearchCache(ttl_seconds=300))
    response = service.search("deployment checklist", knowledge_base_name="handbook")
    print(response.to_api())
"""

__version__ = "1.0.0"

from .cache import SearchCache
from .models import SearchResponse, SearchResult
from .service import SearchService, make_cache_key

__all__ = [
    "__version__",
    "SearchCache",
    "SearchResponse",
    "SearchResult",
    "SearchService",
    "make_cache_key",
]
