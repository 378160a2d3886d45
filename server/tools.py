"""
Assistant-facing tool surface.

Each tool returns exactly the JSON-able dict the HTTP API returns for the
same operation; the HTTP routes call these methods too.
"""

import logging
from typing import Any, Optional

from knowledgebase import KnowledgeBaseService
from search import SearchService

from .schemas import SearchRequest

logger = logging.getLogger(__name__)


class KnowledgeBaseTools:
    """list / search / stats operations shared by HTTP and MCP."""

    def __init__(self, search: SearchService, knowledge_bases: KnowledgeBaseService):
        self.search = search
        self.knowledge_bases = knowledge_bases

    def list_knowledge_bases(self) -> dict[str, Any]:
        return {
            "knowledgeBases": [kb.to_api() for kb in self.knowledge_bases.list()],
        }

    def search_knowledge_bases(
        self,
        query: str,
        knowledge_base_name: Optional[str] = None,
        language: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Validate the parameters and run a search.

        Raises:
            pydantic.ValidationError: If a parameter is out of range.
        """
        request = SearchRequest(
            query=query,
            knowledge_base_name=knowledge_base_name,
            language=language,
            max_results=max_results,
        )
        return self.run_search(request)

    def run_search(self, request: SearchRequest) -> dict[str, Any]:
        logger.debug("Search request: %s", request.query[:100])
        response = self.search.search(
            request.query,
            knowledge_base_name=request.knowledge_base_name,
            language=request.language,
            max_results=request.max_results,
        )
        return response.to_api()

    def get_knowledge_base_stats(self, name: str) -> dict[str, Any]:
        return self.knowledge_bases.stats(name).to_api()
