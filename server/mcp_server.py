"""FastMCP server exposing the knowledge-base tools to an assistant."""

import json
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .tools import KnowledgeBaseTools
from .wiring import Services, build_services


def create_mcp_server(services: Optional[Services] = None) -> FastMCP:
    """Create an MCP server with list, search and stats tools.

    Every tool returns the JSON text of the response the HTTP API gives for
    the same operation.

    Args:
        services: Pre-built services. Built from the environment if not provided.

    Returns:
        Configured FastMCP server instance
    """
    svc = services or build_services()
    tools = KnowledgeBaseTools(svc.search, svc.knowledge_bases)

    mcp = FastMCP(name="knowledge-base-memory")

    @mcp.tool()
    def list_knowledge_bases() -> str:
        """List all knowledge bases with their chunk and file counts."""
        return json.dumps(tools.list_knowledge_bases(), indent=2)

    @mcp.tool()
    def search_knowledge_bases(
        query: str,
        knowledge_base_name: Optional[str] = None,
        language: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> str:
        """Semantic search across knowledge bases.

        Args:
            query: Natural-language search query
            knowledge_base_name: Only search this knowledge base
            language: Only return chunks of this document type (e.g. "markdown", "pdf")
            max_results: Maximum number of results (1-200)

        Returns:
            JSON with results (filePath, startLine, endLine, content, score, ...),
            totalResults and queryTime
        """
        result = tools.search_knowledge_bases(
            query,
            knowledge_base_name=knowledge_base_name,
            language=language,
            max_results=max_results,
        )
        return json.dumps(result, indent=2, ensure_ascii=False)

    @mcp.tool()
    def get_knowledge_base_stats(name: str) -> str:
        """Detailed statistics for one knowledge base.

        Args:
            name: Knowledge base name
        """
        return json.dumps(tools.get_knowledge_base_stats(name), indent=2)

    return mcp
