"""
Server Module - HTTP API, assistant tools and MCP server

Quick Start:
    import uvicorn
    from server import create_app

    uvicorn.run(create_app(), host="127.0.0.1", port=8000)
"""

__version__ = "1.0.0"

from .app import create_app
from .tools import KnowledgeBaseTools
from .wiring import Services, build_services


def create_mcp_server(services=None):
    """Build the MCP server; the mcp package is only imported when needed."""
    from .mcp_server import create_mcp_server as _create_mcp_server

    return _create_mcp_server(services)


__all__ = [
    "__version__",
    "create_app",
    "create_mcp_server",
    "KnowledgeBaseTools",
    "Services",
    "build_services",
]
