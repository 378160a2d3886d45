"""
Data Models for the Search Service

The same models back the HTTP API and the assistant tool surface, serialized
with camelCase aliases (``model_dump(by_alias=True)``).
"""

from typing import Optional

from pydantic import Field

from common.models import ApiModel
from vector_store import QueryHit


class SearchResult(ApiModel):
    """A single ranked search hit."""
    chunk_id: str
    file_path: str = Field(..., description="Absolute path of the source file")
    relative_path: str = ""
    start_line: int = Field(1, description="1-based first line of the chunk")
    end_line: int = Field(1, description="1-based last line of the chunk")
    start_offset: int = 0
    end_offset: int = 0
    chunk_kind: str = Field(..., description="section, paragraph or fragment")
    heading_path: list[str] = Field(default_factory=list)
    document_type: Optional[str] = None
    content: str
    score: float = Field(..., description="Similarity score, higher is more relevant")
    knowledge_base_name: str
    ingestion_timestamp: str = ""

    @classmethod
    def from_hit(cls, hit: QueryHit, knowledge_base_name: str) -> "SearchResult":
        meta = hit.metadata
        return cls(
            chunk_id=hit.chunk_id,
            file_path=meta.get("file_path", ""),
            relative_path=meta.get("relative_path", ""),
            start_line=meta.get("start_line", 1),
            end_line=meta.get("end_line", 1),
            start_offset=meta.get("start_offset", 0),
            end_offset=meta.get("end_offset", 0),
            chunk_kind=meta.get("chunk_kind", "paragraph"),
            heading_path=meta.get("heading_path", []),
            document_type=meta.get("document_type"),
            content=hit.content,
            score=hit.similarity,
            knowledge_base_name=meta.get("knowledge_base_name", knowledge_base_name),
            ingestion_timestamp=meta.get("ingestion_timestamp", ""),
        )


class SearchResponse(ApiModel):
    results: list[SearchResult] = Field(default_factory=list)
    total_results: int = 0
    query_time: float = Field(0.0, description="Milliseconds spent on the query")
