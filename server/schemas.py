"""
Request models for the HTTP API and the assistant tools.

All request validation happens here; the core services assume valid input.
"""

from typing import Optional

from pydantic import Field

from common.models import ApiModel

MAX_NAME_LENGTH = 255
MAX_SEARCH_RESULTS = 200


class IngestRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    path: Optional[str] = Field(
        None,
        min_length=1,
        description="Directory to ingest; omit to create an empty knowledge base",
    )


class SearchRequest(ApiModel):
    query: str = Field(..., min_length=1)
    knowledge_base_name: Optional[str] = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    language: Optional[str] = Field(
        None,
        min_length=1,
        description="Document type filter (e.g. 'markdown', 'pdf')",
    )
    max_results: Optional[int] = Field(None, ge=1, le=MAX_SEARCH_RESULTS)


class RenameRequest(ApiModel):
    new_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
