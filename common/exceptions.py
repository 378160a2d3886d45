"""
Custom Exceptions for the Knowledge-Base Memory pipeline.

Exception Hierarchy:
    KnowledgeBaseMemoryError (base)
    ├── ScanError
    ├── ChunkingError
    ├── EmbeddingError
    │   ├── EmbeddingUnavailableError
    │   └── EmbeddingDimensionError
    ├── StoreError
    │   └── CollectionNotFoundError
    ├── KnowledgeBaseError
    │   ├── KnowledgeBaseNotFoundError
    │   └── KnowledgeBaseExistsError
    ├── SearchError
    └── IngestionError

Recoverable, component-local conditions (unreadable directories, unsupported
file types, documents without headings) are NOT exceptions. They are logged
and reflected in scan or ingest statistics.

Usage:
    from common.exceptions import KnowledgeBaseNotFoundError, EmbeddingError

    try:
        service.rename("docs", "handbook")
    except KnowledgeBaseNotFoundError as e:
        print(f"No such knowledge base: {e.name}")
"""

from __future__ import annotations

from typing import Optional


# =============================================================================
# BASE EXCEPTION
# =============================================================================


class KnowledgeBaseMemoryError(Exception):
    """
    Base exception for all knowledge-base memory errors.

    Attributes:
        message: Human-readable error description
        details: Additional technical details (optional)
    """

    def __init__(
        self,
        message: str = "A knowledge-base memory error occurred",
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details

        full_message = message
        if details:
            full_message = f"{message} | Details: {details}"

        super().__init__(full_message)


# =============================================================================
# SCAN / CHUNKING ERRORS
# =============================================================================


class ScanError(KnowledgeBaseMemoryError):
    """
    Raised when a scan cannot start at all (root missing or not a directory).

    Failures below the root are logged and skipped, never raised.
    """

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Cannot scan directory: {path}")


class ChunkingError(KnowledgeBaseMemoryError):
    """Raised for an unusable chunking configuration."""

    pass


# =============================================================================
# EMBEDDING ERRORS
# =============================================================================


class EmbeddingError(KnowledgeBaseMemoryError):
    """
    Base class for embedding failures.

    Fatal for the enclosing batch: callers must not commit a partial batch.
    """

    def __init__(
        self,
        message: str = "Embedding failed",
        original_error: Optional[Exception] = None,
    ):
        self.original_error = original_error
        details = str(original_error) if original_error else None
        super().__init__(message, details)


class EmbeddingUnavailableError(EmbeddingError):
    """Raised when the embedding model is not reachable or not initialised."""

    def __init__(
        self,
        model: str,
        original_error: Optional[Exception] = None,
    ):
        self.model = model
        super().__init__(
            f"Embedding model '{model}' is not available",
            original_error,
        )


class EmbeddingDimensionError(EmbeddingError):
    """
    Raised when a returned vector does not have the advertised dimension.

    Attributes:
        expected: The dimension the model advertised (or first returned)
        actual: The dimension that was returned
    """

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}"
        )


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(KnowledgeBaseMemoryError):
    """
    Raised when a vector store operation fails.

    Transient I/O failures are not retried internally.

    Attributes:
        operation: Store operation that failed (e.g. "upsert")
        collection: Collection the operation targeted, if any
    """

    def __init__(
        self,
        operation: str,
        collection: Optional[str] = None,
        original_error: Optional[Exception] = None,
        message: Optional[str] = None,
    ):
        self.operation = operation
        self.collection = collection
        self.original_error = original_error

        msg = message or f"Vector store operation '{operation}' failed"
        if collection:
            msg = f"{msg} [{collection}]"
        details = str(original_error) if original_error else None
        super().__init__(msg, details)


class CollectionNotFoundError(StoreError):
    """Raised when a collection does not exist (404-equivalent)."""

    def __init__(self, operation: str, collection: str):
        super().__init__(
            operation,
            collection,
            message=f"Collection not found during '{operation}'",
        )


# =============================================================================
# KNOWLEDGE-BASE LIFECYCLE ERRORS
# =============================================================================


class KnowledgeBaseError(KnowledgeBaseMemoryError):
    """Base class for knowledge-base lifecycle errors."""

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.name = name
        self.operation = operation
        super().__init__(message, details)


class KnowledgeBaseNotFoundError(KnowledgeBaseError):
    """Raised when a lifecycle operation targets a nonexistent knowledge base."""

    def __init__(self, name: str, operation: Optional[str] = None):
        message = f"Knowledge base '{name}' not found"
        if operation:
            message = f"{message} ({operation})"
        super().__init__(message, name=name, operation=operation)


class KnowledgeBaseExistsError(KnowledgeBaseError):
    """Raised when a rename target already exists."""

    def __init__(self, name: str, operation: Optional[str] = None):
        super().__init__(
            f"Knowledge base '{name}' already exists",
            name=name,
            operation=operation,
        )


# =============================================================================
# SEARCH / INGESTION ERRORS
# =============================================================================


class SearchError(KnowledgeBaseMemoryError):
    """Raised when a search fails as a whole (e.g. the query cannot be embedded)."""

    pass


class IngestionError(KnowledgeBaseMemoryError):
    """
    Raised when an ingest run fails.

    Attributes:
        name: Knowledge base being ingested
        root_path: Root directory of the ingest
    """

    def __init__(
        self,
        name: str,
        root_path: str,
        original_error: Optional[Exception] = None,
    ):
        self.name = name
        self.root_path = root_path
        self.original_error = original_error
        details = str(original_error) if original_error else None
        super().__init__(
            f"Ingestion of '{root_path}' into knowledge base '{name}' failed",
            details,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def is_not_found(error: Exception) -> bool:
    """Check if an error should be reported as "not found" (HTTP 404)."""
    return isinstance(error, (KnowledgeBaseNotFoundError, CollectionNotFoundError))


def format_error_chain(error: Exception) -> str:
    """
    Format an exception and its chain for logging.

    Returns a multi-line string showing the error hierarchy.
    """
    lines = []
    current = error
    depth = 0

    while current is not None:
        prefix = "  " * depth + ("└─ " if depth > 0 else "")
        lines.append(f"{prefix}{type(current).__name__}: {current}")

        if getattr(current, "original_error", None):
            current = current.original_error
            depth += 1
        elif current.__cause__:
            current = current.__cause__
            depth += 1
        else:
            break

    return "\n".join(lines)
