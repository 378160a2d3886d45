"""Tests for common — exceptions, configuration and logging helpers."""

import io
import logging

import pytest

from common import AppConfig, get_logger, log_duration, setup_logging
from common.exceptions import (
    ChunkingError,
    CollectionNotFoundError,
    EmbeddingDimensionError,
    EmbeddingError,
    EmbeddingUnavailableError,
    IngestionError,
    KnowledgeBaseError,
    KnowledgeBaseExistsError,
    KnowledgeBaseMemoryError,
    KnowledgeBaseNotFoundError,
    ScanError,
    SearchError,
    StoreError,
    format_error_chain,
    is_not_found,
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class TestExceptionHierarchy:
    @pytest.mark.parametrize("error", [
        ScanError("/x"),
        ChunkingError("bad"),
        EmbeddingError(),
        EmbeddingUnavailableError("nomic-embed-text"),
        EmbeddingDimensionError(768, 384),
        StoreError("upsert"),
        CollectionNotFoundError("count", "kb_docs_v1_0_0"),
        KnowledgeBaseNotFoundError("docs"),
        KnowledgeBaseExistsError("docs"),
        SearchError("failed"),
        IngestionError("docs", "/src"),
    ])
    def test_all_derive_from_base(self, error):
        assert isinstance(error, KnowledgeBaseMemoryError)

    def test_message_and_details(self):
        error = KnowledgeBaseMemoryError("Failed", details="disk full")
        assert error.message == "Failed"
        assert error.details == "disk full"
        assert str(error) == "Failed | Details: disk full"

    def test_store_error_names_collection(self):
        error = StoreError("upsert", "kb_docs_v1_0_0", RuntimeError("locked"))
        assert "upsert" in str(error)
        assert "kb_docs_v1_0_0" in str(error)
        assert error.details == "locked"

    def test_dimension_error(self):
        error = EmbeddingDimensionError(768, 384)
        assert isinstance(error, EmbeddingError)
        assert "768" in error.message and "384" in error.message

    def test_knowledge_base_errors(self):
        error = KnowledgeBaseNotFoundError("docs", "rename")
        assert isinstance(error, KnowledgeBaseError)
        assert error.name == "docs"
        assert error.operation == "rename"
        assert "rename" in error.message

    def test_is_not_found(self):
        assert is_not_found(KnowledgeBaseNotFoundError("docs"))
        assert is_not_found(CollectionNotFoundError("get", "kb_docs"))
        assert not is_not_found(KnowledgeBaseExistsError("docs"))
        assert not is_not_found(ValueError("x"))

    def test_format_error_chain(self):
        root = ConnectionError("refused")
        error = IngestionError("docs", "/src", EmbeddingUnavailableError("nomic", root))
        chain = format_error_chain(error)
        lines = chain.splitlines()
        assert lines[0].startswith("IngestionError")
        assert "EmbeddingUnavailableError" in lines[1]
        assert "ConnectionError" in lines[2]

    def test_format_error_chain_uses_cause(self):
        try:
            try:
                raise KeyError("inner")
            except KeyError as e:
                raise SearchError("outer") from e
        except SearchError as e:
            chain = format_error_chain(e)
        assert "KeyError" in chain


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class TestAppConfig:
    def test_defaults(self, monkeypatch):
        for key in ("KB_DATA_DIR", "KB_PERSIST_DIRECTORY", "KB_CHUNK_SIZE", "KB_SKIP_HIDDEN"):
            monkeypatch.delenv(key, raising=False)
        config = AppConfig.from_env()
        assert config.chunk_size == 2000
        assert config.chunk_overlap == 400
        assert config.default_max_results == 50
        assert config.persist_directory.endswith("chroma")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("KB_DATA_DIR", "/var/kb")
        monkeypatch.setenv("KB_CHUNK_SIZE", "1000")
        monkeypatch.setenv("KB_SEARCH_CACHE_TTL", "30")
        monkeypatch.setenv("KB_SKIP_HIDDEN", "false")
        monkeypatch.setenv("KB_EMBEDDING_DIMENSION", "768")
        config = AppConfig.from_env()
        assert config.persist_directory == "/var/kb/chroma"
        assert config.chunk_size == 1000
        assert config.search_cache_ttl_seconds == 30.0
        assert config.skip_hidden is False
        assert config.embedding_dimension == 768

    def test_empty_value_uses_default(self, monkeypatch):
        monkeypatch.setenv("KB_PORT", "")
        assert AppConfig.from_env().port == 8000


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

class TestLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_setup_logging_writes_to_stream(self):
        stream = io.StringIO()
        setup_logging(level="DEBUG", stream=stream)
        get_logger("test").debug("hello")
        assert "kb_memory.test" in stream.getvalue()
        assert "hello" in stream.getvalue()

    def test_level_filters(self):
        stream = io.StringIO()
        setup_logging(level=logging.WARNING, stream=stream)
        get_logger("test").info("quiet")
        assert stream.getvalue() == ""

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="LOUD", stream=io.StringIO())
        assert logging.getLogger().level == logging.INFO

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "kb.log"
        setup_logging(log_file=log_file, stream=io.StringIO())
        get_logger("test").info("to file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "to file" in log_file.read_text(encoding="utf-8")

    def test_log_duration(self):
        stream = io.StringIO()
        setup_logging(level="DEBUG", stream=stream)
        with log_duration(get_logger("test"), "work", items=3) as timer:
            pass
        assert timer.elapsed_ms >= 0
        assert "work finished" in stream.getvalue()
