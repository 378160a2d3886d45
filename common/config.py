"""
Application configuration.

AppConfig collects the settings shared by every component. from_env() reads
KB_* environment variables (after main.py has loaded .env); empty or unset
variables keep the defaults.
"""

import os
from dataclasses import dataclass
from typing import Optional


SCHEMA_VERSION = "1.0.0"


@dataclass
class AppConfig:
    data_dir: str = "data"
    persist_directory: str = "data/chroma"
    ollama_base_url: str = "http://localhost:11434"
    embedding_model: str = "nomic-embed-text"
    embedding_dimension: Optional[int] = None
    embedding_batch_size: int = 32
    embedding_cache_size: Optional[int] = None
    store_batch_size: int = 500
    chunk_size: int = 2000
    chunk_overlap: int = 400
    max_file_size: int = 1024 * 1024
    respect_ignore_file: bool = True
    skip_hidden: bool = True
    default_max_results: int = 50
    search_cache_ttl_seconds: float = 300.0
    search_timeout_seconds: float = 10.0
    search_max_workers: int = 4
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AppConfig":
        def _str(name: str, default: Optional[str]) -> Optional[str]:
            value = os.environ.get(name)
            return value if value else default

        def _int(name: str, default: Optional[int]) -> Optional[int]:
            value = os.environ.get(name)
            return int(value) if value else default

        def _float(name: str, default: float) -> float:
            value = os.environ.get(name)
            return float(value) if value else default

        def _bool(name: str, default: bool) -> bool:
            value = os.environ.get(name)
            if not value:
                return default
            return value.strip().lower() in {"1", "true", "yes", "on"}

        data_dir = _str("KB_DATA_DIR", cls.data_dir)
        return cls(
            data_dir=data_dir,
            persist_directory=_str(
                "KB_PERSIST_DIRECTORY", os.path.join(data_dir, "chroma")
            ),
            ollama_base_url=_str("OLLAMA_BASE_URL", cls.ollama_base_url),
            embedding_model=_str("KB_EMBEDDING_MODEL", cls.embedding_model),
            embedding_dimension=_int("KB_EMBEDDING_DIMENSION", cls.embedding_dimension),
            embedding_batch_size=_int("KB_EMBEDDING_BATCH_SIZE", cls.embedding_batch_size),
            embedding_cache_size=_int("KB_EMBEDDING_CACHE_SIZE", cls.embedding_cache_size),
            store_batch_size=_int("KB_STORE_BATCH_SIZE", cls.store_batch_size),
            chunk_size=_int("KB_CHUNK_SIZE", cls.chunk_size),
            chunk_overlap=_int("KB_CHUNK_OVERLAP", cls.chunk_overlap),
            max_file_size=_int("KB_MAX_FILE_SIZE", cls.max_file_size),
            respect_ignore_file=_bool("KB_RESPECT_IGNORE_FILE", cls.respect_ignore_file),
            skip_hidden=_bool("KB_SKIP_HIDDEN", cls.skip_hidden),
            default_max_results=_int("KB_DEFAULT_MAX_RESULTS", cls.default_max_results),
            search_cache_ttl_seconds=_float("KB_SEARCH_CACHE_TTL", cls.search_cache_ttl_seconds),
            search_timeout_seconds=_float("KB_SEARCH_TIMEOUT", cls.search_timeout_seconds),
            search_max_workers=_int("KB_SEARCH_MAX_WORKERS", cls.search_max_workers),
            host=_str("KB_HOST", cls.host),
            port=_int("KB_PORT", cls.port),
            log_level=_str("KB_LOG_LEVEL", cls.log_level),
            log_file=_str("KB_LOG_FILE", cls.log_file),
        )
