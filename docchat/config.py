"""Configuration management for DocChat."""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)


def _optional_int(name: str) -> int | None:
    value = os.getenv(name)
    return int(value) if value else None


def _optional_float(name: str) -> float | None:
    value = os.getenv(name)
    return float(value) if value else None


class Config:
    """Application configuration loaded from environment variables."""

    # OpenAI Configuration
    @classmethod
    def get_openai_api_key(cls) -> str:
        """Get OpenAI API key from environment variables.

        Returns:
            OpenAI API key from environment or empty string if not set.
        """
        return os.getenv("OPENAI_API_KEY", "")

    OPENAI_BASE_URL: str | None = os.getenv("OPENAI_BASE_URL")
    OPENAI_TIMEOUT: float | None = _optional_float("OPENAI_TIMEOUT")

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    OPENAI_LOG_LEVEL: str = os.getenv("OPENAI_LOG_LEVEL", "WARNING").upper()

    # Ingestion Configuration
    CHUNK_SIZE: int = int(os.getenv("CHUNK_SIZE", "1000"))
    CHUNK_OVERLAP: int = int(os.getenv("CHUNK_OVERLAP", "200"))
    EMBEDDING_BATCH_SIZE: int = int(os.getenv("EMBEDDING_BATCH_SIZE", "100"))

    # Embedding Configuration
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    EMBEDDING_DIMENSION: int | None = _optional_int("EMBEDDING_DIMENSION")

    # Chat Model Configuration
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "gpt-4.1-nano-2025-04-14")
    CHAT_MAX_TOKENS: int = int(os.getenv("CHAT_MAX_TOKENS", "800"))
    CHAT_TEMPERATURE: float = float(os.getenv("CHAT_TEMPERATURE", "0.1"))
    ASSISTANT_PERSONA: str = os.getenv(
        "ASSISTANT_PERSONA", "a data structure and algorithm expert"
    )

    # Query Rewriting Configuration
    QUERY_REWRITE_MAX_TOKENS: int = int(os.getenv("QUERY_REWRITE_MAX_TOKENS", "150"))
    QUERY_REWRITE_TEMPERATURE: float = float(
        os.getenv("QUERY_REWRITE_TEMPERATURE", "0.1")
    )

    # Retrieval Configuration
    RETRIEVAL_TOP_K: int = int(os.getenv("RETRIEVAL_TOP_K", "10"))
    VECTOR_STORE_DB_PATH: Path = Path(
        os.getenv("VECTOR_STORE_DB_PATH", "data/vector_store.db")
    )
    FAISS_INDEX_PATH: Path = Path(
        os.getenv("FAISS_INDEX_PATH", "data/faiss/index.faiss")
    )

    # API Header Configuration
    API_USER_AGENT: str = os.getenv("API_USER_AGENT", "DocChat/1.0")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration values.

        Raises:
            ValueError: If OPENAI_API_KEY is not set or a numeric setting
                is out of range.
        """
        if not cls.get_openai_api_key():
            msg = (
                "OPENAI_API_KEY is required. Please set it in .env file or environment."
            )
            raise ValueError(msg)
        if cls.RETRIEVAL_TOP_K < 1:
            msg = f"RETRIEVAL_TOP_K must be positive, got {cls.RETRIEVAL_TOP_K}"
            raise ValueError(msg)
        if cls.CHUNK_OVERLAP >= cls.CHUNK_SIZE:
            msg = (
                f"CHUNK_OVERLAP ({cls.CHUNK_OVERLAP}) must be smaller than "
                f"CHUNK_SIZE ({cls.CHUNK_SIZE})"
            )
            raise ValueError(msg)

    @classmethod
    def setup_logging(cls) -> None:
        """Setup basic logging configuration.

        Configure logging once at application startup with:
        - Console output for all levels
        - Simple, readable format
        - Configurable level via environment variable
        """
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL, logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )

        # The SDK logs every request through httpx at INFO
        third_party_level = getattr(logging, cls.OPENAI_LOG_LEVEL, logging.WARNING)
        for name in ("openai", "httpx"):
            logging.getLogger(name).setLevel(third_party_level)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger with the specified name.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Logger instance
        """
        return logging.getLogger(name)

    @classmethod
    def get_api_headers(cls) -> dict[str, str]:
        """Build default headers for outbound API calls.

        Returns:
            Mapping of header names to values used on outbound HTTP requests.
        """
        headers: dict[str, str] = {}

        if cls.API_USER_AGENT:
            headers["User-Agent"] = cls.API_USER_AGENT

        return headers

    @classmethod
    def get_client_options(cls) -> dict[str, Any]:
        """Build keyword arguments shared by every OpenAI client.

        Returns:
            Base URL, default headers and, when configured, the request timeout.
        """
        options: dict[str, Any] = {
            "base_url": cls.OPENAI_BASE_URL,
            "default_headers": cls.get_api_headers() or None,
        }
        if cls.OPENAI_TIMEOUT is not None:
            options["timeout"] = cls.OPENAI_TIMEOUT
        return options


config = Config()
