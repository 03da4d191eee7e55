"""Configuration module for the document extraction application.

This module contains all configuration parameters including database
and storage locations, model settings, upload limits, extraction run
limits and confidence thresholds. Values can be overridden through
environment variables or a ``.env`` file.
"""

import os

from dotenv import load_dotenv

__all__ = ["Config"]

load_dotenv()


class Config:
    """Configuration class containing application settings and constants.

    This class centralizes all configuration parameters so that
    repositories, providers and the orchestrator share one source of
    defaults.
    """

    # Persistence
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///doc_extraction.db")
    STORAGE_DIR: str = os.getenv("STORAGE_DIR", "storage")

    # OpenAI model configuration
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    MAX_PROMPT_CHARS: int = 20_000

    # Extraction runs
    EXTRACTION_TIMEOUT_SECONDS: float = float(os.getenv("EXTRACTION_TIMEOUT_SECONDS", "120"))
    MAX_CONCURRENT_DOCUMENTS: int = int(os.getenv("MAX_CONCURRENT_DOCUMENTS", "1"))

    # Upload validation limits
    MAX_FILE_SIZE: int = 50 * 1024 * 1024  # 50MB maximum file size
    MIN_FILE_SIZE: int = 1

    # Confidence buckets: score > HIGH is high, score > MEDIUM is medium
    HIGH_CONFIDENCE_THRESHOLD: float = 0.8
    MEDIUM_CONFIDENCE_THRESHOLD: float = 0.5
