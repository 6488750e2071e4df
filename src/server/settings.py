from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv(override=False)


DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174"]
BACKENDS = {"filesystem", "sqlite"}


class Settings(BaseModel):
    """Runtime configuration for the corpus API and scripts."""

    corpus_dir: Path = Field(default_factory=lambda: Path(os.getenv("CORPUS_DIR", "docs")))
    corpus_pattern: str = Field(default_factory=lambda: os.getenv("CORPUS_PATTERN", "**/*"))
    corpus_backend: str = Field(default_factory=lambda: os.getenv("CORPUS_BACKEND", "filesystem"))
    sqlite_db_path: Path = Field(default_factory=lambda: Path(os.getenv("SQLITE_DB", "artifacts/corpus.db")))
    cors_origins: List[str] = Field(default_factory=lambda: os.getenv("CORS_ORIGINS", ""))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = Field(default_factory=lambda: os.getenv("LOG_FORMAT", "console"))

    model_config = {
        "frozen": True,
        "validate_default": True,
    }

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> List[str]:
        if value is None:
            return list(DEFAULT_CORS_ORIGINS)
        if isinstance(value, str):
            if not value.strip():
                return list(DEFAULT_CORS_ORIGINS)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return list(value)

    @field_validator("corpus_backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in BACKENDS:
            raise ValueError(f"CORPUS_BACKEND must be one of {sorted(BACKENDS)}, got {value!r}")
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in {"console", "json"}:
            raise ValueError("LOG_FORMAT must be 'console' or 'json'")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance for FastAPI dependency injection."""

    return Settings()


__all__ = ["Settings", "get_settings"]
