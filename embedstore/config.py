"""
Settings loaded from environment variables and an optional `.env` file.
"""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.contracts import EmbedderPort
from .core.vectors.vector_policies import BackendKind, normalize_backend_kind
from .embedders.builtin import MODEL_NAME as BUILTIN_MODEL_NAME
from .embedders.builtin import BuiltinSmallEmbedder

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"


class Settings(BaseSettings):
    """Defaults for the command-line tool; CLI flags override each field."""

    model_config = SettingsConfigDict(
        env_prefix="EMBEDSTORE_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    db_path: str = Field(default="vectors.sqlite")
    backend: BackendKind | None = Field(default=None)

    embedding_dimension: int = Field(default=384, gt=0)
    embedding_model: str = Field(default=BUILTIN_MODEL_NAME)

    batch_size: int = Field(default=1024, gt=0)
    top_k: int = Field(default=10)
    create_indexes: bool = Field(default=True)

    log_level: str = Field(default="INFO")

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: object) -> object:
        if value is None or value == "":
            return None
        if isinstance(value, (str, BackendKind)):
            return normalize_backend_kind(value)
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


def get_settings() -> Settings:
    return Settings()


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """
    Configure base logging for the command-line tool.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger("embedstore")


def make_embedder(model: str, dimension: int) -> EmbedderPort:
    """Return the embedder registered under `model`."""

    if model == BUILTIN_MODEL_NAME:
        return BuiltinSmallEmbedder(dimension)
    raise ValueError(f"Unknown embedding model: {model}. Supported: ['{BUILTIN_MODEL_NAME}']")
