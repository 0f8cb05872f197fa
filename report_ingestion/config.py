"""Configuration management using pydantic-settings."""
from functools import lru_cache
import logging
import sys
from typing import Any, List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog


class IngestionSettings(BaseSettings):
    """Report ingestion settings loaded from environment variables.

    All settings prefixed with INGESTION_ (e.g., INGESTION_LOG_LEVEL=DEBUG)
    """

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Log level for the ingestion loggers"
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="json for machine-readable output, console for local runs"
    )
    environment: str = "development"

    # Upload Limits
    max_file_size_mb: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum report file size accepted by the parsers (MB)"
    )

    # Diagnostics
    header_sample_size: int = Field(
        default=30,
        ge=1,
        le=200,
        description="How many header texts are kept in diagnostics for operators"
    )

    model_config = SettingsConfigDict(
        env_prefix="INGESTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> IngestionSettings:
    """Return the cached settings instance."""
    return IngestionSettings()


settings = get_settings()


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structlog for JSON (or console) logging."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    renderer: Any
    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)

    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Initialize logging on module import (after settings are loaded)
configure_logging(
    settings.log_level,
    "json" if settings.is_production else settings.log_format,
)
