"""lognorm configuration management."""

import json
from functools import lru_cache
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LOGNORM_",
        case_sensitive=False,
    )

    # Application
    app_name: str = "lognorm"
    app_version: str = "0.4.0"
    debug: bool = False
    log_level: str = "INFO"

    # Worker pool
    worker_concurrency: int = 8

    # Output batching
    batch_max_events: int = 10000
    batch_max_age_seconds: float = 60.0
    partition_granularity: str = "hour"  # hour, day

    # Source classification: source id prefix -> log type name
    source_rules: Annotated[dict[str, str], NoDecode] = {}

    @field_validator("source_rules", mode="before")
    @classmethod
    def parse_source_rules(cls, v: Any) -> dict[str, str]:
        # Accepts JSON or "prefix=LogType,prefix=LogType"
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return {}
            if v.startswith("{"):
                return json.loads(v)
            rules = {}
            for item in v.split(","):
                prefix, _, log_type = item.partition("=")
                if prefix.strip() and log_type.strip():
                    rules[prefix.strip()] = log_type.strip()
            return rules
        return v

    @field_validator("partition_granularity")
    @classmethod
    def check_granularity(cls, v: str) -> str:
        v = v.lower()
        if v not in ("hour", "day"):
            raise ValueError("partition_granularity must be 'hour' or 'day'")
        return v

    # Error reporting
    error_sample_size: int = 10

    # Sink
    sink_backend: str = "local"  # local, s3
    sink_path: str = "/var/lib/lognorm/output"
    sink_bucket: str | None = None
    sink_prefix: str = "logs"
    sink_region: str | None = None
    sink_endpoint_url: str | None = None  # For S3-compatible storage (MinIO, etc.)
    sink_access_key: str | None = None
    sink_secret_key: str | None = None

    # Celery broker
    redis_url: str = "redis://localhost:6379"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
