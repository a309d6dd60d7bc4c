"""
Memoose - Configuration Schemas

Typed configuration models using Pydantic for validation and type safety.
All settings are read from environment variables by the loader.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class CacheBackend(str, Enum):
    """Supported cache providers."""

    MEMORY = "memory"
    REDIS = "redis"
    REDIS_CLUSTER = "redis_cluster"
    DISABLED = "disabled"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Cache provider configuration."""

    backend: CacheBackend = Field(default=CacheBackend.MEMORY, description="Cache provider to use")
    ttl_seconds: int = Field(default=300, ge=0, description="Default memoization TTL in seconds")
    namespace: str = Field(default="", description="Optional key prefix applied by the provider")

    # Memory-specific settings
    sweep_interval: float = Field(default=1.0, gt=0, description="Seconds between expired-entry sweeps")
    stores_as_obj: bool = Field(default=False, description="Keep Python objects instead of serialized text")

    # Redis-specific settings (only used when backend is redis or redis_cluster)
    redis_url: str | None = Field(default=None, validate_default=True, description="Redis connection URL")
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: int = Field(default=5, ge=1, description="Redis socket timeout in seconds")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure redis_url is provided when a Redis backend is selected."""
        backend = info.data.get("backend")
        if backend in (CacheBackend.REDIS, CacheBackend.REDIS_CLUSTER) and not v:
            raise ValueError(f"redis_url is required when cache backend is '{backend.value}'")
        return v


class MemooseConfig(BaseModel):
    """Root configuration for Memoose."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
