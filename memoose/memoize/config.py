"""
Memoose - Memoize Options

Explicit options model for Memoize instances.
"""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..cache.interface import CacheProvider
from .keys import FingerprintMode


class MemoizeConfig(BaseModel):
    """
    Options for one memoized function.

    Attributes:
        cache_provider: Provider to store results in (default: the factory's "default" provider)
        args_order_vain: Ignore argument order when deriving keys
        multi_exec_override: Batched replacement for per-tuple calls in multi_exec/multi_call;
            receives every argument tuple and returns results in the same order
        fingerprint_mode: How mapping arguments contribute to keys
        name: Name used in cache keys instead of the function's qualified name
    """

    cache_provider: CacheProvider | None = Field(default=None, description="Cache provider used for storage")
    args_order_vain: bool = Field(default=False, description="Make argument order irrelevant to keys")
    multi_exec_override: Callable[..., Any] | None = Field(
        default=None, description="Batched computation used instead of one call per argument tuple"
    )
    fingerprint_mode: FingerprintMode = Field(
        default=FingerprintMode.VALUES, description="Mapping reduction used in key fingerprints"
    )
    name: str | None = Field(default=None, description="Function name used in cache keys")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Names end up inside a "{...}" hash tag, so they cannot contain braces."""
        if v is None:
            return v
        if not v or "{" in v or "}" in v:
            raise ValueError("name must be non-empty and must not contain braces")
        return v
