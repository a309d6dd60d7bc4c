"""
Memoose - Core Error Types

Defines the exception hierarchy for the memoization engine and its cache
providers. Library errors inherit from MemooseError.

Failures raised by a memoized function are never wrapped in these types: the
engine re-raises them exactly as produced.
"""

from typing import Any


class MemooseError(Exception):
    """Base exception for all Memoose errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logging or API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(MemooseError):
    """Raised when configuration is invalid or missing."""


class CacheError(MemooseError):
    """Base exception for cache provider errors."""


class SerializationError(CacheError):
    """Raised when a value cannot be encoded to or decoded from cache text."""


class MemoizeError(MemooseError):
    """Base exception for errors raised by the memoization engine itself."""


class MultiExecResultError(MemoizeError):
    """Raised when a multi_exec override returns the wrong number of results."""

    def __init__(self, expected: int, received: int):
        message = f"multi_exec override returned {received} result(s) for {expected} argument tuple(s)"
        super().__init__(message, {"expected": expected, "received": received})
        self.expected = expected
        self.received = received


class CachedRejectionError(MemoizeError):
    """
    Raised for a cached failure whose original exception class cannot be rebuilt.

    Carries the recorded type name and message so callers can still tell what
    failed the first time.
    """

    def __init__(self, type_name: str, message: str, args: list[Any] | None = None):
        super().__init__(
            f"{type_name}: {message}" if message else type_name,
            {"type": type_name, "args": args or []},
        )
        self.type_name = type_name
        self.original_message = message
