"""
Memoose - Cached Results

Every cache entry written by the engine is a CachedItem envelope, so a stored
None is still a hit and a stored failure can be told apart from a value.

Text providers cannot hold exception objects. A failure is recorded as its
class location, args and message, and rebuilt on read when the class is
importable from an already loaded module and accepts its recorded args.
Otherwise the read raises CachedRejectionError with the recorded details.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Any

from ..errors import CachedRejectionError, SerializationError

logger = logging.getLogger(__name__)

_JSON_SCALARS = (str, int, float, bool, type(None))


@dataclass
class CachedItem:
    """A cached value, or a cached failure when reject is True."""

    data: Any
    reject: bool = False

    def to_payload(self) -> dict[str, Any]:
        """Envelope written to text providers."""
        return {
            "data": describe_failure(self.data) if self.reject else self.data,
            "reject": self.reject,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> CachedItem:
        """Rebuild an item from the envelope written by to_payload()."""
        if not isinstance(payload, dict) or "reject" not in payload:
            raise SerializationError(
                "Cache entry is not a memoized result envelope",
                details={"payload_type": type(payload).__name__},
            )
        if payload["reject"]:
            return cls(rebuild_failure(payload.get("data") or {}), reject=True)
        return cls(payload.get("data"), reject=False)


def describe_failure(exc: BaseException) -> dict[str, Any]:
    """Record an exception as JSON-safe data."""
    exc_type = type(exc)
    return {
        "module": exc_type.__module__,
        "qualname": exc_type.__qualname__,
        "args": [a if isinstance(a, _JSON_SCALARS) else str(a) for a in exc.args],
        "message": str(exc),
    }


def _resolve_class(module_name: str, qualname: str) -> type | None:
    # Only look in modules that are already imported; cache data never triggers imports
    target: Any = sys.modules.get(module_name)
    for part in qualname.split("."):
        if target is None or part == "<locals>":
            return None
        target = getattr(target, part, None)
    return target if isinstance(target, type) else None


def rebuild_failure(description: dict[str, Any]) -> BaseException:
    """Turn a describe_failure() record back into an exception instance."""
    module_name = description.get("module", "")
    qualname = description.get("qualname", "")
    args = list(description.get("args") or [])
    message = description.get("message", "")
    type_name = f"{module_name}.{qualname}" if module_name else qualname

    exc_type = _resolve_class(module_name, qualname)
    if exc_type is not None and issubclass(exc_type, Exception):
        try:
            return exc_type(*args)
        except Exception as e:
            logger.debug(f"Could not rebuild cached failure {type_name}: {e}")

    return CachedRejectionError(type_name, message, args)
