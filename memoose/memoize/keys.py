"""
Memoose - Cache Key Generation

Turns a function name and an argument list into a stable cache key of the form
"{<function name>}:<md5 hex>". The braces form a Redis Cluster hash tag so all
keys of one function share a slot.

Arguments are reduced to a fingerprint before hashing:
- UNDEFINED -> "__undefined__", None -> "__null__"
- objects or mappings with a truthy "_id"/"id" -> str(identifier)
- datetime/date -> epoch milliseconds (naive values as UTC)
- str/int/float/bool -> str(value)
- list/tuple -> element-wise, order kept; set/frozenset -> element-wise, sorted
- mappings -> their values only (FingerprintMode.VALUES) or sorted
  [key, value] pairs (FingerprintMode.ITEMS)
- anything else -> str(value)

Fingerprints are recursive and do not guard against cycles.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterator, Mapping
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

UNDEFINED_TOKEN = "__undefined__"
NULL_TOKEN = "__null__"


class _Undefined:
    """Marker for an explicitly absent argument, distinct from None."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


class FingerprintMode(str, Enum):
    """How mappings contribute to a fingerprint."""

    VALUES = "values"  # keys discarded; {"a": 1} and {"b": 1} collide
    ITEMS = "items"  # keys kept


def _identifier(o: Any) -> Any | None:
    if isinstance(o, Mapping):
        for field in ("_id", "id"):
            ident = o.get(field)
            if ident:
                return ident
        return None
    for field in ("_id", "id"):
        ident = getattr(o, field, None)
        if ident and not callable(ident):
            return ident
    return None


def _epoch_millis(o: date) -> int:
    # Naive values are read as UTC so keys do not depend on the host timezone
    if not isinstance(o, datetime):
        o = datetime(o.year, o.month, o.day, tzinfo=timezone.utc)
    elif o.tzinfo is None:
        o = o.replace(tzinfo=timezone.utc)
    return int(o.timestamp() * 1000)


def _leaves(fingerprint: Any) -> Iterator[Any]:
    if isinstance(fingerprint, list):
        for item in fingerprint:
            yield from _leaves(item)
    else:
        yield fingerprint


class CacheKeyGenerator:
    """
    Derives cache keys for one function.

    Args:
        function_name: Name embedded in every key
        args_order_vain: Ignore argument order (only the multiset of leaf values counts)
        fingerprint_mode: How mapping arguments are reduced

    Example:
        >>> keys = CacheKeyGenerator("sum_of", args_order_vain=True)
        >>> keys.for_args(1, 2, 3) == keys.for_args(3, 2, 1)
        True
    """

    def __init__(
        self,
        function_name: str,
        args_order_vain: bool = False,
        fingerprint_mode: FingerprintMode = FingerprintMode.VALUES,
    ):
        self.function_name = function_name
        self.args_order_vain = args_order_vain
        self.fingerprint_mode = FingerprintMode(fingerprint_mode)

    def __call__(self, *args: Any) -> str:
        return self.for_args(*args)

    def for_args(self, *args: Any) -> str:
        """Return the cache key for this argument list."""
        fingerprint = self.fingerprint(args)
        payload = json.dumps([self.function_name, *fingerprint], ensure_ascii=False, separators=(",", ":"))
        digest = hashlib.md5(payload.encode("utf-8"), usedforsecurity=False).hexdigest()
        return f"{{{self.function_name}}}:{digest}"

    def fingerprint(self, args: tuple[Any, ...] | list[Any]) -> list[Any]:
        """Flatten an argument list into its fingerprint (sorted leaves when order is vain)."""
        flattened = [self._flatten(arg) for arg in args]
        if self.args_order_vain:
            return sorted(_leaves(flattened), key=str)
        return flattened

    def _flatten(self, o: Any) -> Any:
        if o is UNDEFINED:
            return UNDEFINED_TOKEN
        if o is None:
            return NULL_TOKEN

        if isinstance(o, (str, int, float)):
            return str(o)

        ident = _identifier(o)
        if ident is not None:
            return str(ident)

        if isinstance(o, date):
            return _epoch_millis(o)

        if isinstance(o, (list, tuple)):
            return [self._flatten(item) for item in o]

        if isinstance(o, (set, frozenset)):
            return sorted((self._flatten(item) for item in o), key=str)

        if isinstance(o, Mapping):
            if self.fingerprint_mode is FingerprintMode.ITEMS:
                return [[str(k), self._flatten(v)] for k, v in sorted(o.items(), key=lambda kv: str(kv[0]))]
            return [self._flatten(v) for v in o.values()]  # might lead to collisions

        return str(o)
