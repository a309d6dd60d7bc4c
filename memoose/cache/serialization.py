"""
Memoose - Cache Value Serialization

JSON marshalling for providers that store text. Callers can plug in a
serializer/deserializer pair that behaves like the replacer/reviver hooks of
JSON.stringify/JSON.parse, which is how values that JSON cannot express
natively (Decimal, datetime, custom classes) get through a text cache.

- serializer(key, value) runs top-down, before a value's children are visited
- deserializer(key, value) runs bottom-up, after a value's children are rebuilt
- key is "" for the root, the field name inside mappings and the index
  (as a string) inside lists

Example:
    options = SerializationOptions(
        serializer=lambda k, v: f"__DECIMAL__{v}" if isinstance(v, Decimal) else v,
        deserializer=lambda k, v: Decimal(v[11:]) if isinstance(v, str) and v.startswith("__DECIMAL__") else v,
    )
    text = dumps({"price": Decimal("1.10")}, options)
    loads(text, options)  # {"price": Decimal("1.10")}
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from ..errors import SerializationError

logger = logging.getLogger(__name__)

TSerializer = Callable[[str, Any], Any]
TDeserializer = Callable[[str, Any], Any]


@dataclass(frozen=True)
class SerializationOptions:
    """
    Optional hooks used when a provider stores values as text.

    Attributes:
        serializer: Replacer applied to every value before JSON encoding
        deserializer: Reviver applied to every value after JSON decoding
    """

    serializer: TSerializer | None = None
    deserializer: TDeserializer | None = None


def _replace(key: str, value: Any, serializer: TSerializer) -> Any:
    value = serializer(key, value)
    if isinstance(value, Mapping):
        return {str(k): _replace(str(k), v, serializer) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_replace(str(i), v, serializer) for i, v in enumerate(value)]
    return value


def _revive(key: str, value: Any, deserializer: TDeserializer) -> Any:
    if isinstance(value, dict):
        value = {k: _revive(k, v, deserializer) for k, v in value.items()}
    elif isinstance(value, list):
        value = [_revive(str(i), v, deserializer) for i, v in enumerate(value)]
    return deserializer(key, value)


def dumps(value: Any, options: SerializationOptions | None = None) -> str:
    """
    Serialize a value to compact JSON text.

    Raises:
        SerializationError: If the value (after the serializer hook) is not JSON-encodable
    """
    if options is not None and options.serializer is not None:
        value = _replace("", value, options.serializer)
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        logger.error(
            f"Failed to serialize value for cache: {e}",
            extra={"value_type": type(value).__name__, "error": str(e)},
        )
        raise SerializationError(
            f"Value of type {type(value).__name__} is not JSON serializable: {e}",
            details={"value_type": type(value).__name__, "error": str(e)},
        ) from e


def loads(data: str | bytes, options: SerializationOptions | None = None) -> Any:
    """
    Deserialize JSON text produced by dumps().

    Raises:
        SerializationError: If the data is not valid JSON
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    try:
        value = json.loads(data)
    except ValueError as e:
        logger.error(
            f"Failed to decode JSON from cache: {e}",
            extra={"data_preview": data[:100], "error": str(e)},
        )
        raise SerializationError(
            f"Cached data is not valid JSON: {e}",
            details={"data_preview": data[:100], "error": str(e)},
        ) from e
    if options is not None and options.deserializer is not None:
        value = _revive("", value, options.deserializer)
    return value
