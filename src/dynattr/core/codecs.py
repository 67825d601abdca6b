"""
Codecs turn the attribute mapping into the value kept in the storage field
and back.

* `NativeCodec`        – pickle, any nested Python structure (bytes payload)
* `JsonCodec`          – compact JSON text (str payload)
* `CallbackCodec`      – two user-supplied functions
* `JsonExpressionCodec`– wraps the mapping in a `JsonExpression` marker for
  database-native JSON columns

`resolve_codec()` maps a shorthand spec (tag, class, instance, function pair)
to a live codec.
"""

from __future__ import annotations

import json
import logging
import pickle
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Dict

from sqlalchemy import JSON, type_coerce
from sqlalchemy.dialects.postgresql import JSONB

from ..errors import ConfigurationError, DecodeError

logger = logging.getLogger(__name__)


def _as_mapping(value: Any) -> Dict[str, Any]:
    # anything that is not an object decodes to "no attributes"
    if isinstance(value, Mapping):
        return dict(value)
    return {}


class Codec(ABC):
    """Serialize/unserialize pair for the attribute mapping."""

    @abstractmethod
    def serialize(self, value: Dict[str, Any]) -> Any: ...

    @abstractmethod
    def unserialize(self, value: Any) -> Dict[str, Any]: ...


class NativeCodec(Codec):
    """Python's own serialization format (pickle)."""

    def __init__(self, protocol: int = pickle.DEFAULT_PROTOCOL):
        self.protocol = protocol

    def serialize(self, value: Dict[str, Any]) -> bytes:
        return pickle.dumps(value, protocol=self.protocol)

    def unserialize(self, value: Any) -> Dict[str, Any]:
        if not value:
            return {}
        try:
            decoded = pickle.loads(value)
        except (
            pickle.UnpicklingError,
            EOFError,
            AttributeError,
            ImportError,
            IndexError,
            TypeError,
            ValueError,
        ) as exc:
            raise DecodeError(f"cannot unpickle stored payload: {exc}") from exc
        return _as_mapping(decoded)


class JsonCodec(Codec):
    """Compact JSON text, e.g. ``{"commentCount":10}``."""

    def __init__(self, ensure_ascii: bool = False):
        self.ensure_ascii = ensure_ascii

    def serialize(self, value: Dict[str, Any]) -> str:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=self.ensure_ascii)

    def unserialize(self, value: Any) -> Dict[str, Any]:
        if not value:
            return {}
        try:
            decoded = json.loads(value)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
            raise DecodeError(f"cannot decode stored JSON payload: {exc}") from exc
        return _as_mapping(decoded)


class CallbackCodec(Codec):
    """Delegates to two injected callables."""

    def __init__(
        self,
        serialize: Callable[[Dict[str, Any]], Any],
        unserialize: Callable[[Any], Any],
    ):
        if not callable(serialize) or not callable(unserialize):
            raise ConfigurationError("CallbackCodec needs two callables")
        self._serialize = serialize
        self._unserialize = unserialize

    def serialize(self, value: Dict[str, Any]) -> Any:
        return self._serialize(value)

    def unserialize(self, value: Any) -> Dict[str, Any]:
        if not value:
            return {}
        try:
            decoded = self._unserialize(value)
        except DecodeError:
            raise
        except Exception as exc:
            raise DecodeError(f"unserialize callback failed: {exc}") from exc
        return _as_mapping(decoded)


class JsonExpression:
    """Marker wrapping a value meant for a JSON/JSONB column parameter.

    Usable directly in ``insert(table).values(doc=JsonExpression({...}))``.
    """

    def __init__(self, value: Any, type: str | None = None):
        self.value = value
        self.type = type

    def __clause_element__(self):
        json_type = JSONB() if self.type == "jsonb" else JSON()
        return type_coerce(self.value, json_type)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonExpression):
            return NotImplemented
        return self.value == other.value and self.type == other.type

    def __repr__(self) -> str:
        return f"JsonExpression({self.value!r}, type={self.type!r})"


class JsonExpressionCodec(Codec):
    """For database columns that speak JSON natively."""

    def __init__(self, type: str | None = None):
        self.type = type

    def serialize(self, value: Dict[str, Any]) -> JsonExpression:
        return JsonExpression(value, self.type)

    def unserialize(self, value: Any) -> Dict[str, Any]:
        if isinstance(value, JsonExpression):
            value = value.value
        if isinstance(value, (str, bytes)):
            # drivers without JSON support hand back text
            return JsonCodec().unserialize(value)
        return _as_mapping(value)


_TAGS: Dict[str, type[Codec]] = {
    "json": JsonCodec,
    "native": NativeCodec,
    "pickle": NativeCodec,
    "json_expression": JsonExpressionCodec,
}


def resolve_codec(spec: Any) -> Codec:
    """Turn a codec spec into a `Codec` instance."""
    if isinstance(spec, Codec):
        return spec
    if isinstance(spec, type) and issubclass(spec, Codec):
        codec = spec()
    elif isinstance(spec, str):
        try:
            codec = _TAGS[spec]()
        except KeyError:
            raise ConfigurationError(
                f"unknown codec tag {spec!r}; expected one of {sorted(_TAGS)}"
            ) from None
    elif isinstance(spec, Mapping):
        try:
            codec = CallbackCodec(spec["serialize"], spec["unserialize"])
        except KeyError as exc:
            raise ConfigurationError(f"codec mapping is missing {exc.args[0]!r}") from None
    elif isinstance(spec, tuple) and len(spec) == 2:
        codec = CallbackCodec(*spec)
    else:
        raise ConfigurationError(f"cannot build a codec from {spec!r}")
    logger.debug("resolved codec spec %r to %s", spec, type(codec).__name__)
    return codec
