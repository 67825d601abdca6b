"""
Public surface for dynattr.
Importing this module does **not** touch the database; call
`dynattr.init_dynattr(engine)` during application start-up before saving.
"""

from .bootstrap import init_dynattr
from .core.attributes import AttributeStore
from .core.codecs import (
    CallbackCodec,
    Codec,
    JsonCodec,
    JsonExpression,
    JsonExpressionCodec,
    NativeCodec,
    resolve_codec,
)
from .core.config import DynamicAttributeConfig
from .core.record import Record
from .errors import (
    ConfigurationError,
    DecodeError,
    DynamicAttributeError,
    UnknownAttributeError,
)
from .events import on

__all__ = [
    "AttributeStore",
    "CallbackCodec",
    "Codec",
    "ConfigurationError",
    "DecodeError",
    "DynamicAttributeConfig",
    "DynamicAttributeError",
    "JsonCodec",
    "JsonExpression",
    "JsonExpressionCodec",
    "NativeCodec",
    "Record",
    "UnknownAttributeError",
    "init_dynattr",
    "on",
]
