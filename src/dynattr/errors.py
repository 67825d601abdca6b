"""
Exceptions raised by dynattr.

* `UnknownAttributeError` is also an `AttributeError`, so `getattr(obj, name,
  default)` and `hasattr` keep working on records.
* `DecodeError` and `ConfigurationError` are also `ValueError`s.
"""

from __future__ import annotations


class DynamicAttributeError(Exception):
    """Base class for every dynattr error."""


class UnknownAttributeError(DynamicAttributeError, AttributeError):
    """A dynamic attribute was read or introduced that the store does not admit."""

    def __init__(self, name: str, owner_type: str):
        super().__init__(f"{owner_type} has no dynamic attribute {name!r}")
        self.name = name
        self.owner_type = owner_type


class DecodeError(DynamicAttributeError, ValueError):
    """The stored payload could not be decoded by the configured codec."""


class ConfigurationError(DynamicAttributeError, ValueError):
    """Invalid codec spec or storage field configuration."""
