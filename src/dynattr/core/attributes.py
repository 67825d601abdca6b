"""
AttributeStore – the dynamic attribute bag that lives on every Record.

* Lazily decodes the owner's storage field on first access and folds the
  defaults underneath it (once).
* `get`/`set`/`has`/`unset` enforce the admission policy.
* `before_save()` filters, sorts and encodes the mapping back into the
  storage field, but only if the bag was ever touched.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List

from ..errors import UnknownAttributeError
from .codecs import Codec, resolve_codec
from .config import DynamicAttributeConfig, SaveFilter

logger = logging.getLogger(__name__)


def _is_default(value: Any, default: Any) -> bool:
    # typed comparison, nested containers included: 0, False and None differ
    if type(value) is not type(default):
        return False
    if isinstance(value, dict):
        return value.keys() == default.keys() and all(
            _is_default(value[key], default[key]) for key in value
        )
    if isinstance(value, (list, tuple)):
        return len(value) == len(default) and all(
            _is_default(item, other) for item, other in zip(value, default)
        )
    return value == default


class AttributeStore:
    """Dynamic attributes of a single owner object."""

    def __init__(
        self,
        owner: Any,
        storage_field: str = "data",
        *,
        defaults: Dict[str, Any] | None = None,
        allow_arbitrary_names: bool = False,
        codec: Any = "json",
        save_defaults: bool = True,
        save_filter: SaveFilter = None,
    ):
        self.owner = owner
        self.storage_field = storage_field
        self.defaults: Dict[str, Any] = dict(defaults or {})
        self.allow_arbitrary_names = allow_arbitrary_names
        self.save_defaults = save_defaults
        self.save_filter = save_filter
        self._codec_spec: Any = codec
        self._codec: Codec | None = None
        self._values: Dict[str, Any] | None = None

    @classmethod
    def from_config(cls, owner: Any, config: DynamicAttributeConfig) -> "AttributeStore":
        return cls(
            owner,
            config.storage_field,
            defaults=config.defaults,
            allow_arbitrary_names=config.allow_arbitrary_names,
            codec=config.codec,
            save_defaults=config.save_defaults,
            save_filter=config.save_filter,
        )

    def clone(self, owner: Any, deep: bool = False) -> "AttributeStore":
        """Copy of this store bound to another owner."""
        new = copy.copy(self)
        new.owner = owner
        copier = copy.deepcopy if deep else dict
        new.defaults = copier(self.defaults)
        if self._values is not None:
            new._values = copier(self._values)
        return new

    def __deepcopy__(self, memo: Dict[int, Any]) -> "AttributeStore":
        # the owner is rebound by whoever copies it
        return self.clone(self.owner, deep=True)

    # ------------------------------------------------------------------ #
    # codec
    # ------------------------------------------------------------------ #
    @property
    def codec(self) -> Codec:
        if self._codec is None:
            self._codec = resolve_codec(self._codec_spec)
        return self._codec

    @codec.setter
    def codec(self, spec: Any) -> None:
        self._codec_spec = spec
        self._codec = None

    # ------------------------------------------------------------------ #
    # mapping
    # ------------------------------------------------------------------ #
    @property
    def owner_type(self) -> str:
        return type(self.owner).__name__

    @property
    def is_initialized(self) -> bool:
        return self._values is not None

    def _read_raw(self) -> Any:
        # bypass __getattr__ fallbacks, which may lead back into this store
        try:
            return object.__getattribute__(self.owner, self.storage_field)
        except AttributeError:
            return None

    def _materialize(self) -> Dict[str, Any]:
        if self._values is None:
            raw = self._read_raw()
            decoded = self.codec.unserialize(raw)
            values = copy.deepcopy(self.defaults)
            values.update(decoded)
            self._values = values
            logger.debug(
                "loaded %d dynamic attribute(s) for %s", len(values), self.owner_type
            )
        return self._values

    def get_all(self) -> Dict[str, Any]:
        """Return a copy of every dynamic attribute (defaults included)."""
        return dict(self._materialize())

    def set_all(self, values: Dict[str, Any]) -> None:
        """Replace the whole mapping. Names are not checked."""
        self._values = dict(values)

    def names(self) -> List[str]:
        return list(self._materialize())

    def get(self, name: str) -> Any:
        values = self._materialize()
        if name not in values:
            raise UnknownAttributeError(name, self.owner_type)
        return values[name]

    def set(self, name: str, value: Any) -> None:
        values = self._materialize()
        if name not in values and not self.allow_arbitrary_names:
            raise UnknownAttributeError(name, self.owner_type)
        values[name] = value

    def has(self, name: str) -> bool:
        return name in self._materialize()

    def unset(self, name: str) -> None:
        """Remove `name` if present (no error if absent)."""
        self._materialize().pop(name, None)

    def can_set(self, name: str) -> bool:
        return self.allow_arbitrary_names or self.has(name)

    # ------------------------------------------------------------------ #
    # save
    # ------------------------------------------------------------------ #
    def _without_defaults(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {
            name: value
            for name, value in values.items()
            if not (name in self.defaults and _is_default(value, self.defaults[name]))
        }

    def payload(self) -> Dict[str, Any]:
        """Mapping as it will be encoded: defaults dropped if `save_defaults`
        is off, then the save filter, keys sorted."""
        values = dict(self._materialize())
        if not self.save_defaults:
            values = self._without_defaults(values)
        save_filter = self.save_filter
        if save_filter is True:
            values = self._without_defaults(values)
        elif callable(save_filter):
            values = dict(save_filter(values))
        return dict(sorted(values.items()))

    def before_save(self) -> None:
        """Write the encoded mapping into the owner's storage field."""
        if self._values is None:
            logger.debug("dynamic attributes of %s untouched, skipping", self.owner_type)
            return
        payload = self.payload()
        setattr(self.owner, self.storage_field, self.codec.serialize(payload))
        logger.debug(
            "wrote %d dynamic attribute(s) to %s.%s",
            len(payload),
            self.owner_type,
            self.storage_field,
        )
