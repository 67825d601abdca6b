"""
Record – *pure Pydantic* host for dynamic attributes (no SQL imports).

* Declared model fields resolve first; any other public name falls through
  to the per-instance `AttributeStore` (read, write, delete).
* `before_create()` / `before_update()` flush the store into the storage
  field; `RecordStore` calls them right before writing the row.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Type, TypeVar

from pydantic import BaseModel, PrivateAttr

from ..errors import ConfigurationError
from .attributes import AttributeStore
from .config import DynamicAttributeConfig

if TYPE_CHECKING:
    from ..persistence.store import RecordStore

T_Record = TypeVar("T_Record", bound="Record")


class Record(BaseModel):
    """Base class – subclasses declare the storage field named in their config."""

    id: uuid.UUID | None = None

    dynamic_attributes: ClassVar[DynamicAttributeConfig] = DynamicAttributeConfig()
    _store: ClassVar[Optional["RecordStore"]] = None  # injected by init_dynattr()

    _attributes: Optional[AttributeStore] = PrivateAttr(default=None)
    _is_new: bool = PrivateAttr(default=True)

    model_config = {"arbitrary_types_allowed": True}

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        field = cls.dynamic_attributes.storage_field
        if field not in cls.model_fields:
            raise ConfigurationError(
                f"{cls.__name__} must declare the storage field {field!r}"
            )

    def model_post_init(self, _ctx):
        if self.id is None:
            self.id = uuid.uuid4()
        self._attributes = AttributeStore.from_config(self, self.dynamic_attributes)

    @property
    def dynamic(self) -> AttributeStore:
        """The dynamic attribute bag of this instance."""
        return self._attributes  # type: ignore[return-value]

    @property
    def is_new(self) -> bool:
        return self._is_new

    def _mark_stored(self) -> None:
        self._is_new = False

    # copies get their own store, bound to the copy
    def __copy__(self):
        clone = super().__copy__()
        clone._attributes = self.dynamic.clone(clone)
        return clone

    def __deepcopy__(self, memo=None):
        clone = super().__deepcopy__(memo)
        clone.dynamic.owner = clone
        return clone

    # ------------------------------------------------------------------ #
    # two-tier attribute resolution: model fields, then dynamic store
    # ------------------------------------------------------------------ #
    @classmethod
    def _is_own(cls, name: str) -> bool:
        return name.startswith("_") or name in cls.model_fields or hasattr(cls, name)

    def get_attribute(self, name: str) -> Any:
        if self._is_own(name):
            return getattr(self, name)
        return self.dynamic.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        if self._is_own(name):
            super().__setattr__(name, value)
        else:
            self.dynamic.set(name, value)

    def has_attribute(self, name: str) -> bool:
        return name in type(self).model_fields or self.dynamic.has(name)

    def unset_attribute(self, name: str) -> None:
        if not self._is_own(name) and self.dynamic.has(name):
            self.dynamic.unset(name)
        else:
            super().__delattr__(name)

    def can_get_attribute(self, name: str) -> bool:
        return self._is_own(name) or self.dynamic.has(name)

    def can_set_attribute(self, name: str) -> bool:
        if not self._is_own(name):
            return self.dynamic.can_set(name)
        if name.startswith("_") or name in type(self).model_fields:
            return True
        attr = getattr(type(self), name, None)
        return isinstance(attr, property) and attr.fset is not None

    # Python attribute protocol; __getattr__ only runs after normal lookup failed
    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            return super().__getattr__(name)
        attributes = super().__getattr__("_attributes")
        if attributes is None:  # not fully initialised yet
            raise AttributeError(name)
        return attributes.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        self.set_attribute(name, value)

    def __delattr__(self, name: str) -> None:
        self.unset_attribute(name)

    # ------------------------------------------------------------------ #
    # lifecycle hooks
    # ------------------------------------------------------------------ #
    def before_create(self) -> None:
        self.dynamic.before_save()

    def before_update(self) -> None:
        self.dynamic.before_save()

    # ------------------------------------------------------------------ #
    # persistence
    # ------------------------------------------------------------------ #
    def save(self) -> None:
        """Insert a new record or update the stored one."""
        self._ensure_store()
        self._store.save(self)  # type: ignore[union-attr]

    @classmethod
    def hydrate(cls: Type[T_Record], rec_id: uuid.UUID) -> T_Record:
        cls._ensure_store()
        state = cls._store.fetch(rec_id)  # type: ignore[union-attr]
        if not state:
            raise KeyError(f"{cls.__name__} {rec_id} not found")
        data = dict(state["fields"])
        data[cls.dynamic_attributes.storage_field] = state["payload"]
        obj = cls.model_validate(data)
        obj._mark_stored()
        return obj

    @classmethod
    def _ensure_store(cls):
        if cls._store is None:
            raise RuntimeError("Call init_dynattr(engine) before saving a Record")
