"""
Per-class configuration of the dynamic attribute layer.

    class Item(Record):
        data: str | None = None
        dynamic_attributes = DynamicAttributeConfig(
            defaults={"hasComment": False, "commentCount": 0},
        )
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

SaveFilter = Union[bool, Callable[[Dict[str, Any]], Mapping[str, Any]], None]


class DynamicAttributeConfig(BaseModel):
    storage_field: str = "data"  # record field holding the serialized payload
    defaults: Dict[str, Any] = Field(default_factory=dict)
    allow_arbitrary_names: bool = False
    codec: Any = "json"  # tag | Codec | Codec subclass | {serialize, unserialize}
    save_defaults: bool = True  # False: drop entries equal to their default before filtering
    save_filter: Optional[SaveFilter] = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @field_validator("storage_field")
    @classmethod
    def _check_storage_field(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"storage_field must be an identifier, got {value!r}")
        return value
