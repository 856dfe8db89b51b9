"""Shared model base and field helpers."""

from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire and in MongoDB."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def optional_object_id(value: Any) -> Optional[str]:
    """Normalize an optional reference id; empty values mean "no reference"."""
    if value is None or value == "":
        return None
    value = str(value)
    if not ObjectId.is_valid(value):
        raise ValueError("must be a valid id")
    return value


def required_object_id(value: Any) -> str:
    value = optional_object_id(value)
    if value is None:
        raise ValueError("is required")
    return value
