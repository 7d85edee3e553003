from __future__ import annotations
from functools import lru_cache
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import to_json

from .errors import DecodeError

T = TypeVar("T")


def dumps(value: Any) -> bytes:
    """
    Encode a model (or any pydantic-serializable value) for the wire:
    wire aliases, None fields dropped, dates/datetimes as ISO-8601 strings.
    """
    if isinstance(value, BaseModel):
        return value.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
    return to_json(value, by_alias=True, exclude_none=True)


@lru_cache(maxsize=None)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def loads(raw: bytes | str, shape: Type[T], status_code: Optional[int] = None) -> T:
    """Decode a full response body into `shape`; unknown fields are ignored by the response models."""
    try:
        return _adapter(shape).validate_json(raw)
    except ValidationError as e:
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        raise DecodeError(
            f"Cannot decode response into {getattr(shape, '__name__', shape)}: {e.error_count()} error(s)",
            status_code=status_code,
            body=text,
        ) from e
