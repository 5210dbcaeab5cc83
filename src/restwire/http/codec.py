# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from datetime import datetime
from typing import Any, Callable, Literal, Protocol, TypeVar, get_args

from pydantic import TypeAdapter
from pydantic.alias_generators import to_camel, to_snake
from pydantic_core import from_json, to_json

T = TypeVar("T")

KeyStrategy = Literal["identity", "camel_case"]
DateStrategy = Literal["iso8601", "seconds_since_epoch"]


class Codec(Protocol):
    """
    Pluggable payload serializer.

    Both methods may raise anything on failure; callers wrap the exception in
    ``EncodingError`` or ``DecodingError``.
    """

    content_type: str

    def encode(self, value: Any) -> bytes: ...

    def decode(self, data: bytes, type_: Any) -> Any: ...


def _rewrite_keys(value: Any, convert: Callable[[str], str]) -> Any:
    if isinstance(value, dict):
        return {
            (convert(k) if isinstance(k, str) else k): _rewrite_keys(v, convert)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_rewrite_keys(item, convert) for item in value]
    return value


def _rewrite_dates(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, dict):
        return {k: _rewrite_dates(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_rewrite_dates(item) for item in value]
    return value


class PydanticJSONCodec:
    """
    JSON codec backed by pydantic.

    Anything pydantic can serialize is accepted (models, dataclasses, typed
    dicts, plain containers). With ``key_strategy="camel_case"`` snake_case
    keys are sent as camelCase and camelCase keys are read back as snake_case.
    Decoding accepts both ISO-8601 strings and epoch numbers for datetimes,
    whatever the date strategy.
    """

    content_type = "application/json"

    def __init__(
        self,
        key_strategy: KeyStrategy = "identity",
        date_strategy: DateStrategy = "iso8601",
    ):
        if key_strategy not in get_args(KeyStrategy):
            raise ValueError(f"Unknown key strategy {key_strategy!r}")
        if date_strategy not in get_args(DateStrategy):
            raise ValueError(f"Unknown date strategy {date_strategy!r}")
        self.key_strategy = key_strategy
        self.date_strategy = date_strategy

    def encode(self, value: Any) -> bytes:
        plain = TypeAdapter(type(value)).dump_python(value, by_alias=True)
        if self.date_strategy == "seconds_since_epoch":
            plain = _rewrite_dates(plain)
        if self.key_strategy == "camel_case":
            plain = _rewrite_keys(plain, to_camel)
        return to_json(plain)

    def decode(self, data: bytes, type_: type[T]) -> T:
        adapter: TypeAdapter[T] = TypeAdapter(type_)
        if self.key_strategy == "identity":
            return adapter.validate_json(data)
        return adapter.validate_python(_rewrite_keys(from_json(data), to_snake))


__all__ = [
    "Codec",
    "PydanticJSONCodec",
    "KeyStrategy",
    "DateStrategy",
]
