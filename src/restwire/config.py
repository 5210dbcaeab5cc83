# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "RESTWIRE_"


def _from_env(name: str, default: Any) -> Any:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value == "":
        return default
    return value


def parse_header_list(value: str) -> dict[str, str]:
    """Parse ``"Key=Value,Other=Value"`` into an ordered header mapping."""
    headers: dict[str, str] = {}
    for item in value.split(","):
        if "=" not in item:
            continue
        key, val = item.split("=", 1)
        if key.strip():
            headers[key.strip()] = val.strip()
    return headers


class ClientConfig(BaseModel):
    """
    Settings shared by every request issued through a ``NetworkClient``.

    Unset fields fall back to ``RESTWIRE_*`` environment variables, then to the
    built-in defaults. Invalid environment values fail validation on
    construction instead of being silently ignored.
    """

    model_config = ConfigDict(validate_default=True)

    timeout: float | None = Field(
        default_factory=lambda: _from_env("TIMEOUT", 30.0)
    )
    refresh_leeway: float = Field(
        default_factory=lambda: _from_env("REFRESH_LEEWAY", 0.0), ge=0
    )
    proactive_refresh: bool = Field(
        default_factory=lambda: _from_env("PROACTIVE_REFRESH", True)
    )
    default_headers: dict[str, str] = Field(
        default_factory=lambda: _from_env("DEFAULT_HEADERS", {})
    )
    error_type: Any = dict[str, Any]

    @field_validator("default_headers", mode="before")
    @classmethod
    def _parse_default_headers(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_header_list(value)
        return value
