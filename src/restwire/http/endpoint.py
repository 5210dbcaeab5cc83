# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Optional


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class EndpointDescriptor:
    """Immutable description of one HTTP call."""

    base_url: str
    path: str
    method: HttpMethod = HttpMethod.GET
    headers: Optional[Mapping[str, str]] = None
    query_parameters: Optional[Mapping[str, str]] = None
    body: Any = None


@dataclass(frozen=True)
class Tokens:
    access_token: str
    refresh_token: str
    expiry: Optional[datetime] = None

    def is_expired(self, leeway: float = 0.0, now: Optional[datetime] = None) -> bool:
        """
        Whether the access token is past its expiry, ``leeway`` seconds early.
        Tokens without an expiry never expire from the client's point of view.
        """
        if self.expiry is None:
            return False
        expiry = self.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        return now >= expiry - timedelta(seconds=leeway)


@dataclass(frozen=True)
class UploadPayload:
    data: bytes
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    form_fields: Optional[Mapping[str, str]] = None


__all__ = [
    "HttpMethod",
    "EndpointDescriptor",
    "Tokens",
    "UploadPayload",
]
