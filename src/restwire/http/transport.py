# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Protocol


@dataclass
class TransportRequest:
    url: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    timeout: Optional[float] = None

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup"""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def with_header(self, name: str, value: str) -> "TransportRequest":
        """Copy of the request with ``name`` set, replacing any casing of it"""
        lowered = name.lower()
        headers = {k: v for k, v in self.headers.items() if k.lower() != lowered}
        headers[name] = value
        return replace(self, headers=headers)


@dataclass
class HTTPOutcome:
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    elapsed_time: Optional[float] = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class TransportError(Exception):
    """Raised by transports when no response could be obtained"""


class TransportTimeout(TransportError):
    """Raised when a request times out"""


class TransportConnectionError(TransportError):

    def __init__(self, request: TransportRequest, message: str = "Network error"):
        self.request = request
        super().__init__(message)


class Transport(Protocol):
    """
    Capability that performs the network I/O.

    Implementations must return an ``HTTPOutcome`` for every response,
    whatever its status, and raise only when no response was received.
    """

    async def send(self, request: TransportRequest) -> HTTPOutcome: ...

    async def send_upload(
        self, request: TransportRequest, body: bytes
    ) -> HTTPOutcome: ...


__all__ = [
    "TransportRequest",
    "HTTPOutcome",
    "TransportError",
    "TransportTimeout",
    "TransportConnectionError",
    "Transport",
]
