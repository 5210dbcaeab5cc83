# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Any, Optional


class NetworkError(Exception):
    """Base class of every error surfaced by the request pipeline."""


class InvalidURL(NetworkError):

    def __init__(self, url: str, reason: str = "malformed URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL {url!r}: {reason}")


class EncodingError(NetworkError):
    """Request body or multipart field could not be serialized"""

    def __init__(self, cause: Any):
        self.cause = cause
        super().__init__(f"Encoding error: {cause}")


class HTTPError(NetworkError):
    """Non-success status whose body decoded into the configured error type"""

    def __init__(self, status_code: int, body: Optional[Any] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP error {status_code}: {body!r}")


class HTTPErrorData(NetworkError):
    """Non-success status whose body could not be decoded"""

    def __init__(self, status_code: int, data: bytes):
        self.status_code = status_code
        self.data = data
        super().__init__(f"HTTP error {status_code} ({len(data)} undecodable bytes)")


class DecodingError(NetworkError):

    def __init__(self, cause: Any):
        self.cause = cause
        super().__init__(f"Decoding error: {cause}")


class RefreshFailed(NetworkError):

    def __init__(self, cause: Optional[Any] = None):
        self.cause = cause
        super().__init__(f"Token refresh failed: {cause}")


class UnknownError(NetworkError):
    """Transport-level failure, no response was received"""

    def __init__(self, cause: Any):
        self.cause = cause
        super().__init__(f"Unknown error: {cause}")


__all__ = [
    "NetworkError",
    "InvalidURL",
    "EncodingError",
    "HTTPError",
    "HTTPErrorData",
    "DecodingError",
    "RefreshFailed",
    "UnknownError",
]
