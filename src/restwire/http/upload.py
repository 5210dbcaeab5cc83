# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import secrets
from typing import Callable, Mapping, Optional, Protocol

from restwire.http.endpoint import UploadPayload
from restwire.http.errors import EncodingError

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
DEFAULT_BINARY_CONTENT_TYPE = "application/octet-stream"
BOUNDARY_PREFIX = "restwire-"


class UploadEncoder(Protocol):

    def encode(
        self,
        payload: UploadPayload,
        headers: Optional[Mapping[str, str]] = None,
    ) -> tuple[bytes, str]: ...


def _find_header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    if not headers:
        return None
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


class BinaryUploadEncoder(UploadEncoder):
    """Sends the payload bytes as the raw request body."""

    def __init__(self, default_content_type: Optional[str] = None):
        self.default_content_type = default_content_type

    def encode(
        self,
        payload: UploadPayload,
        headers: Optional[Mapping[str, str]] = None,
    ) -> tuple[bytes, str]:
        content_type = (
            _find_header(headers, "Content-Type")
            or payload.mime_type
            or self.default_content_type
            or DEFAULT_BINARY_CONTENT_TYPE
        )
        return payload.data, content_type


def generate_boundary() -> str:
    return BOUNDARY_PREFIX + secrets.token_hex(16)


def _check_header_token(kind: str, value: str) -> None:
    # quoted-string values in Content-Disposition cannot carry these
    if any(char in value for char in ('"', "\r", "\n")):
        raise EncodingError(ValueError(f"{kind} {value!r} cannot be framed"))


class MultipartUploadEncoder(UploadEncoder):
    """
    ``multipart/form-data`` encoder.

    Form fields are written first, in the mapping's order, followed by a single
    file part named ``file``. Values are not escaped: a field value containing
    the boundary raises ``EncodingError`` rather than producing a body that a
    parser would split in the wrong place.
    """

    def __init__(
        self,
        boundary_factory: Callable[[], str] = generate_boundary,
        file_field_name: str = "file",
        default_file_name: str = "file",
        default_mime_type: str = DEFAULT_BINARY_CONTENT_TYPE,
    ):
        self.boundary_factory = boundary_factory
        self.file_field_name = file_field_name
        self.default_file_name = default_file_name
        self.default_mime_type = default_mime_type

    def encode(
        self,
        payload: UploadPayload,
        headers: Optional[Mapping[str, str]] = None,
    ) -> tuple[bytes, str]:
        boundary = self.boundary_factory()
        delimiter = f"--{boundary}".encode()
        file_name = payload.file_name or self.default_file_name
        mime_type = payload.mime_type or self.default_mime_type

        _check_header_token("file name", file_name)

        parts: list[bytes] = []
        for name, value in (payload.form_fields or {}).items():
            _check_header_token("field name", name)
            if boundary in value:
                raise EncodingError(
                    ValueError(f"form field {name!r} contains the multipart boundary")
                )
            parts += [
                delimiter + CRLF,
                f'Content-Disposition: form-data; name="{name}"'.encode() + CRLF,
                CRLF,
                value.encode() + CRLF,
            ]

        parts += [
            delimiter + CRLF,
            (
                f'Content-Disposition: form-data; name="{self.file_field_name}"; '
                f'filename="{file_name}"'
            ).encode()
            + CRLF,
            f"Content-Type: {mime_type}".encode() + CRLF,
            CRLF,
            payload.data + CRLF,
            delimiter + b"--" + CRLF,
        ]

        body = b"".join(parts)
        logger.debug(
            "Encoded multipart body: %s bytes, %s fields, boundary=%s",
            len(body),
            len(payload.form_fields or {}),
            boundary,
        )
        return body, f"multipart/form-data; boundary={boundary}"


__all__ = [
    "UploadEncoder",
    "BinaryUploadEncoder",
    "MultipartUploadEncoder",
    "generate_boundary",
    "DEFAULT_BINARY_CONTENT_TYPE",
]
