# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import re
from typing import Mapping, Optional
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from restwire.http.codec import Codec, PydanticJSONCodec
from restwire.http.endpoint import EndpointDescriptor, HttpMethod
from restwire.http.errors import EncodingError, InvalidURL
from restwire.http.transport import TransportRequest

logger = logging.getLogger(__name__)

_FORBIDDEN_URL_CHARS = re.compile(r"[\x00-\x20\x7f]")
# RFC 3986 reserved + unreserved characters and already-escaped sequences
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"


def _has_header(headers: Mapping[str, str], name: str) -> bool:
    lowered = name.lower()
    return any(key.lower() == lowered for key in headers)


def compose_url(
    base_url: str, path: str, query: Optional[Mapping[str, str]] = None
) -> str:
    """
    Join ``base_url`` and ``path`` and append ``query`` percent-encoded, in
    the mapping's order. Raises ``InvalidURL`` when the result is not an
    absolute http(s) URL.
    """
    if _FORBIDDEN_URL_CHARS.search(base_url):
        raise InvalidURL(base_url, "base URL contains whitespace or control characters")

    try:
        parts = urlsplit(base_url)
        parts.port  # raises on a malformed port
    except ValueError as err:
        raise InvalidURL(base_url, str(err)) from err

    if parts.scheme not in ("http", "https"):
        raise InvalidURL(base_url, f"unsupported scheme {parts.scheme!r}")
    if not parts.hostname:
        raise InvalidURL(base_url, "missing host")

    url_path = parts.path
    if path:
        url_path = url_path.rstrip("/") + "/" + quote(path.lstrip("/"), safe=_PATH_SAFE)

    url_query = parts.query
    if query:
        encoded = urlencode(list(query.items()), quote_via=quote)
        url_query = f"{url_query}&{encoded}" if url_query else encoded

    return urlunsplit(
        (parts.scheme, parts.netloc, url_path, url_query, parts.fragment)
    )


class RequestBuilder:
    """
    Translates an ``EndpointDescriptor`` into a ``TransportRequest``.

    The builder holds no per-request state: every call copies the descriptor
    headers into a fresh mapping, so concurrent builds never share anything
    mutable.
    """

    def __init__(
        self,
        codec: Optional[Codec] = None,
        default_headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ):
        self.codec: Codec = codec or PydanticJSONCodec()
        self.default_headers = dict(default_headers or {})
        self.timeout = timeout

    def build(
        self, descriptor: EndpointDescriptor, auth_token: Optional[str] = None
    ) -> TransportRequest:
        url = compose_url(
            descriptor.base_url, descriptor.path, descriptor.query_parameters
        )

        try:
            method = HttpMethod(str(descriptor.method).upper())
        except ValueError as err:
            raise EncodingError(err) from err

        headers: dict[str, str] = {}
        for key, value in self.default_headers.items():
            if not _has_header(descriptor.headers or {}, key):
                headers[key] = value
        headers.update(descriptor.headers or {})

        if auth_token is not None and not _has_header(headers, "Authorization"):
            headers["Authorization"] = f"Bearer {auth_token}"

        body: bytes | None = None
        if descriptor.body is not None:
            if isinstance(descriptor.body, bytes):
                body = descriptor.body
            elif isinstance(descriptor.body, str):
                body = descriptor.body.encode()
            else:
                try:
                    body = self.codec.encode(descriptor.body)
                except Exception as err:
                    raise EncodingError(err) from err
                if not _has_header(headers, "Content-Type"):
                    headers["Content-Type"] = self.codec.content_type

        request = TransportRequest(
            url=url,
            method=method.value,
            headers=headers,
            body=body,
            timeout=self.timeout,
        )

        logger.debug(
            "Prepared request: %s %s\nHeaders: %s\nBody: %s",
            request.method,
            request.url,
            list(request.headers),
            request.body,
        )
        return request


__all__ = [
    "RequestBuilder",
    "compose_url",
]
