# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol

from restwire.config import ClientConfig
from restwire.http.auth import RefreshFunction, TokenStore
from restwire.http.builder import RequestBuilder
from restwire.http.codec import Codec, PydanticJSONCodec
from restwire.http.endpoint import EndpointDescriptor, UploadPayload
from restwire.http.errors import (
    DecodingError,
    HTTPError,
    HTTPErrorData,
    NetworkError,
    RefreshFailed,
    UnknownError,
)
from restwire.http.transport import HTTPOutcome, Transport, TransportRequest
from restwire.http.upload import (
    BinaryUploadEncoder,
    MultipartUploadEncoder,
    UploadEncoder,
)

logger = logging.getLogger(__name__)

UNAUTHORIZED = 401

SendFunction = Callable[[TransportRequest], Awaitable[HTTPOutcome]]


class RequestMiddleware(Protocol):

    def on_request(self, request: TransportRequest) -> TransportRequest: ...


class ErrorMapper:
    """Classifies failed pipeline outcomes into ``NetworkError`` variants."""

    def __init__(self, codec: Codec, error_type: Any = dict[str, Any]):
        self.codec = codec
        self.error_type = error_type

    def _parse_body(self, outcome: HTTPOutcome) -> tuple[bool, Any]:
        if not outcome.body:
            return False, None
        try:
            return True, self.codec.decode(outcome.body, self.error_type)
        except Exception as err:
            logger.debug(
                "Error body for status %s is not decodable: %s",
                outcome.status_code,
                err,
            )
            return False, None

    def for_status(self, outcome: HTTPOutcome) -> NetworkError:
        parsed, body = self._parse_body(outcome)
        if parsed:
            return HTTPError(outcome.status_code, body)
        return HTTPErrorData(outcome.status_code, outcome.body)

    def for_unauthorized(self, outcome: HTTPOutcome) -> HTTPError:
        _, body = self._parse_body(outcome)
        return HTTPError(outcome.status_code, body)

    def for_transport_failure(self, err: Exception) -> NetworkError:
        return UnknownError(err)


class NetworkClient:
    """
    Executes endpoint descriptors: build, send, decode.

    A 401 response triggers one token refresh through the ``TokenStore`` and
    one retry of the call with the refreshed token. A second 401, or a failed
    refresh, surfaces as ``HTTPError(401, ...)``; the call is never retried
    more than once.
    """

    def __init__(
        self,
        transport: Transport,
        token_store: Optional[TokenStore] = None,
        refresh_fn: Optional[RefreshFunction] = None,
        codec: Optional[Codec] = None,
        config: Optional[ClientConfig] = None,
        request_middlewares: Iterable[RequestMiddleware] = (),
        binary_encoder: Optional[UploadEncoder] = None,
        multipart_encoder: Optional[UploadEncoder] = None,
    ):
        self.config = config or ClientConfig()
        self.codec: Codec = codec or PydanticJSONCodec()
        self.token_store = token_store if token_store is not None else TokenStore()
        self.refresh_fn = refresh_fn
        self.builder = RequestBuilder(
            self.codec,
            default_headers=self.config.default_headers,
            timeout=self.config.timeout,
        )
        self.error_mapper = ErrorMapper(self.codec, self.config.error_type)
        self.binary_encoder = binary_encoder or BinaryUploadEncoder()
        self.multipart_encoder = multipart_encoder or MultipartUploadEncoder()
        self._transport = transport
        self._request_middlewares = list(request_middlewares)

    def set_tokens(
        self, access_token: str, refresh_token: str, expiry: Optional[datetime] = None
    ) -> None:
        self.token_store.set_tokens(access_token, refresh_token, expiry)

    def clear_tokens(self) -> None:
        self.token_store.clear_tokens()

    async def request(
        self, descriptor: EndpointDescriptor, response_type: Any = Any
    ) -> Any:
        outcome = await self._execute(descriptor, self._transport.send)
        return self._decode(outcome, response_type)

    async def upload_binary(
        self,
        descriptor: EndpointDescriptor,
        payload: UploadPayload,
        response_type: Any = Any,
    ) -> Any:
        return await self._upload(
            self.binary_encoder, descriptor, payload, response_type
        )

    async def upload_multipart(
        self,
        descriptor: EndpointDescriptor,
        payload: UploadPayload,
        response_type: Any = Any,
    ) -> Any:
        return await self._upload(
            self.multipart_encoder, descriptor, payload, response_type
        )

    async def _upload(
        self,
        encoder: UploadEncoder,
        descriptor: EndpointDescriptor,
        payload: UploadPayload,
        response_type: Any,
    ) -> Any:
        body, content_type = encoder.encode(payload, descriptor.headers)

        async def send(request: TransportRequest) -> HTTPOutcome:
            return await self._transport.send_upload(
                request.with_header("Content-Type", content_type), body
            )

        # the upload body travels beside the request, never through the codec
        outcome = await self._execute(replace(descriptor, body=None), send)
        return self._decode(outcome, response_type)

    async def _execute(
        self, descriptor: EndpointDescriptor, send: SendFunction
    ) -> HTTPOutcome:
        token = await self._access_token()
        outcome = await self._send_once(descriptor, token, send)

        if outcome.status_code == UNAUTHORIZED and self.refresh_fn is not None:
            logger.debug(
                "Unauthorized response for %s %s, refreshing token",
                descriptor.method,
                descriptor.path,
            )
            try:
                tokens = await self.token_store.refresh_if_needed(
                    self.refresh_fn, stale_access_token=token
                )
            except RefreshFailed as err:
                raise self.error_mapper.for_unauthorized(outcome) from err
            outcome = await self._send_once(descriptor, tokens.access_token, send)

        if outcome.status_code == UNAUTHORIZED:
            raise self.error_mapper.for_unauthorized(outcome)

        if not outcome.is_success:
            logger.warning(
                "Response status %s for %s %s",
                outcome.status_code,
                descriptor.method,
                descriptor.path,
            )
            raise self.error_mapper.for_status(outcome)

        return outcome

    async def _access_token(self) -> Optional[str]:
        tokens = self.token_store.snapshot()
        if tokens is None:
            return None
        if (
            self.config.proactive_refresh
            and self.refresh_fn is not None
            and tokens.is_expired(self.config.refresh_leeway)
        ):
            logger.debug("Access token expired, refreshing before sending")
            try:
                tokens = await self.token_store.refresh_if_needed(
                    self.refresh_fn, stale_access_token=tokens.access_token
                )
            except RefreshFailed as err:
                logger.warning("Proactive token refresh failed: %s", err)
                return None
        return tokens.access_token

    async def _send_once(
        self,
        descriptor: EndpointDescriptor,
        token: Optional[str],
        send: SendFunction,
    ) -> HTTPOutcome:
        request = self.builder.build(descriptor, token)

        for middleware in self._request_middlewares:
            request = middleware.on_request(request)

        logger.debug("Executing request %s %s", request.method, request.url)
        try:
            outcome = await send(request)
        except Exception as err:
            raise self.error_mapper.for_transport_failure(err) from err

        logger.debug("Received response: status=%s", outcome.status_code)
        return outcome

    def _decode(self, outcome: HTTPOutcome, response_type: Any) -> Any:
        if response_type is bytes:
            return outcome.body
        if response_type is None or response_type is type(None):
            return None
        if response_type is Any and not outcome.body:
            return None
        try:
            return self.codec.decode(outcome.body, response_type)
        except Exception as err:
            raise DecodingError(err) from err


__all__ = [
    "NetworkClient",
    "ErrorMapper",
    "RequestMiddleware",
]
