# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import time
from typing import Optional

import httpx

from restwire.http.transport import (
    HTTPOutcome,
    Transport,
    TransportConnectionError,
    TransportRequest,
    TransportTimeout,
)


class HTTPXTransport(Transport):
    """
    ``Transport`` backed by ``httpx.AsyncClient``.

    Pass a client to share its connection pool and TLS settings; otherwise a
    short-lived client is opened for each request.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        default_timeout: float = 30.0,
    ):
        self._client = client
        self.default_timeout = default_timeout

    async def send(self, request: TransportRequest) -> HTTPOutcome:
        return await self._request(request, request.body)

    async def send_upload(
        self, request: TransportRequest, body: bytes
    ) -> HTTPOutcome:
        return await self._request(request, body)

    async def _request(
        self, request: TransportRequest, content: Optional[bytes]
    ) -> HTTPOutcome:
        if self._client is not None:
            return await self._perform(self._client, request, content)
        async with httpx.AsyncClient() as client:
            return await self._perform(client, request, content)

    async def _perform(
        self,
        client: httpx.AsyncClient,
        request: TransportRequest,
        content: Optional[bytes],
    ) -> HTTPOutcome:
        start_time = time.time()

        timeout = (
            request.timeout if request.timeout is not None else self.default_timeout
        )

        try:
            response = await client.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                content=content,
                timeout=timeout,
            )
        except httpx.TimeoutException as err:
            raise TransportTimeout(f"Request timed out: {err}") from err
        except httpx.TransportError as err:
            raise TransportConnectionError(request, str(err) or "Network error") from err

        return HTTPOutcome(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
            elapsed_time=time.time() - start_time,
        )
