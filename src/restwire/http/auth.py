# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import asyncio
import concurrent.futures
import logging
import threading
from datetime import datetime
from typing import Awaitable, Callable, Optional

from restwire.http.endpoint import Tokens
from restwire.http.errors import NetworkError, RefreshFailed, UnknownError
from restwire.http.transport import TransportError

logger = logging.getLogger(__name__)

RefreshFunction = Callable[[str], Awaitable[Tokens]]
RefreshErrorClassifier = Callable[[Exception], NetworkError]


def refresh_failed_classifier(err: Exception) -> NetworkError:
    """Every refresh failure is a ``RefreshFailed``"""
    if isinstance(err, RefreshFailed):
        return err
    return RefreshFailed(err)


def transport_aware_classifier(err: Exception) -> NetworkError:
    """
    Connectivity problems while refreshing surface as ``UnknownError`` and
    keep the stored tokens; anything else is a ``RefreshFailed``.
    """
    if isinstance(err, (TransportError, UnknownError)):
        return err if isinstance(err, UnknownError) else UnknownError(err)
    return refresh_failed_classifier(err)


class TokenStore:
    """
    Holds the access/refresh token pair and coordinates refreshes.

    The stored ``Tokens`` value is immutable and replaced as a whole under a
    lock, so readers always get a consistent pair. ``refresh_if_needed`` is
    single-flight: while a refresh is running every other caller joins it and
    receives the same tokens or the same exception, and the refresh function
    runs once per refresh window.

    A refresh started before ``set_tokens``/``clear_tokens`` still completes,
    but only commits its result when the stored pair is still the one the
    refresh started from.
    """

    def __init__(
        self,
        tokens: Optional[Tokens] = None,
        refresh_error_classifier: RefreshErrorClassifier = refresh_failed_classifier,
    ):
        self._lock = threading.Lock()
        self._tokens = tokens
        self._in_flight: Optional[concurrent.futures.Future[Tokens]] = None
        self._refresh_task: Optional[asyncio.Task[None]] = None
        self._classify = refresh_error_classifier

    def set_tokens(
        self, access_token: str, refresh_token: str, expiry: Optional[datetime] = None
    ) -> None:
        with self._lock:
            self._tokens = Tokens(access_token, refresh_token, expiry)

    def clear_tokens(self) -> None:
        with self._lock:
            self._tokens = None

    def snapshot(self) -> Optional[Tokens]:
        with self._lock:
            return self._tokens

    def current_access_token(self) -> Optional[str]:
        tokens = self.snapshot()
        return tokens.access_token if tokens is not None else None

    @property
    def is_refreshing(self) -> bool:
        with self._lock:
            return self._in_flight is not None

    async def refresh_if_needed(
        self,
        refresh_fn: RefreshFunction,
        stale_access_token: Optional[str] = None,
    ) -> Tokens:
        """
        Refresh the stored pair, or join the refresh already running.

        ``stale_access_token`` is the access token a server rejected. When the
        stored token already differs from it and no refresh is running, an
        earlier refresh has rotated it and the current pair is returned
        without calling ``refresh_fn``.
        """
        started = False
        with self._lock:
            flight = self._in_flight
            origin = self._tokens
            if flight is None:
                if origin is None or not origin.refresh_token:
                    raise RefreshFailed(ValueError("no refresh token available"))
                if (
                    stale_access_token is not None
                    and origin.access_token != stale_access_token
                ):
                    logger.debug("Access token already rotated, skipping refresh")
                    return origin
                flight = concurrent.futures.Future()
                self._in_flight = flight
                started = True

        if started:
            assert origin is not None
            logger.debug("Starting token refresh")
            task = asyncio.get_running_loop().create_task(
                self._run_refresh(refresh_fn, origin, flight)
            )
            task.add_done_callback(
                lambda done: self._on_refresh_done(done, origin, flight)
            )
            self._refresh_task = task
        else:
            logger.debug("Joining in-flight token refresh")

        # shielded: a waiter being cancelled must not cancel the shared refresh
        return await asyncio.shield(asyncio.wrap_future(flight))

    async def _run_refresh(
        self,
        refresh_fn: RefreshFunction,
        origin: Tokens,
        flight: "concurrent.futures.Future[Tokens]",
    ) -> None:
        try:
            refreshed = await refresh_fn(origin.refresh_token)
            if not isinstance(refreshed, Tokens):
                raise TypeError(
                    f"refresh function returned {type(refreshed).__name__}, expected Tokens"
                )
        except Exception as err:
            logger.warning("Token refresh failed: %s", err)
            self._fail(flight, origin, self._classify(err))
            return

        with self._lock:
            if self._tokens is origin:
                self._tokens = refreshed
                result: Optional[Tokens] = refreshed
            else:
                # replaced or cleared while refreshing, the refreshed pair is stale
                result = self._tokens
            self._in_flight = None
            self._refresh_task = None

        if result is None:
            logger.debug("Tokens were cleared during refresh, discarding result")
            flight.set_exception(RefreshFailed(ValueError("tokens cleared during refresh")))
        else:
            logger.debug("Token refresh completed")
            flight.set_result(result)

    def _on_refresh_done(
        self,
        task: "asyncio.Task[None]",
        origin: Tokens,
        flight: "concurrent.futures.Future[Tokens]",
    ) -> None:
        if task.cancelled() and not flight.done():
            logger.warning("Token refresh was cancelled")
            # the stored pair is still valid, only the waiters fail
            self._fail(
                flight,
                origin,
                RefreshFailed(asyncio.CancelledError("token refresh cancelled")),
                discard=False,
            )

    def _fail(
        self,
        flight: "concurrent.futures.Future[Tokens]",
        origin: Tokens,
        error: NetworkError,
        discard: bool = True,
    ) -> None:
        with self._lock:
            if discard and isinstance(error, RefreshFailed) and self._tokens is origin:
                self._tokens = None
            self._in_flight = None
            self._refresh_task = None
        flight.set_exception(error)


__all__ = [
    "TokenStore",
    "RefreshFunction",
    "RefreshErrorClassifier",
    "refresh_failed_classifier",
    "transport_aware_classifier",
]
