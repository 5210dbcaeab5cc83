"""
Tests for token storage and single-flight refresh.
"""

import asyncio
import threading
from datetime import datetime, timedelta, timezone

import pytest
from conftest import CountingRefresh

from restwire.http.auth import TokenStore, transport_aware_classifier
from restwire.http.endpoint import Tokens
from restwire.http.errors import RefreshFailed, UnknownError
from restwire.http.transport import TransportTimeout

NEW_TOKENS = Tokens("new-access", "new-refresh")


def store_with_tokens(**kwargs: object) -> TokenStore:
    store = TokenStore(**kwargs)  # type: ignore[arg-type]
    store.set_tokens("old-access", "old-refresh")
    return store


class TestTokenStoreState:
    """Test suite for plain token storage."""

    def test_empty_store(self) -> None:
        """Test that a fresh store has no token."""
        store = TokenStore()
        assert store.current_access_token() is None
        assert store.snapshot() is None
        assert store.is_refreshing is False

    def test_set_and_read(self) -> None:
        """Test that reads return the stored pair."""
        store = store_with_tokens()
        assert store.current_access_token() == "old-access"
        assert store.snapshot() == Tokens("old-access", "old-refresh")

    def test_clear_is_idempotent(self) -> None:
        """Test that clearing twice leaves no token both times."""
        store = store_with_tokens()
        store.clear_tokens()
        assert store.current_access_token() is None
        store.clear_tokens()
        assert store.current_access_token() is None

    def test_snapshot_is_immutable(self) -> None:
        """Test that callers cannot mutate the stored tokens."""
        store = store_with_tokens()
        snapshot = store.snapshot()
        assert snapshot is not None
        with pytest.raises(AttributeError):
            snapshot.access_token = "hijacked"  # type: ignore[misc]
        assert store.current_access_token() == "old-access"

    def test_concurrent_writers_never_tear_pairs(self) -> None:
        """Test that readers always see a matching access/refresh pair."""
        store = TokenStore()
        torn: list[Tokens] = []

        def writer(n: int) -> None:
            for i in range(500):
                store.set_tokens(f"a-{n}-{i}", f"r-{n}-{i}")

        def reader() -> None:
            for _ in range(2000):
                tokens = store.snapshot()
                if tokens and tokens.access_token[2:] != tokens.refresh_token[2:]:
                    torn.append(tokens)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        threads.append(threading.Thread(target=reader))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert torn == []

    def test_expiry(self) -> None:
        """Test expiry checks with and without leeway."""
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        tokens = Tokens("a", "r", expiry=now + timedelta(seconds=30))
        assert tokens.is_expired(now=now) is False
        assert tokens.is_expired(leeway=60, now=now) is True
        assert Tokens("a", "r").is_expired(leeway=10_000) is False


class TestSingleFlightRefresh:
    """Test suite for refresh_if_needed."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self) -> None:
        """Test that N overlapping callers trigger exactly one refresh."""
        store = store_with_tokens()
        gate = asyncio.Event()
        refresh = CountingRefresh(NEW_TOKENS, gate=gate)

        tasks = [
            asyncio.create_task(store.refresh_if_needed(refresh)) for _ in range(10)
        ]
        await asyncio.sleep(0)
        assert store.is_refreshing is True
        gate.set()
        results = await asyncio.gather(*tasks)

        assert refresh.calls == ["old-refresh"]
        assert all(result == NEW_TOKENS for result in results)
        assert store.current_access_token() == "new-access"
        assert store.is_refreshing is False

    @pytest.mark.asyncio
    async def test_sequential_refreshes_each_run(self) -> None:
        """Test that a new window starts once the previous one completed."""
        store = store_with_tokens()
        first = CountingRefresh(NEW_TOKENS)
        second = CountingRefresh(Tokens("newer-access", "newer-refresh"))

        await store.refresh_if_needed(first)
        await store.refresh_if_needed(second)

        assert first.calls == ["old-refresh"]
        assert second.calls == ["new-refresh"]
        assert store.current_access_token() == "newer-access"

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter_and_clears_tokens(self) -> None:
        """Test that all joiners receive the same RefreshFailed."""
        store = store_with_tokens()
        gate = asyncio.Event()
        cause = ValueError("refresh token expired")
        refresh = CountingRefresh(cause, gate=gate)

        tasks = [
            asyncio.create_task(store.refresh_if_needed(refresh)) for _ in range(5)
        ]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert len(refresh.calls) == 1
        assert all(isinstance(result, RefreshFailed) for result in results)
        assert len({id(result) for result in results}) == 1
        assert results[0].cause is cause  # type: ignore[union-attr]
        assert store.current_access_token() is None
        assert store.is_refreshing is False

    @pytest.mark.asyncio
    async def test_missing_refresh_token_fails_without_calling(self) -> None:
        """Test that an empty store fails immediately."""
        refresh = CountingRefresh(NEW_TOKENS)
        with pytest.raises(RefreshFailed):
            await TokenStore().refresh_if_needed(refresh)
        assert refresh.calls == []

    @pytest.mark.asyncio
    async def test_clear_during_refresh_discards_result(self) -> None:
        """Test that a refresh never resurrects cleared credentials."""
        store = store_with_tokens()
        gate = asyncio.Event()
        refresh = CountingRefresh(NEW_TOKENS, gate=gate)

        task = asyncio.create_task(store.refresh_if_needed(refresh))
        await asyncio.sleep(0)
        store.clear_tokens()
        gate.set()

        with pytest.raises(RefreshFailed):
            await task
        assert store.current_access_token() is None

    @pytest.mark.asyncio
    async def test_set_during_refresh_keeps_new_tokens(self) -> None:
        """Test that tokens set mid-refresh win over the refreshed pair."""
        store = store_with_tokens()
        gate = asyncio.Event()
        refresh = CountingRefresh(NEW_TOKENS, gate=gate)

        task = asyncio.create_task(store.refresh_if_needed(refresh))
        await asyncio.sleep(0)
        store.set_tokens("login-access", "login-refresh")
        gate.set()

        result = await task
        assert result.access_token == "login-access"
        assert store.current_access_token() == "login-access"

    @pytest.mark.asyncio
    async def test_failure_after_set_keeps_new_tokens(self) -> None:
        """Test that a failed stale refresh does not clear newer tokens."""
        store = store_with_tokens()
        gate = asyncio.Event()
        refresh = CountingRefresh(ValueError("boom"), gate=gate)

        task = asyncio.create_task(store.refresh_if_needed(refresh))
        await asyncio.sleep(0)
        store.set_tokens("login-access", "login-refresh")
        gate.set()

        with pytest.raises(RefreshFailed):
            await task
        assert store.current_access_token() == "login-access"

    @pytest.mark.asyncio
    async def test_cancelled_joiner_does_not_cancel_refresh(self) -> None:
        """Test that abandoning one waiter keeps serving the others."""
        store = store_with_tokens()
        gate = asyncio.Event()
        refresh = CountingRefresh(NEW_TOKENS, gate=gate)

        first = asyncio.create_task(store.refresh_if_needed(refresh))
        second = asyncio.create_task(store.refresh_if_needed(refresh))
        await asyncio.sleep(0)
        first.cancel()
        await asyncio.sleep(0)
        gate.set()

        assert await second == NEW_TOKENS
        assert first.cancelled()
        assert refresh.calls == ["old-refresh"]
        assert store.current_access_token() == "new-access"

    @pytest.mark.asyncio
    async def test_rotated_token_skips_refresh(self) -> None:
        """Test that a rejection of an already replaced token reuses the new pair."""
        store = store_with_tokens()
        first = CountingRefresh(NEW_TOKENS)
        second = CountingRefresh(Tokens("newer-access", "newer-refresh"))

        await store.refresh_if_needed(first, stale_access_token="old-access")
        result = await store.refresh_if_needed(second, stale_access_token="old-access")

        assert result == NEW_TOKENS
        assert second.calls == []
        assert store.current_access_token() == "new-access"

    @pytest.mark.asyncio
    async def test_matching_stale_token_refreshes(self) -> None:
        """Test that a rejection of the stored token still refreshes it."""
        store = store_with_tokens()
        refresh = CountingRefresh(NEW_TOKENS)

        result = await store.refresh_if_needed(refresh, stale_access_token="old-access")

        assert result == NEW_TOKENS
        assert refresh.calls == ["old-refresh"]

    @pytest.mark.asyncio
    async def test_cancelled_refresh_keeps_tokens(self) -> None:
        """Test that cancelling the refresh task fails waiters but keeps tokens."""
        store = store_with_tokens()
        gate = asyncio.Event()
        refresh = CountingRefresh(NEW_TOKENS, gate=gate)

        waiter = asyncio.create_task(store.refresh_if_needed(refresh))
        while not refresh.calls:
            await asyncio.sleep(0)
        assert store._refresh_task is not None
        store._refresh_task.cancel()

        with pytest.raises(RefreshFailed):
            await waiter
        assert store.current_access_token() == "old-access"
        assert store.is_refreshing is False

    @pytest.mark.asyncio
    async def test_refresh_cancelled_before_start_releases_waiters(self) -> None:
        """Test that a refresh task cancelled before running still fails waiters."""
        store = store_with_tokens()
        refresh = CountingRefresh(NEW_TOKENS)

        waiter = asyncio.create_task(store.refresh_if_needed(refresh))
        while store._refresh_task is None:
            await asyncio.sleep(0)
        store._refresh_task.cancel()

        with pytest.raises(RefreshFailed):
            await waiter
        assert store.current_access_token() == "old-access"

    @pytest.mark.asyncio
    async def test_non_token_result_is_a_failure(self) -> None:
        """Test that a refresh function returning garbage fails cleanly."""
        store = store_with_tokens()

        async def broken(refresh_token: str) -> Tokens:
            return {"access_token": "x"}  # type: ignore[return-value]

        with pytest.raises(RefreshFailed) as exc_info:
            await store.refresh_if_needed(broken)
        assert isinstance(exc_info.value.cause, TypeError)

    @pytest.mark.asyncio
    async def test_classifier_maps_transport_errors_to_unknown(self) -> None:
        """Test the configurable classification of refresh failures."""
        store = store_with_tokens(refresh_error_classifier=transport_aware_classifier)
        refresh = CountingRefresh(TransportTimeout("slow token endpoint"))

        with pytest.raises(UnknownError):
            await store.refresh_if_needed(refresh)
        assert store.current_access_token() == "old-access"

    @pytest.mark.asyncio
    async def test_joiners_from_another_thread(self) -> None:
        """Test that a caller on a second event loop joins the same refresh."""
        store = store_with_tokens()
        joined = threading.Event()
        release = threading.Event()
        calls: list[str] = []
        loop = asyncio.get_running_loop()

        async def slow_refresh(refresh_token: str) -> Tokens:
            calls.append(refresh_token)
            await loop.run_in_executor(None, release.wait)
            return NEW_TOKENS

        async def join_from_thread() -> Tokens:
            waiter = asyncio.ensure_future(store.refresh_if_needed(slow_refresh))
            await asyncio.sleep(0)
            joined.set()
            return await waiter

        task = asyncio.create_task(store.refresh_if_needed(slow_refresh))
        await asyncio.sleep(0)
        assert store.is_refreshing

        results: list[Tokens] = []
        thread = threading.Thread(
            target=lambda: results.append(asyncio.run(join_from_thread()))
        )
        thread.start()
        await loop.run_in_executor(None, joined.wait)
        release.set()

        assert await task == NEW_TOKENS
        await loop.run_in_executor(None, thread.join)
        assert results == [NEW_TOKENS]
        assert calls == ["old-refresh"]
