"""
Pytest configuration and fixtures for restwire tests.
"""

from typing import Any

import pytest

from restwire.http.endpoint import Tokens
from restwire.http.transport import HTTPOutcome, TransportRequest


class ScriptedTransport:
    """
    In-memory transport replaying a scripted list of outcomes.

    Items are consumed in order; the last one repeats once the script runs
    out. Exceptions in the script are raised instead of returned.
    """

    def __init__(self, *script: "HTTPOutcome | Exception"):
        self.script = list(script)
        self.requests: list[TransportRequest] = []
        self.upload_bodies: list[bytes] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def send(self, request: TransportRequest) -> HTTPOutcome:
        self.requests.append(request)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def send_upload(self, request: TransportRequest, body: bytes) -> HTTPOutcome:
        self.upload_bodies.append(body)
        return await self.send(request)


def outcome(status_code: int, body: bytes = b"") -> HTTPOutcome:
    return HTTPOutcome(status_code=status_code, body=body)


class CountingRefresh:
    """Refresh function double counting its invocations."""

    def __init__(self, result: "Tokens | Exception", gate: Any = None):
        self.result = result
        self.gate = gate
        self.calls: list[str] = []

    async def __call__(self, refresh_token: str) -> Tokens:
        self.calls.append(refresh_token)
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "RESTWIRE_TIMEOUT",
        "RESTWIRE_REFRESH_LEEWAY",
        "RESTWIRE_PROACTIVE_REFRESH",
        "RESTWIRE_DEFAULT_HEADERS",
    ):
        monkeypatch.delenv(name, raising=False)
