"""Shared test fixtures for authorized_client.

Provides a fake authorization server + protected API behind
:class:`httpx.MockTransport`, a controllable clock, and a sleep recorder so
retry/backoff behaviour can be checked without waiting. These fixtures are
automatically discovered by pytest.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Union

import httpx
import pytest

from authorized_client.client import AuthorizedClient
from authorized_client.models import Settings
from authorized_client.output import reset_output


TOKEN_URL = "https://auth.example.com/token"
API_URL = "https://api.example.com/things"

Handler = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class SleepRecorder:
    """Async stand-in for :func:`asyncio.sleep` that records delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


class FakeServer:
    """Routes requests either to the token endpoint or to the protected API.

    By default the token endpoint issues ``T1``, ``T2``, ... valid for an
    hour and the API answers ``200 {"ok": true}``. Tests replace
    :attr:`token_handler` / :attr:`api_handler` to change that.
    """

    def __init__(self) -> None:
        self.token_requests: list[httpx.Request] = []
        self.api_requests: list[httpx.Request] = []
        self.token_handler: Handler = self.issue_token
        self.api_handler: Handler = lambda request: httpx.Response(200, json={"ok": True})

    def issue_token(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "access_token": f"T{len(self.token_requests)}",
                "expires_in": 3600,
                "token_type": "Bearer",
            },
        )

    def respond_with_statuses(self, *statuses: int, body: Any = None) -> None:
        """Make the API answer with *statuses* in order, repeating the last one."""
        queue = list(statuses)

        def handler(request: httpx.Request) -> httpx.Response:
            status = queue.pop(0) if len(queue) > 1 else queue[0]
            if status == 200:
                return httpx.Response(200, json=body if body is not None else {"ok": True})
            return httpx.Response(status, text="nope")

        self.api_handler = handler

    @property
    def api_authorizations(self) -> list[str]:
        return [r.headers.get("Authorization", "") for r in self.api_requests]

    def __call__(self, request: httpx.Request) -> Any:
        if str(request.url) == TOKEN_URL:
            self.token_requests.append(request)
            return self.token_handler(request)
        self.api_requests.append(request)
        return self.api_handler(request)


# ---------------------------------------------------------------------------
# Global state hygiene
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_and_logging() -> None:
    """Reset the global OutputManager and CLI log handlers after every test.

    The CLI binds Rich consoles to the streams CliRunner provides; once the
    test ends those streams are closed.
    """
    yield
    reset_output()
    logger = logging.getLogger("authorized_client")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        client_id="abc",
        client_secret="s",
        token_url=TOKEN_URL,
        scopes=["read"],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
async def http_client(server: FakeServer) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(server)) as client:
        yield client


@pytest.fixture
async def client(
    settings: Settings,
    http_client: httpx.AsyncClient,
    clock: FakeClock,
    sleeper: SleepRecorder,
) -> AuthorizedClient:
    """A connected client that has already fetched token ``T1``."""
    return await AuthorizedClient.connect(
        settings, http_client=http_client, clock=clock, sleep=sleeper
    )
