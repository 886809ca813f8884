"""Shared fixtures: a controllable clock, a fake upstream, and an app wired to both."""

import json
from typing import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from services.cache import ResponseCache

WALLET = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """httpx.MockTransport handler standing in for the aggregator and the RPC node.

    Requests are named by the last path segment (``tokens``, ``quote``, ``swap``)
    or, for JSON-RPC posts, by the RPC method.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._responses: dict[str, tuple[int, object]] = {}
        self._errors: dict[str, Exception] = {}

    def on(self, name: str, payload: object = None, status_code: int = 200) -> None:
        self._responses[name] = (status_code, payload)
        self._errors.pop(name, None)

    def fail(self, name: str, error: Exception) -> None:
        self._errors[name] = error

    def calls(self, name: str) -> list[httpx.Request]:
        return [r for r in self.requests if self.name_of(r) == name]

    @staticmethod
    def name_of(request: httpx.Request) -> str:
        if request.method == "POST" and "solana" in request.url.host:
            return json.loads(request.content)["method"]
        return request.url.path.rsplit("/", 1)[-1]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        name = self.name_of(request)
        if name in self._errors:
            raise self._errors[name]
        if name not in self._responses:
            return httpx.Response(404, json={"error": f"no fake response for {name}"})
        status_code, payload = self._responses[name]
        return httpx.Response(status_code, json=payload)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResponseCache:
    return ResponseCache(clock=clock)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def http_client(upstream: FakeUpstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream))


@pytest.fixture
def api(cache: ResponseCache, http_client: httpx.AsyncClient) -> Iterator[TestClient]:
    app = create_app(cache=cache, http_client=http_client)
    with TestClient(app) as client:
        yield client
