"""Shared fixtures: a scriptable fake gateway behind httpx.MockTransport."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from gateway_dashboard.core.config import Settings
from gateway_dashboard.services.credentials import CredentialStore
from gateway_dashboard.services.display import DisplaySurface
from gateway_dashboard.services.gateway_client import GatewayClient
from gateway_dashboard.services.renderer import Renderer
from gateway_dashboard.services.submission import SubmissionHandler
from gateway_dashboard.services.sync_loop import SyncLoop

BASE_URL = "http://gateway.test"

METRICS_BODY = {
    "timestamp": 1700000000,
    "metrics": {
        "messages_processed": {"success": 1200, "error": 34},
        "kafka_errors": 2,
        "auth_attempts": {"success": 40, "error": 3},
        "request_duration_sum": 12.3456,
        "total_messages": 1234,
    },
}


def make_messages(n: int) -> List[dict]:
    return [
        {
            "topic": f"orders.v{i}",
            "status": "success" if i % 2 == 0 else "error",
            "timestamp": "2024-05-01T12:00:00Z",
        }
        for i in range(n)
    ]


def make_topics(n: int) -> List[dict]:
    return [{"name": f"topic-{i}", "messageCount": i * 10} for i in range(n)]


Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


class FakeGateway:
    """Routes `(method, path)` to canned answers and records every request."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def reply(self, method: str, path: str, status: int = 200, body: Any = None,
              content: Optional[bytes] = None) -> None:
        async def _handler(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status, content=content)
            return httpx.Response(status, json=body)
        self.routes[(method, path)] = _handler

    def fail(self, method: str, path: str) -> None:
        async def _handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)
        self.routes[(method, path)] = _handler

    def route(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "not found"})
        return await handler(request)


@pytest.fixture
def cfg(tmp_path) -> Settings:
    return Settings(
        gateway_base_url=BASE_URL,
        credential_file=tmp_path / "credentials.json",
        refresh_interval_sec=60.0,
        ws_push_tick=0.05,
        cors_allow_origins=None,
    )


@pytest.fixture
def fake() -> FakeGateway:
    gw = FakeGateway()
    gw.reply("GET", "/api/metrics", body=METRICS_BODY)
    gw.reply("GET", "/api/messages", body={"messages": make_messages(3)})
    gw.reply("GET", "/api/topics", body={"topics": make_topics(2)})
    gw.reply("GET", "/health", body={"status": "ok"})
    gw.reply("POST", "/message", body={"status": "sent"})
    return gw


@pytest.fixture
def http_client(fake) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake), base_url=BASE_URL)


@pytest.fixture
def gateway(cfg, http_client) -> GatewayClient:
    return GatewayClient(cfg, client=http_client)


@pytest.fixture
def surface() -> DisplaySurface:
    return DisplaySurface()


@pytest.fixture
def renderer(surface, cfg) -> Renderer:
    return Renderer(surface, limit=cfg.list_limit)


@pytest.fixture
def sync_loop(gateway, renderer, cfg) -> SyncLoop:
    return SyncLoop(gateway, renderer, cfg)


@pytest.fixture
def credentials(cfg) -> CredentialStore:
    return CredentialStore(cfg.credential_file, cfg.credential_key)


@pytest.fixture
def handler(gateway, credentials, surface) -> SubmissionHandler:
    return SubmissionHandler(gateway, credentials, surface)
