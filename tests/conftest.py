from __future__ import annotations

"""Pytest fixtures for FastAPI integration tests.

Mixpanel is replaced by an ``httpx.MockTransport`` handed to the application
factory, so the request pipeline runs end-to-end without network access and
every outbound call can be inspected.
"""

import base64
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List

import httpx
import pytest
from starlette.testclient import TestClient

# Ensure project root on PYTHONPATH so `import track_relay` works when pytest is run
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from track_relay.main import create_app  # noqa: E402, WPS433
from track_relay.settings import Settings  # noqa: E402, WPS433

TOKEN = "T1"
UPSTREAM_URL = "https://mixpanel.test/track/"


class FakeMixpanel:
    """Callable for ``httpx.MockTransport`` that records every outbound request."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda _req: httpx.Response(
            200,
            content=b'{"status":1,"error":null}',
            headers={"content-type": "application/json"},
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    def decoded_events(self) -> List[Dict[str, Any]]:
        return [json.loads(base64.b64decode(req.url.params["data"])) for req in self.requests]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def mixpanel() -> FakeMixpanel:
    return FakeMixpanel()


@pytest.fixture()
def settings() -> Settings:
    return Settings(mixpanel_token=TOKEN, mixpanel_endpoint=UPSTREAM_URL, app_env="test")


@pytest.fixture()
def make_client(mixpanel) -> Iterator[Callable[..., TestClient]]:
    """Factory building a running app for the given settings (lifespan included)."""

    clients: List[TestClient] = []

    def _make(app_settings: Settings, *, raise_server_exceptions: bool = True) -> TestClient:
        app = create_app(app_settings, transport=httpx.MockTransport(mixpanel))
        client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture()
def api_client(make_client, settings) -> TestClient:  # noqa: D401 – simple alias
    return make_client(settings)
