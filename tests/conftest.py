"""
Sticker Portal - Test Fixtures
==============================

Shared fixtures: a scripted fake of the Discord REST API, a controllable
clock, and a portal wired to temporary files.
"""

import os
from typing import Any, Callable, Dict, List, Tuple, Union
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

# Set up test environment before importing modules
os.environ.setdefault("DISCORD_CLIENT_ID", "111")
os.environ.setdefault("DISCORD_CLIENT_SECRET", "client-secret")
os.environ.setdefault("DISCORD_REDIRECT_URI", "http://testserver")
os.environ.setdefault("SESSION_SECRET", "test-secret")

from fastapi.testclient import TestClient  # noqa: E402

from sticker_portal.app import create_app  # noqa: E402
from sticker_portal.services.discord_api import DiscordAPI  # noqa: E402
from sticker_portal.state import build_portal  # noqa: E402

API_BASE = "https://discord.test/api"
BOT_USER_ID = "111"
ADMIN_USER = {"id": "42", "username": "stickerqueen", "discriminator": "0", "avatar": None}

Responder = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeDiscord:
    """Scripted Discord API; unknown routes answer 404 like the real thing."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Responder] = {}
        self.calls: List[Tuple[str, str]] = []
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, json: Any = None) -> None:
        self.routes[(method.upper(), path)] = (status, json)

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method.upper(), path)] = handler

    def count(self, method: str, path: str) -> int:
        return self.calls.count((method.upper(), path))

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        key = (request.method, path)
        self.calls.append(key)
        self.requests.append(request)
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"message": "Unknown Route", "code": 0})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_discord():
    return FakeDiscord()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api(fake_discord):
    return DiscordAPI(
        bot_token="bot-token",
        client_id=BOT_USER_ID,
        client_secret="client-secret",
        redirect_uri="http://testserver/admin/callback",
        api_base=API_BASE,
        http=httpx.AsyncClient(transport=httpx.MockTransport(fake_discord.handler)),
    )


@pytest.fixture
def portal(api, clock, tmp_path):
    return build_portal(
        api=api,
        invites_file=tmp_path / "invites.json",
        config_file=tmp_path / "config.json",
        uploads_dir=tmp_path / "uploads",
        clock=clock,
    )


@pytest.fixture
def client(portal):
    return TestClient(create_app(portal))


def login(client: TestClient, fake_discord: FakeDiscord, user: dict = ADMIN_USER) -> httpx.Response:
    """Run the OAuth handshake against the fake Discord and return the callback response."""
    fake_discord.add(
        "POST",
        "/oauth2/token",
        json={"access_token": f"token-{user['id']}", "refresh_token": "refresh", "expires_in": 604800},
    )
    fake_discord.add_handler(
        "GET",
        "/users/@me",
        lambda request: httpx.Response(
            200 if request.headers.get("Authorization") == f"Bearer token-{user['id']}" else 401,
            json=user,
        ),
    )
    start = client.get("/login", follow_redirects=False)
    state = parse_qs(urlparse(start.headers["location"]).query)["state"][0]
    return client.get(f"/admin/callback?code=abc&state={state}", follow_redirects=False)


@pytest.fixture
def admin_client(client, fake_discord):
    response = login(client, fake_discord)
    assert response.headers["location"] == "/admin"
    return client
