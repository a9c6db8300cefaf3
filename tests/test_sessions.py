"""
Sticker Portal - Session & Token Tests
======================================
"""

import time

import pytest
from starlette.responses import Response

from sticker_portal.services.security import StateTokens
from sticker_portal.services.sessions import TokenStore, persist_session, serializer
from sticker_portal.settings import SESSION_COOKIE_NAME


class TestTokenStore:

    @pytest.mark.asyncio
    async def test_fresh_token_is_returned(self, api):
        tokens = TokenStore(api)
        tokens.store("42", {"access_token": "a", "refresh_token": "r", "expires_in": 3600})
        assert await tokens.get_valid_access_token("42") == "a"

    @pytest.mark.asyncio
    async def test_expired_token_is_refreshed(self, api, fake_discord):
        fake_discord.add("POST", "/oauth2/token", json={"access_token": "b", "refresh_token": "r2", "expires_in": 3600})
        tokens = TokenStore(api)
        tokens.store("42", {"access_token": "a", "refresh_token": "r", "expires_in": 3600})
        tokens._tokens["42"]["expires_at"] = time.time() - 1

        assert await tokens.get_valid_access_token("42") == "b"
        assert b"grant_type=refresh_token" in fake_discord.requests[-1].content

    @pytest.mark.asyncio
    async def test_failed_refresh_forgets_token(self, api, fake_discord):
        fake_discord.add("POST", "/oauth2/token", status=400, json={"error": "invalid_grant"})
        tokens = TokenStore(api)
        tokens.store("42", {"access_token": "a", "refresh_token": "r", "expires_in": 3600})
        tokens._tokens["42"]["expires_at"] = time.time() - 1

        assert await tokens.get_valid_access_token("42") is None
        assert await tokens.get_valid_access_token("42") is None
        assert fake_discord.count("POST", "/oauth2/token") == 1

    @pytest.mark.asyncio
    async def test_unknown_user(self, api):
        assert await TokenStore(api).get_valid_access_token("nobody") is None


class TestStateTokens:

    def test_token_is_single_use(self):
        tokens = StateTokens()
        token = tokens.issue("1.2.3.4")
        assert tokens.validate(token, "1.2.3.4") is True
        assert tokens.validate(token, "1.2.3.4") is False

    def test_token_bound_to_ip(self):
        tokens = StateTokens()
        token = tokens.issue("1.2.3.4")
        assert tokens.validate(token, "5.6.7.8") is False

    def test_expired_token(self):
        tokens = StateTokens(ttl=-1)
        token = tokens.issue("1.2.3.4")
        assert tokens.validate(token, "1.2.3.4") is False


def test_persist_session_sets_signed_cookie():
    response = Response()
    persist_session(response, "42", "stickerqueen")
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{SESSION_COOKIE_NAME}=")
    assert "httponly" in cookie.lower()
    value = cookie.split(";")[0].split("=", 1)[1]
    assert serializer.loads(value)["uid"] == "42"
