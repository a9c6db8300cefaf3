"""
Sticker Portal - Discord API Client Tests
=========================================
"""

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from sticker_portal.services.discord_api import error_message


class TestAuthorizeUrls:

    def test_oauth_url_carries_state_and_callback(self, api):
        query = parse_qs(urlparse(api.oauth_authorize_url("xyz")).query)
        assert query["client_id"] == ["111"]
        assert query["redirect_uri"] == ["http://testserver/admin/callback"]
        assert query["scope"] == ["identify guilds"]
        assert query["state"] == ["xyz"]

    def test_bot_url_without_guild(self, api):
        query = parse_qs(urlparse(api.bot_authorize_url(0)).query)
        assert query == {"client_id": ["111"], "permissions": ["0"], "scope": ["bot"]}

    def test_bot_url_targets_guild(self, api):
        query = parse_qs(urlparse(api.bot_authorize_url(8, "555")).query)
        assert query["permissions"] == ["8"]
        assert query["guild_id"] == ["555"]
        assert query["disable_guild_select"] == ["true"]


class TestCalls:

    @pytest.mark.asyncio
    async def test_bot_calls_use_bot_token(self, api, fake_discord):
        fake_discord.add("GET", "/guilds/1/stickers", json=[])
        await api.list_stickers("1")
        assert fake_discord.requests[-1].headers["Authorization"] == "Bot bot-token"

    @pytest.mark.asyncio
    async def test_user_calls_use_bearer_token(self, api, fake_discord):
        fake_discord.add("GET", "/users/@me/guilds", json=[{"id": "1", "owner": True}])
        assert await api.list_user_guilds("user-token") == [{"id": "1", "owner": True}]
        assert fake_discord.requests[-1].headers["Authorization"] == "Bearer user-token"

    @pytest.mark.asyncio
    async def test_code_exchange_posts_form(self, api, fake_discord):
        fake_discord.add("POST", "/oauth2/token", json={"access_token": "t"})
        assert (await api.exchange_code("code-1"))["access_token"] == "t"
        form = parse_qs(fake_discord.requests[-1].content.decode())
        assert form["grant_type"] == ["authorization_code"]
        assert form["code"] == ["code-1"]

    @pytest.mark.asyncio
    async def test_modify_bot_user(self, api, fake_discord):
        fake_discord.add("PATCH", "/users/@me", json={"id": "111", "username": "stickerbot"})
        result = await api.modify_bot_user({"username": "stickerbot"})
        assert result["username"] == "stickerbot"
        assert json.loads(fake_discord.requests[-1].content) == {"username": "stickerbot"}

    @pytest.mark.asyncio
    async def test_errors_raise(self, api, fake_discord):
        fake_discord.add("PATCH", "/guilds/1", status=403, json={"message": "Missing Permissions", "code": 50013})
        with pytest.raises(httpx.HTTPStatusError) as info:
            await api.modify_guild("1", {"name": "x"})
        assert error_message(info.value, "fallback") == "Missing Permissions"

    @pytest.mark.asyncio
    async def test_vanity_code_absent(self, api, fake_discord):
        fake_discord.add("GET", "/guilds/1/vanity-url", json={"code": None, "uses": 0})
        assert await api.get_vanity_code("1") is None


def test_error_message_without_json_body():
    request = httpx.Request("GET", "https://discord.test/api/x")
    response = httpx.Response(502, text="Bad Gateway", request=request)
    exc = httpx.HTTPStatusError("bad", request=request, response=response)
    assert error_message(exc, "fallback") == "fallback"
