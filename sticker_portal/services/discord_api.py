from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

import httpx

from ..clients import get_http_client
from ..settings import (
    DISCORD_API_BASE,
    DISCORD_AUTHORIZE_URL,
    DISCORD_BOT_TOKEN,
    DISCORD_CLIENT_ID,
    DISCORD_CLIENT_SECRET,
    OAUTH_SCOPES,
    callback_url,
)


def error_message(exc: httpx.HTTPError, default: str) -> str:
    """Pull Discord's ``message`` field out of a failed response, if there is one."""
    response = getattr(exc, "response", None)
    if response is None:
        return default
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return default


class DiscordAPI:
    """One HTTP call per intent against the Discord REST API.

    Guild reads and writes go out with the bot token; the two user-scoped
    calls (``get_current_user`` and ``list_user_guilds``) take the OAuth
    access token of the logged-in admin. Failures surface as ``httpx``
    exceptions and are never retried here.
    """

    def __init__(
        self,
        *,
        bot_token: Optional[str] = DISCORD_BOT_TOKEN,
        client_id: Optional[str] = DISCORD_CLIENT_ID,
        client_secret: Optional[str] = DISCORD_CLIENT_SECRET,
        redirect_uri: Optional[str] = None,
        api_base: str = DISCORD_API_BASE,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.bot_token = bot_token
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri or callback_url()
        self.api_base = api_base
        self._http = http

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http or get_http_client()

    @property
    def bot_configured(self) -> bool:
        return bool(self.bot_token)

    def _bot_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bot {self.bot_token}"}

    @staticmethod
    def _bearer_headers(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    async def _bot_get(self, path: str) -> Any:
        resp = await self.http.get(f"{self.api_base}{path}", headers=self._bot_headers())
        resp.raise_for_status()
        return resp.json()

    # --- OAuth ---

    def oauth_authorize_url(self, state: str) -> str:
        return (
            f"{DISCORD_AUTHORIZE_URL}"
            f"?client_id={self.client_id}"
            f"&redirect_uri={quote(self.redirect_uri, safe='')}"
            f"&response_type=code"
            f"&scope={quote(OAUTH_SCOPES)}"
            f"&state={quote(state, safe='')}"
        )

    def bot_authorize_url(self, permissions: int, guild_id: Optional[str] = None) -> str:
        params = {"client_id": self.client_id, "permissions": str(permissions), "scope": "bot"}
        if guild_id:
            params["guild_id"] = guild_id
            params["disable_guild_select"] = "true"
        return f"{DISCORD_AUTHORIZE_URL}?{urlencode(params)}"

    async def _token_request(self, data: Dict[str, str]) -> dict:
        resp = await self.http.post(
            f"{self.api_base}/oauth2/token",
            data={"client_id": self.client_id, "client_secret": self.client_secret, **data},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        resp.raise_for_status()
        return resp.json()

    async def exchange_code(self, code: str) -> dict:
        return await self._token_request(
            {"grant_type": "authorization_code", "code": code, "redirect_uri": self.redirect_uri}
        )

    async def refresh_token(self, refresh_token: str) -> dict:
        return await self._token_request({"grant_type": "refresh_token", "refresh_token": refresh_token})

    # --- user-token calls ---

    async def get_current_user(self, access_token: str) -> dict:
        resp = await self.http.get(f"{self.api_base}/users/@me", headers=self._bearer_headers(access_token))
        resp.raise_for_status()
        return resp.json()

    async def list_user_guilds(self, access_token: str) -> List[dict]:
        resp = await self.http.get(f"{self.api_base}/users/@me/guilds", headers=self._bearer_headers(access_token))
        resp.raise_for_status()
        return resp.json()

    # --- bot-token calls ---

    async def modify_bot_user(self, payload: Dict[str, Any]) -> dict:
        resp = await self.http.patch(f"{self.api_base}/users/@me", headers=self._bot_headers(), json=payload)
        resp.raise_for_status()
        return resp.json()

    async def list_bot_guilds(self) -> List[dict]:
        return await self._bot_get("/users/@me/guilds")

    async def list_stickers(self, guild_id: str) -> List[dict]:
        return await self._bot_get(f"/guilds/{guild_id}/stickers")

    async def get_vanity_code(self, guild_id: str) -> Optional[str]:
        data = await self._bot_get(f"/guilds/{guild_id}/vanity-url")
        return (data or {}).get("code") or None

    async def list_invites(self, guild_id: str) -> List[dict]:
        return await self._bot_get(f"/guilds/{guild_id}/invites")

    async def list_channels(self, guild_id: str) -> List[dict]:
        return await self._bot_get(f"/guilds/{guild_id}/channels")

    async def create_permanent_invite(self, channel_id: str) -> dict:
        resp = await self.http.post(
            f"{self.api_base}/channels/{channel_id}/invites",
            headers=self._bot_headers(),
            json={"max_age": 0, "max_uses": 0, "unique": False, "temporary": False},
        )
        resp.raise_for_status()
        return resp.json()

    async def modify_guild(self, guild_id: str, payload: Dict[str, Any]) -> dict:
        resp = await self.http.patch(
            f"{self.api_base}/guilds/{guild_id}",
            headers=self._bot_headers(),
            json=payload,
        )
        if resp.status_code >= 400:
            logging.warning("Guild %s update failed: %s %s", guild_id, resp.status_code, resp.text)
        resp.raise_for_status()
        return resp.json()

    async def get_member(self, guild_id: str, user_id: str) -> dict:
        return await self._bot_get(f"/guilds/{guild_id}/members/{user_id}")

    async def list_roles(self, guild_id: str) -> List[dict]:
        return await self._bot_get(f"/guilds/{guild_id}/roles")
