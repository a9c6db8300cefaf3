from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx
from fastapi import Request
from itsdangerous import BadSignature, URLSafeSerializer
from starlette.responses import Response

from ..settings import PERSIST_SESSION_SECONDS, SECRET_KEY, SESSION_COOKIE_NAME
from .discord_api import DiscordAPI

serializer = URLSafeSerializer(SECRET_KEY, salt="sticker-portal")


def persist_session(response: Response, user_id: str, username: str, *, secure: bool = False) -> dict:
    session = {"uid": user_id, "uname": username, "iat": time.time()}
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=serializer.dumps(session),
        max_age=PERSIST_SESSION_SECONDS,
        secure=secure,
        httponly=True,
        samesite="Lax",
    )
    return session


def clear_session(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME)


def read_user_session(request: Request) -> Optional[dict]:
    raw = request.cookies.get(SESSION_COOKIE_NAME)
    if not raw:
        return None
    try:
        data = serializer.loads(raw)
    except BadSignature:
        logging.warning("Invalid session cookie signature. Session potentially tampered with or corrupt.")
        return None
    return data if isinstance(data, dict) else None


class TokenStore:
    """OAuth tokens kept server-side, keyed by Discord user id."""

    def __init__(self, api: DiscordAPI):
        self.api = api
        self._tokens: Dict[str, Dict[str, Any]] = {}

    def store(self, user_id: str, token_data: dict) -> None:
        expires_in = float(token_data.get("expires_in") or 0)
        self._tokens[user_id] = {
            "access_token": token_data.get("access_token"),
            "refresh_token": token_data.get("refresh_token"),
            "expires_at": time.time() + expires_in - 60 if expires_in else None,
        }

    def discard(self, user_id: str) -> None:
        self._tokens.pop(user_id, None)

    async def refresh(self, user_id: str) -> Optional[str]:
        refresh_token = (self._tokens.get(user_id) or {}).get("refresh_token")
        if not refresh_token:
            return None
        try:
            new_token = await self.api.refresh_token(refresh_token)
        except httpx.HTTPError as exc:
            logging.warning("Failed to refresh token for user %s: %s", user_id, exc)
            self.discard(user_id)
            return None
        self.store(user_id, new_token)
        return new_token.get("access_token")

    async def get_valid_access_token(self, user_id: str) -> Optional[str]:
        token_data = self._tokens.get(user_id) or {}
        access_token = token_data.get("access_token")
        expires_at = token_data.get("expires_at")
        if not access_token:
            return None
        if expires_at and time.time() > expires_at:
            return await self.refresh(user_id)
        return access_token
