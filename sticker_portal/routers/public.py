from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, HTTPException, Request

from ..services.permissions import Permission
from ..state import get_portal
from ..ui import render_index

router = APIRouter()


@router.get("/")
async def index(request: Request):
    og = get_portal(request).site_config.og_config()
    site_url = og.get("url") or f"{request.url.scheme}://{request.headers.get('host', request.url.netloc)}"
    return render_index(og, site_url)


@router.get("/api/public/stickers")
async def public_stickers(request: Request):
    cache = get_portal(request).sticker_cache
    try:
        return await cache.get()
    except httpx.HTTPError as exc:
        logging.error("Public stickers fetch error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch stickers") from exc


@router.get("/api/og-config")
async def og_config(request: Request):
    return get_portal(request).site_config.og_config()


@router.get("/api/bot-invite-url")
async def bot_invite_url(request: Request):
    # Reading stickers needs no extra permissions.
    return {"inviteUrl": get_portal(request).api.bot_authorize_url(0)}


@router.get("/api/bot-admin-url")
@router.get("/api/bot-admin-url/{guild_id}")
async def bot_admin_url(request: Request, guild_id: Optional[str] = None):
    url = get_portal(request).api.bot_authorize_url(Permission.ADMINISTRATOR.value, guild_id)
    return {"inviteUrl": url, "permissions": "Administrator"}
