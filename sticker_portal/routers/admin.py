from __future__ import annotations

import asyncio
import base64
import logging
import time
from pathlib import Path
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel

from ..services.discord_api import error_message
from ..services.invites import NoInviteChannelError
from ..settings import MAX_UPLOAD_BYTES
from ..state import AdminContext, Portal, get_portal, require_admin
from ..utils import uid

router = APIRouter()

RATE_LIMIT_MESSAGE = "Discord is rate limiting. Please wait a minute and try again."
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


class OGConfigPayload(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    url: Optional[str] = None
    type: Optional[str] = None
    siteName: Optional[str] = None


def upstream_failure(exc: httpx.HTTPError, default: str) -> HTTPException:
    """Relay an upstream failure for a mutation the admin asked for."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 429:
            return HTTPException(status_code=429, detail=RATE_LIMIT_MESSAGE)
        return HTTPException(status_code=status, detail=error_message(exc, default))
    return HTTPException(status_code=500, detail=default)


async def read_image(upload: UploadFile) -> bytes:
    if not (upload.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed")
    data = await upload.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="Image is too large")
    return data


@router.get("/api/user")
async def current_user(request: Request, admin: AdminContext = Depends(require_admin)):
    try:
        return await get_portal(request).api.get_current_user(admin.access_token)
    except httpx.HTTPError as exc:
        logging.error("User fetch error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch user") from exc


async def _enrich_guild(portal: Portal, guild: dict, stored_invites: dict) -> dict:
    guild_id = uid(guild["id"])
    stickers: list = []
    bot_in_guild = False
    bot_is_admin = False

    if portal.api.bot_configured:
        try:
            stickers = await portal.api.list_stickers(guild_id)
            bot_in_guild = True
            logging.info("Fetched %s stickers for guild %s (%s)", len(stickers), guild.get("name"), guild_id)
        except (httpx.HTTPError, ValueError) as exc:
            logging.info(
                "Cannot fetch stickers for guild %s (%s): %s",
                guild.get("name"),
                guild_id,
                error_message(exc, str(exc)),
            )
        if bot_in_guild:
            bot_is_admin = await portal.bot_admin.is_admin(guild_id)

    return {
        **guild,
        "stickers": stickers,
        "bot_in_guild": bot_in_guild,
        "bot_is_admin": bot_is_admin,
        "stored_invite": (stored_invites.get(guild_id) or {}).get("code"),
    }


@router.get("/api/guilds")
async def owned_guilds(request: Request, admin: AdminContext = Depends(require_admin)):
    portal = get_portal(request)
    try:
        guilds = await portal.api.list_user_guilds(admin.access_token)
    except httpx.HTTPError as exc:
        logging.error("Guilds fetch error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch guilds") from exc

    stored_invites = portal.invite_store.all()
    owned = [guild for guild in guilds if guild.get("owner")]
    return await asyncio.gather(*(_enrich_guild(portal, guild, stored_invites) for guild in owned))


@router.patch("/api/guilds/{guild_id}")
async def update_guild(
    guild_id: str,
    request: Request,
    name: Optional[str] = Form(None),
    icon: Optional[UploadFile] = File(None),
    admin: AdminContext = Depends(require_admin),
):
    portal = get_portal(request)
    update = {}
    if name and name.strip():
        update["name"] = name.strip()
    if icon is not None and icon.filename:
        data = await read_image(icon)
        update["icon"] = f"data:{icon.content_type};base64,{base64.b64encode(data).decode('ascii')}"
    if not update:
        raise HTTPException(status_code=400, detail="No updates provided")

    try:
        guild = await portal.api.modify_guild(guild_id, update)
    except httpx.HTTPError as exc:
        logging.error("Update guild %s error: %s", guild_id, exc)
        raise upstream_failure(exc, "Failed to update guild") from exc

    portal.sticker_cache.invalidate()
    logging.info("Admin %s updated guild %s fields=%s", admin.user_id, guild_id, sorted(update))
    return {"success": True, "guild": guild, "message": "Guild updated successfully"}


@router.post("/api/guilds/{guild_id}/create-invite")
async def create_invite(guild_id: str, request: Request, admin: AdminContext = Depends(require_admin)):
    portal = get_portal(request)
    try:
        code, message = await portal.resolver.create(guild_id)
    except NoInviteChannelError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except httpx.HTTPError as exc:
        logging.error("Create invite for guild %s error: %s", guild_id, exc)
        raise upstream_failure(exc, "Failed to create invite") from exc

    portal.sticker_cache.invalidate()
    return {"success": True, "invite_code": code, "message": message}


@router.post("/api/og-config")
async def update_og_config(
    payload: OGConfigPayload,
    request: Request,
    admin: AdminContext = Depends(require_admin),
):
    site_config = get_portal(request).site_config
    if not await site_config.update_og(payload.model_dump()):
        raise HTTPException(status_code=500, detail="Failed to save OG config")
    return {"success": True, "config": site_config.og_config()}


@router.post("/api/og-upload-image")
async def upload_og_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    admin: AdminContext = Depends(require_admin),
):
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="No image provided")
    suffix = Path(image.filename).suffix.lower()
    if suffix not in IMAGE_SUFFIXES:
        raise HTTPException(status_code=400, detail="Only image files are allowed")
    data = await read_image(image)

    uploads_dir = get_portal(request).uploads_dir
    filename = f"og-preview-{int(time.time() * 1000)}{suffix}"
    try:
        uploads_dir.mkdir(parents=True, exist_ok=True)
        (uploads_dir / filename).write_bytes(data)
    except OSError as exc:
        logging.error("Image upload error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to upload image") from exc
    return {"success": True, "imageUrl": f"/uploads/{filename}"}
