from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from fastapi import HTTPException, Request

from .services.bot_admin import BotAdminCache
from .services.discord_api import DiscordAPI
from .services.invite_store import InviteStore
from .services.invites import InviteResolver
from .services.security import StateTokens
from .services.sessions import TokenStore, read_user_session
from .services.site_config import SiteConfig
from .services.sticker_cache import PublicStickerCache
from .settings import CONFIG_FILE, INVITES_FILE, UPLOADS_DIR


@dataclass
class Portal:
    """Everything the routes share, built once per process and hung off ``app.state``."""

    api: DiscordAPI
    invite_store: InviteStore
    resolver: InviteResolver
    sticker_cache: PublicStickerCache
    bot_admin: BotAdminCache
    site_config: SiteConfig
    tokens: TokenStore
    state_tokens: StateTokens
    uploads_dir: Path


def build_portal(
    *,
    api: Optional[DiscordAPI] = None,
    invites_file: Path = INVITES_FILE,
    config_file: Path = CONFIG_FILE,
    uploads_dir: Path = UPLOADS_DIR,
    clock: Callable[[], float] = time.monotonic,
) -> Portal:
    api = api or DiscordAPI()
    invite_store = InviteStore(invites_file)
    resolver = InviteResolver(api, invite_store)
    return Portal(
        api=api,
        invite_store=invite_store,
        resolver=resolver,
        sticker_cache=PublicStickerCache(api, resolver, clock=clock),
        bot_admin=BotAdminCache(api, clock=clock),
        site_config=SiteConfig(config_file),
        tokens=TokenStore(api),
        state_tokens=StateTokens(),
        uploads_dir=Path(uploads_dir),
    )


def get_portal(request: Request) -> Portal:
    return request.app.state.portal


@dataclass
class AdminContext:
    user_id: str
    username: str
    access_token: str


async def require_admin(request: Request) -> AdminContext:
    portal = get_portal(request)
    session = read_user_session(request)
    if not session or not session.get("uid"):
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = str(session["uid"])
    if not portal.site_config.is_admin(user_id):
        raise HTTPException(status_code=403, detail="Access denied")
    token = await portal.tokens.get_valid_access_token(user_id)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return AdminContext(user_id=user_id, username=session.get("uname") or "", access_token=token)
