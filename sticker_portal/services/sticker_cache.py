from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

import httpx

from ..settings import PUBLIC_CACHE_TTL_SECONDS
from ..utils import sticker_image_url, uid
from .discord_api import DiscordAPI
from .invites import InviteResolver


class PublicStickerCache:
    """Single-slot snapshot of every sticker across the bot's guilds.

    A snapshot is served until it is ``ttl`` seconds old or ``invalidate`` is
    called; after that the next ``get`` rebuilds it from scratch. Concurrent
    callers during a rebuild are not deduplicated.
    """

    def __init__(
        self,
        api: DiscordAPI,
        resolver: InviteResolver,
        *,
        ttl: float = PUBLIC_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.resolver = resolver
        self.ttl = ttl
        self.clock = clock
        self._snapshot: Optional[List[dict]] = None
        self._captured_at = 0.0

    @property
    def age(self) -> Optional[float]:
        if self._snapshot is None:
            return None
        return self.clock() - self._captured_at

    def is_fresh(self) -> bool:
        age = self.age
        return age is not None and age < self.ttl

    def invalidate(self) -> None:
        self._snapshot = None
        self._captured_at = 0.0

    async def get(self) -> List[dict]:
        if self._snapshot is not None and self.is_fresh():
            return self._snapshot
        snapshot = await self.rebuild()
        self._snapshot = snapshot
        self._captured_at = self.clock()
        return snapshot

    async def rebuild(self) -> List[dict]:
        """Fetch stickers for every guild the bot is in.

        A failure listing the bot's guilds propagates; a failure for one guild
        only drops that guild's stickers.
        """
        if not self.api.bot_configured:
            logging.warning("Bot token not configured; public sticker listing is empty.")
            return []

        guilds = await self.api.list_bot_guilds()
        per_guild = await asyncio.gather(*(self._guild_stickers(guild) for guild in guilds))
        stickers = [sticker for chunk in per_guild for sticker in chunk]
        logging.info("Rebuilt public sticker listing: %s stickers from %s guilds", len(stickers), len(guilds))
        return stickers

    async def _guild_stickers(self, guild: dict) -> List[dict]:
        guild_id = uid(guild["id"])
        try:
            stickers = await self.api.list_stickers(guild_id)
            # Without a resolvable invite the guild id stands in so the UI still has a link target.
            invite_code = await self.resolver.resolve(guild_id) or guild_id
        except (httpx.HTTPError, ValueError) as exc:
            logging.error("Failed to fetch stickers for guild %s: %s", guild_id, exc)
            return []

        return [
            {
                "id": sticker.get("id"),
                "name": sticker.get("name"),
                "description": sticker.get("description"),
                "guild_id": guild_id,
                "guild_name": guild.get("name"),
                "guild_icon": guild.get("icon"),
                "format_type": sticker.get("format_type"),
                "image_url": sticker_image_url(sticker.get("id"), sticker.get("format_type")),
                "invite_code": invite_code,
            }
            for sticker in stickers or []
        ]
