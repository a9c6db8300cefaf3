from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Tuple

import httpx

from ..settings import BOT_ADMIN_CACHE_TTL_SECONDS, DISCORD_BOT_USER_ID
from ..utils import uid
from .discord_api import DiscordAPI, error_message
from .permissions import grants_admin


class BotAdminCache:
    """Per-guild memo of whether the bot holds the Administrator permission.

    Entries older than ``ttl`` count as missing. Only completed checks are
    stored (including a computed ``False``); a failed check answers ``False``
    for that call and leaves the entry empty so the next call retries.
    """

    def __init__(
        self,
        api: DiscordAPI,
        *,
        bot_user_id: Optional[str] = None,
        ttl: float = BOT_ADMIN_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.bot_user_id = bot_user_id or DISCORD_BOT_USER_ID or api.client_id
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, Tuple[bool, float]] = {}  # {guild_id: (is_admin, checked_at)}

    def cached(self, guild_id: str) -> Optional[bool]:
        entry = self._entries.get(uid(guild_id))
        if not entry:
            return None
        is_admin, checked_at = entry
        if self.clock() - checked_at >= self.ttl:
            self._entries.pop(uid(guild_id), None)
            return None
        return is_admin

    async def is_admin(self, guild_id: str) -> bool:
        guild_id = uid(guild_id)
        cached = self.cached(guild_id)
        if cached is not None:
            return cached

        try:
            member = await self.api.get_member(guild_id, uid(self.bot_user_id))
            roles = await self.api.list_roles(guild_id)
        except (httpx.HTTPError, ValueError) as exc:
            logging.info(
                "Cannot check bot permissions for guild %s: %s",
                guild_id,
                error_message(exc, str(exc)),
            )
            return False

        held = {uid(role_id) for role_id in member.get("roles") or []}
        is_admin = False
        for role in roles or []:
            if uid(role.get("id")) in held and grants_admin(role.get("permissions")):
                logging.debug("Role %r grants admin in guild %s", role.get("name"), guild_id)
                is_admin = True
                break

        self._entries[guild_id] = (is_admin, self.clock())
        logging.info("Bot admin status for guild %s: %s", guild_id, is_admin)
        return is_admin
