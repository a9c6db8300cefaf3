from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import httpx

from .discord_api import DiscordAPI
from .invite_store import InviteStore

TEXT_CHANNEL_TYPE = 0


class NoInviteChannelError(Exception):
    """The guild has no channel an invite could be created on."""


def pick_invite(invites: List[dict], *, permanent_only: bool = False) -> Optional[str]:
    """Prefer a never-expiring invite, else (unless ``permanent_only``) the first one listed."""
    for invite in invites or []:
        if invite.get("max_age") == 0 and invite.get("code"):
            return invite["code"]
    if permanent_only or not invites:
        return None
    return invites[0].get("code") or None


def pick_invite_channel(channels: List[dict]) -> Optional[dict]:
    for channel in channels or []:
        if channel.get("type") == TEXT_CHANNEL_TYPE:
            return channel
    return channels[0] if channels else None


class InviteResolver:
    """Finds a usable invite code for a guild.

    Sources are tried in order, stopping at the first hit: the invite store,
    the guild's vanity URL, then the guild's existing invites. Anything found
    upstream is written back to the store. Only ``create`` may mint a new one.
    """

    def __init__(self, api: DiscordAPI, store: InviteStore):
        self.api = api
        self.store = store

    async def _from_vanity(self, guild_id: str) -> Optional[str]:
        try:
            return await self.api.get_vanity_code(guild_id)
        except (httpx.HTTPError, ValueError) as exc:
            logging.debug("No vanity URL for guild %s: %s", guild_id, exc)
            return None

    async def _from_existing(self, guild_id: str, *, permanent_only: bool) -> Optional[str]:
        try:
            invites = await self.api.list_invites(guild_id)
        except (httpx.HTTPError, ValueError) as exc:
            logging.debug("Cannot list invites for guild %s: %s", guild_id, exc)
            return None
        return pick_invite(invites, permanent_only=permanent_only)

    async def _lookup(self, guild_id: str, *, permanent_only: bool) -> Optional[str]:
        code = self.store.get(guild_id)
        if code:
            return code

        code = await self._from_vanity(guild_id)
        if not code:
            code = await self._from_existing(guild_id, permanent_only=permanent_only)
        if code:
            self.store.save(guild_id, code)
        return code

    async def resolve(self, guild_id: str) -> Optional[str]:
        """Passive lookup used by the public listing; never creates an invite."""
        return await self._lookup(guild_id, permanent_only=False)

    async def create(self, guild_id: str) -> Tuple[str, str]:
        """Return ``(code, message)`` for a permanent invite, minting one if needed.

        Raises ``NoInviteChannelError`` when the guild has no channels, and lets
        upstream errors from the channel listing or invite creation propagate.
        """
        stored = self.store.get(guild_id)
        if stored:
            return stored, "Using stored permanent invite"

        code = await self._lookup(guild_id, permanent_only=True)
        if code:
            return code, "Permanent invite already exists"

        channels = await self.api.list_channels(guild_id)
        channel = pick_invite_channel(channels)
        if not channel:
            raise NoInviteChannelError("No suitable channel found")

        invite = await self.api.create_permanent_invite(channel["id"])
        code = invite["code"]
        self.store.save(guild_id, code)
        logging.info("Created permanent invite %s for guild %s in channel %s", code, guild_id, channel["id"])
        return code, "Invite created successfully"
