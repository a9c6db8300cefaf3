from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .json_store import JsonFile

DEFAULT_OG_CONFIG: Dict[str, str] = {
    "title": "Discord Stickers Showcase",
    "description": "Explore our collection of Discord stickers from various servers",
    "image": "https://via.placeholder.com/1200x630/0a0a0a/ffffff?text=Discord+Stickers",
    "url": "",
    "type": "website",
    "siteName": "Discord Stickers Showcase",
}


@dataclass(frozen=True)
class Uninitialized:
    pass


@dataclass(frozen=True)
class Configured:
    admin_id: str


SetupState = Union[Uninitialized, Configured]


class SiteConfig:
    """Setup state plus Open Graph preview settings, persisted in one JSON file.

    Setup has exactly one legal transition, ``Uninitialized -> Configured``,
    taken by the first user to finish the OAuth login. The transition runs
    under a lock so two simultaneous first logins cannot both win.
    """

    def __init__(self, path: Path):
        self._file = JsonFile(path)
        self._lock = asyncio.Lock()
        data = self._file.load()
        admin_id = data.get("adminUserId")
        if data.get("setupComplete") and admin_id:
            self.state: SetupState = Configured(str(admin_id))
        else:
            self.state = Uninitialized()
        self._og = {**DEFAULT_OG_CONFIG, **(data.get("og") or {})}

    @property
    def setup_complete(self) -> bool:
        return isinstance(self.state, Configured)

    @property
    def admin_user_id(self) -> Optional[str]:
        return self.state.admin_id if isinstance(self.state, Configured) else None

    def is_admin(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and self.admin_user_id == str(user_id)

    def _snapshot(self, state: SetupState, og: Dict[str, Any]) -> Dict[str, Any]:
        admin_id = state.admin_id if isinstance(state, Configured) else None
        return {"setupComplete": admin_id is not None, "adminUserId": admin_id, "og": og}

    async def claim_admin(self, user_id: str) -> bool:
        """Make ``user_id`` the admin if nobody is yet; return whether they are the admin."""
        async with self._lock:
            if isinstance(self.state, Configured):
                return self.state.admin_id == str(user_id)
            new_state = Configured(str(user_id))
            if not self._file.save(self._snapshot(new_state, self._og)):
                logging.error("Setup state for admin %s could not be persisted; keeping it in memory only.", user_id)
            self.state = new_state
            logging.info("Setup complete: user %s is now the admin.", user_id)
            return True

    def og_config(self) -> Dict[str, str]:
        return dict(self._og)

    async def update_og(self, fields: Dict[str, Optional[str]]) -> bool:
        """Replace the OG settings; blank fields reset to their defaults."""
        og = {key: (fields.get(key) or default) for key, default in DEFAULT_OG_CONFIG.items()}
        async with self._lock:
            saved = self._file.save(self._snapshot(self.state, og))
            if saved:
                self._og = og
            return saved
