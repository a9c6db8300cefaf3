from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from .json_store import JsonFile


class InviteStore:
    """Remembered invite codes, ``{guild_id: {"code": ..., "created_at": ...}}``."""

    def __init__(self, path: Path):
        self._file = JsonFile(path)

    def all(self) -> Dict[str, dict]:
        return self._file.load()

    def get(self, guild_id: str) -> Optional[str]:
        record = self.all().get(str(guild_id)) or {}
        return record.get("code") or None

    def save(self, guild_id: str, code: str) -> bool:
        invites = self.all()
        invites[str(guild_id)] = {
            "code": code,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        return self._file.save(invites)
