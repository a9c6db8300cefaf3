from __future__ import annotations

from enum import IntFlag
from typing import Any

# Discord sends permission sets as decimal strings; they already exceed 32 bits.
PERMISSION_MASK = (1 << 64) - 1


class Permission(IntFlag):
    CREATE_INSTANT_INVITE = 1 << 0
    KICK_MEMBERS = 1 << 1
    BAN_MEMBERS = 1 << 2
    ADMINISTRATOR = 1 << 3
    MANAGE_CHANNELS = 1 << 4
    MANAGE_GUILD = 1 << 5
    MANAGE_GUILD_EXPRESSIONS = 1 << 30


def parse_permissions(raw: Any) -> int:
    """Parse a Discord permission field into an unsigned 64-bit mask.

    Raises ``ValueError`` for anything that is not a non-negative integer.
    """
    value = int(str(raw))
    if value < 0:
        raise ValueError(f"negative permission set: {raw!r}")
    return value & PERMISSION_MASK


def grants_admin(raw: Any) -> bool:
    try:
        value = parse_permissions(raw)
    except (TypeError, ValueError):
        return False
    admin = Permission.ADMINISTRATOR.value
    return (value & admin) == admin
