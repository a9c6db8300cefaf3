from __future__ import annotations

from enum import IntEnum
from typing import Any, Optional

from fastapi import Request

from .settings import DISCORD_CDN_BASE


class StickerFormat(IntEnum):
    PNG = 1
    APNG = 2
    LOTTIE = 3
    GIF = 4


def uid(value: Any) -> str:
    return str(value)


def sticker_image_url(sticker_id: str, format_type: Optional[int]) -> str:
    # Lottie stickers are vector JSON; the CDN still serves a PNG preview for them.
    if format_type == StickerFormat.GIF:
        return f"{DISCORD_CDN_BASE}/stickers/{sticker_id}.gif"
    if format_type == StickerFormat.LOTTIE:
        return f"{DISCORD_CDN_BASE}/stickers/{sticker_id}.png?size=160"
    return f"{DISCORD_CDN_BASE}/stickers/{sticker_id}.png"


def clean_display_name(raw: str) -> str:
    if not raw:
        return ""
    if raw.endswith("#0"):
        return raw[:-2]
    return raw


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host or "unknown"
    return "unknown"


def wants_html(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "text/html" in accept
