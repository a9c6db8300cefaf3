from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from ..state import get_portal

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    portal = get_portal(request)
    age = portal.sticker_cache.age
    return {
        "ok": True,
        "bot_configured": portal.api.bot_configured,
        "setup_complete": portal.site_config.setup_complete,
        "sticker_cache_age_seconds": round(age, 1) if age is not None else None,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
