from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from ..services.sessions import clear_session, persist_session, read_user_session
from ..state import get_portal
from ..ui import render_admin
from ..utils import clean_display_name, get_client_ip

router = APIRouter()


@router.get("/admin")
async def admin_page(request: Request, error: Optional[str] = None):
    return render_admin(setup_complete=get_portal(request).site_config.setup_complete, error=error)


@router.get("/login")
async def login(request: Request):
    portal = get_portal(request)
    state = portal.state_tokens.issue(get_client_ip(request))
    return RedirectResponse(portal.api.oauth_authorize_url(state), status_code=302)


@router.get("/admin/callback")
async def oauth_callback(request: Request, code: Optional[str] = None, state: Optional[str] = None):
    portal = get_portal(request)
    if not code:
        return RedirectResponse("/admin?error=no_code", status_code=302)
    if not portal.state_tokens.validate(state or "", get_client_ip(request)):
        logging.warning("OAuth callback with invalid or expired state from %s", get_client_ip(request))
        return RedirectResponse("/admin?error=invalid_state", status_code=302)

    try:
        token_data = await portal.api.exchange_code(code)
        user = await portal.api.get_current_user(token_data["access_token"])
    except (httpx.HTTPError, KeyError) as exc:
        logging.warning("OAuth error: %s", exc)
        return RedirectResponse("/admin?error=auth_failed", status_code=302)

    user_id = str(user["id"])
    username = clean_display_name(user.get("username") or "")
    if not await portal.site_config.claim_admin(user_id):
        logging.info("Unauthorized access attempt by: %s (%s)", username, user_id)
        return RedirectResponse("/admin?error=unauthorized", status_code=302)

    portal.tokens.store(user_id, token_data)
    response = RedirectResponse("/admin", status_code=302)
    persist_session(response, user_id, username, secure=request.url.scheme == "https")
    logging.info("Admin %s logged in.", username)
    return response


@router.get("/logout")
async def logout(request: Request):
    session = read_user_session(request)
    if session and session.get("uid"):
        get_portal(request).tokens.discard(str(session["uid"]))
    response = RedirectResponse("/admin", status_code=302)
    clear_session(response)
    return response


@router.get("/api/check-auth")
async def check_auth(request: Request):
    portal = get_portal(request)
    session = read_user_session(request) or {}
    user_id = str(session.get("uid") or "")
    authenticated = bool(
        user_id
        and portal.site_config.is_admin(user_id)
        and await portal.tokens.get_valid_access_token(user_id)
    )
    return {
        "authenticated": authenticated,
        "username": session.get("uname"),
        "setupComplete": portal.site_config.setup_complete,
    }
