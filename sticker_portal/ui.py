from __future__ import annotations

from typing import Dict, Optional

from fastapi.responses import HTMLResponse

from .clients import JINJA_ENV

INDEX_TEMPLATE = JINJA_ENV.from_string(
    """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{{ og.title }}</title>
  <meta property="og:type" content="{{ og.type }}">
  <meta property="og:url" content="{{ site_url }}">
  <meta property="og:title" content="{{ og.title }}">
  <meta property="og:description" content="{{ og.description }}">
  <meta property="og:image" content="{{ og.image }}">
  <meta property="og:site_name" content="{{ og.siteName }}">
  <meta name="twitter:card" content="summary_large_image">
  <meta name="twitter:url" content="{{ site_url }}">
  <meta name="twitter:title" content="{{ og.title }}">
  <meta name="twitter:description" content="{{ og.description }}">
  <meta name="twitter:image" content="{{ og.image }}">
</head>
<body>
  <h1>{{ og.title }}</h1>
  <p>{{ og.description }}</p>
  <div id="stickers-grid"></div>
  <div id="error" hidden></div>
  <script>
    fetch('/api/public/stickers')
      .then(resp => { if (!resp.ok) throw new Error('Failed to load stickers'); return resp.json(); })
      .then(stickers => {
        const grid = document.getElementById('stickers-grid');
        stickers.forEach(sticker => {
          const link = document.createElement('a');
          link.href = `https://discord.gg/${sticker.invite_code}`;
          link.target = '_blank';
          const img = document.createElement('img');
          img.src = sticker.image_url;
          img.alt = sticker.name;
          img.loading = 'lazy';
          link.appendChild(img);
          grid.appendChild(link);
        });
      })
      .catch(() => {
        const err = document.getElementById('error');
        err.textContent = 'Failed to load stickers. Please refresh the page.';
        err.hidden = false;
      });
  </script>
</body>
</html>
"""
)

ADMIN_TEMPLATE = JINJA_ENV.from_string(
    """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Sticker Admin</title>
</head>
<body>
  <h1>Sticker Admin</h1>
  {% if error %}<p class="error">{{ error }}</p>{% endif %}
  {% if not setup_complete %}
    <p>No admin has been set up yet. The first account to log in becomes the admin.</p>
  {% endif %}
  <p><a href="/login">Log in with Discord</a> &middot; <a href="/logout">Log out</a></p>
</body>
</html>
"""
)

ERROR_TEMPLATE = JINJA_ENV.from_string(
    """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>{{ title }}</title></head>
<body><h1>{{ title }}</h1><p>{{ message }}</p><p><a href="/">Home</a></p></body>
</html>
"""
)

ADMIN_ERRORS = {
    "no_code": "Discord did not return an authorization code.",
    "invalid_state": "Your login link expired. Please try again.",
    "unauthorized": "That account is not allowed to manage this site.",
    "auth_failed": "Authentication failed. Please try logging in again.",
}


def render_index(og: Dict[str, str], site_url: str) -> HTMLResponse:
    return HTMLResponse(INDEX_TEMPLATE.render(og=og, site_url=site_url))


def render_admin(*, setup_complete: bool, error: Optional[str] = None) -> HTMLResponse:
    message = ADMIN_ERRORS.get(error or "", error) if error else None
    return HTMLResponse(ADMIN_TEMPLATE.render(setup_complete=setup_complete, error=message))


def render_error(title: str, message: str, status_code: int = 400) -> HTMLResponse:
    return HTMLResponse(ERROR_TEMPLATE.render(title=title, message=message), status_code=status_code)
