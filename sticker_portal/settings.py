import logging
import os
import secrets
from pathlib import Path

from dotenv import load_dotenv

# Load .env if present (real env vars still win)
load_dotenv()


# --- Configuration ---
DISCORD_CLIENT_ID = os.getenv("DISCORD_CLIENT_ID")
DISCORD_CLIENT_SECRET = os.getenv("DISCORD_CLIENT_SECRET")
DISCORD_REDIRECT_URI = os.getenv("DISCORD_REDIRECT_URI")  # base URL, e.g. https://stickers.example.com
DISCORD_BOT_TOKEN = os.getenv("DISCORD_TOKEN") or os.getenv("DISCORD_BOT_TOKEN")
# The bot's user id; defaults to the application (client) id.
DISCORD_BOT_USER_ID = os.getenv("DISCORD_BOT_USER_ID")
SECRET_KEY = os.getenv("SESSION_SECRET") or secrets.token_hex(16)

OAUTH_SCOPES = "identify guilds"
OAUTH_CALLBACK_PATH = "/admin/callback"
DISCORD_API_BASE = "https://discord.com/api/v10"
DISCORD_AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
DISCORD_CDN_BASE = "https://cdn.discordapp.com"

DATA_DIR = Path(os.getenv("DATA_DIR", "data"))
INVITES_FILE = DATA_DIR / "invites.json"
CONFIG_FILE = DATA_DIR / "config.json"
UPLOADS_DIR = Path(os.getenv("UPLOADS_DIR") or DATA_DIR / "uploads")

# Cache windows
PUBLIC_CACHE_TTL_SECONDS = int(os.getenv("PUBLIC_CACHE_TTL_SECONDS", "300"))  # 5 minutes
BOT_ADMIN_CACHE_TTL_SECONDS = int(os.getenv("BOT_ADMIN_CACHE_TTL_SECONDS", "120"))  # 2 minutes

SESSION_COOKIE_NAME = "sticker_session"
PERSIST_SESSION_SECONDS = int(os.getenv("PERSIST_SESSION_SECONDS", str(30 * 24 * 3600)))
STATE_TOKEN_TTL_SECONDS = 900
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))


def callback_url() -> str:
    return f"{(DISCORD_REDIRECT_URI or '').rstrip('/')}{OAUTH_CALLBACK_PATH}"


def validate_required_envs() -> None:
    missing = [
        name
        for name, val in {
            "DISCORD_CLIENT_ID": DISCORD_CLIENT_ID,
            "DISCORD_CLIENT_SECRET": DISCORD_CLIENT_SECRET,
            "DISCORD_REDIRECT_URI": DISCORD_REDIRECT_URI,
        }.items()
        if not val
    ]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
    if not DISCORD_BOT_TOKEN:
        logging.warning("DISCORD_BOT_TOKEN not set; sticker listings will be empty.")
