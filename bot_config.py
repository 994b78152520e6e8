import os

from dotenv import load_dotenv

load_dotenv()


def _parse_csv(raw):
    return [p.strip().lstrip("@") for p in (raw or "").split(",") if p.strip()]


BOT_TOKEN = (os.getenv("BOT_TOKEN") or os.getenv("TELEGRAM_BOT_TOKEN") or "").strip()

# --- Catalog ---
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017").strip()
MONGODB_DB = os.getenv("MONGODB_DB", "moviebot").strip()
MONGODB_COLLECTION = os.getenv("MONGODB_COLLECTION", "videos").strip()

# --- Bot behaviour ---
PROMO_HANDLE = os.getenv("PROMO_HANDLE", "@moviecastback").strip()
ALLOWED_UPLOADERS = _parse_csv(os.getenv("ALLOWED_UPLOADERS", "moviecastadmin,filmpuradmin"))
REQUIRED_CHANNEL = (os.getenv("REQUIRED_CHANNEL") or "").strip() or None
EPHEMERAL_TTL_SEC = int(os.getenv("EPHEMERAL_TTL_SEC", "120"))
PAGE_SIZE = 8

BOT_USERNAME = os.getenv("BOT_USERNAME", "movie_cast_bot").strip().lstrip("@")
START_LINKS = [
    ("+ Add me to your group +", f"https://t.me/{BOT_USERNAME}?startgroup=true"),
    ("JOIN OUR BACKUP CHANNEL", f"https://t.me/{PROMO_HANDLE.lstrip('@')}"),
]

# --- AI caption rewrite ---
OPENAI_API_KEY = (os.getenv("OPENAI_API_KEY") or "").strip() or None
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
REWRITE_DELAY_SEC = float(os.getenv("REWRITE_DELAY_SEC", "1.0"))

# --- Keepalive ---
PORT = int(os.getenv("PORT", "8080"))

# --- Channel backfill (Telethon user client) ---
API_ID = int(os.getenv("API_ID", "0") or 0)
API_HASH = (os.getenv("API_HASH") or "").strip()
SOURCE_CHANNEL = (os.getenv("SOURCE_CHANNEL") or "").strip()
TELETHON_SESSION = os.getenv("TELETHON_SESSION", "anon").strip()
