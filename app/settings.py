import os

from dotenv import load_dotenv

# Load .env file with explicit UTF-8 encoding
load_dotenv(encoding='utf-8')


def _csv(value: str | None) -> list[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./promo_cards.db"

# Upper bound for a single store call (connect + statement), in seconds.
STORE_TIMEOUT_SECONDS = int(os.getenv("STORE_TIMEOUT_SECONDS") or "10")

SHOP_PIN_SECRET = os.getenv("SHOP_PIN_SECRET") or "change-me"

ACTIVATION_BASE_URL = (os.getenv("ACTIVATION_BASE_URL") or "http://localhost:3000/activate").rstrip("/")
CARD_ID_PREFIX = os.getenv("CARD_ID_PREFIX") or "SB-"

CORS_ORIGINS = _csv(os.getenv("CORS_ORIGINS")) or [
    "http://localhost:3000",
    "https://localhost:3000",
    "http://127.0.0.1:3000",
    "https://127.0.0.1:3000",
]

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()
