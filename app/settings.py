import os

from dotenv import load_dotenv

load_dotenv(encoding="utf-8")


DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./storefront.db"

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()

WHATSAPP_NUMBER = os.getenv("WHATSAPP_NUMBER") or "71999784507"
BUSINESS_NAME = os.getenv("BUSINESS_NAME") or "Geladinhos Amorim"
DELIVERY_FEE = float(os.getenv("DELIVERY_FEE") or "3")

_default_origins = [
    "http://localhost:3000",
    "https://localhost:3000",
    "http://127.0.0.1:3000",
    "https://127.0.0.1:3000",
]
CORS_ORIGINS = [o.strip() for o in (os.getenv("CORS_ORIGINS") or "").split(",") if o.strip()] or _default_origins


def get_admin_api_key() -> str | None:
    # not cached at import
    return os.getenv("ADMIN_API_KEY") or None
