import hmac

from fastapi import Header, HTTPException

from app.settings import get_admin_api_key


def require_admin(
    x_admin_key: str | None = Header(default=None, alias="X-Admin-Key"),
) -> str:
    expected = get_admin_api_key()
    if not expected:
        raise HTTPException(status_code=503, detail="Admin access is not configured (ADMIN_API_KEY).")
    if not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=401, detail="Invalid or missing X-Admin-Key header.")
    return "admin"
