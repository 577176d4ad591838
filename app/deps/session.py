from fastapi import Header, HTTPException


def get_cart_session(
    x_session_id: str | None = Header(default=None, alias="X-Session-Id"),
) -> str:
    session_id = (x_session_id or "").strip()
    if not session_id:
        raise HTTPException(
            status_code=400,
            detail="Missing cart session. Provide X-Session-Id header (see POST /cart/sessions).",
        )
    if len(session_id) > 100:
        raise HTTPException(status_code=400, detail="X-Session-Id is too long")
    return session_id
