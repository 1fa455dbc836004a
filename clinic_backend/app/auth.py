# clinic_backend/app/auth.py
"""
Identity forwarded by the gateway.

Authentication happens upstream; the gateway passes only the
normalized identity: X-User-Id and X-User-Role.
"""

from fastapi import Header, HTTPException, status


def get_current_user_id(x_user_id: int | None = Header(None)) -> int:
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity")
    return x_user_id


def require_admin(
    x_user_id: int | None = Header(None),
    x_user_role: str | None = Header(None),
) -> int | None:
    if (x_user_role or "").lower() != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return x_user_id
