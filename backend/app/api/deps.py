# backend/app/api/deps.py
from __future__ import annotations

from fastapi import HTTPException, Request


def get_current_user_id(request: Request) -> str:
    """
    Identity comes from the X-User-Id header.

    Authentication happens upstream; this service trusts the header and only
    rejects requests that do not carry one.
    """
    user_id = (request.headers.get("X-User-Id") or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    if len(user_id) > 64:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header")
    return user_id
