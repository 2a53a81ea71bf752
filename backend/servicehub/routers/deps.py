from __future__ import annotations

from fastapi import Header, HTTPException, Request

from ..registry import ComponentRegistry


def get_registry_dep(request: Request) -> ComponentRegistry:
    return request.app.state.registry


def current_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    """
    Caller id as forwarded by the auth gateway. Authentication itself
    happens upstream; this is only the seam where its result arrives.
    """
    uid = str(x_user_id or "").strip()
    if not uid:
        raise HTTPException(status_code=401, detail="Missing X-User-Id")
    return uid
