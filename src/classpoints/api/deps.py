"""Request-scoped dependencies shared by the routers."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException, Request, status

from ..core.config import Settings


def get_owner_id(x_owner_id: Optional[str] = Header(None, description="Owner resolved by the auth gateway")) -> UUID:
    """Return the caller's owner id; identity itself is resolved upstream."""

    if not x_owner_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing owner identity")
    try:
        return UUID(x_owner_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid owner identity") from exc


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
