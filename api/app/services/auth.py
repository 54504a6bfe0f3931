from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException

from .settings import Settings, get_settings


def require_admin(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.admin_api_keys:
        # If no allowlist is configured, fail closed.
        raise HTTPException(status_code=500, detail="SANTA_ADMIN_API_KEYS not configured")

    if not x_api_key:
        raise HTTPException(status_code=401, detail="Missing X-API-Key")

    if not any(hmac.compare_digest(x_api_key, k) for k in settings.admin_api_keys):
        raise HTTPException(status_code=401, detail="Invalid API key")
