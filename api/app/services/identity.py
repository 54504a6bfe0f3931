from __future__ import annotations

import secrets
import time

from fastapi import Depends, Request, Response

from .settings import Settings, get_settings

USER_COOKIE = "santa_user_id"
USER_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


def generate_user_id() -> str:
    # Usage tracking only, not an auth token.
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"


def client_ip(request: Request) -> str:
    # Prefer X-Forwarded-For when behind Cloud Run / proxies.
    xff = request.headers.get("x-forwarded-for")
    if xff:
        # take first
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def user_identifier(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> str:
    """Return the caller's usage identifier, issuing the cookie when missing."""
    user_id = request.cookies.get(USER_COOKIE)
    if not user_id:
        user_id = generate_user_id()
        response.set_cookie(
            key=USER_COOKIE,
            value=user_id,
            max_age=USER_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            samesite="strict",
            secure=settings.secure_cookies,
        )
        response.headers["X-Cookie-Set"] = "true"

    response.headers["X-User-ID"] = user_id
    return user_id
