"""Request-scoped dependencies shared by the API routers."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from fastapi import Request

from photo_restore.adapters.cookie_entitlement_store import CookieEntitlementStore

if TYPE_CHECKING:
    from photo_restore.containers import AppContainer

UID_COOKIE = "uid"
UID_MAX_AGE = 365 * 24 * 60 * 60

_LOCAL_ORIGIN = re.compile(r"^https?://(localhost|127\.0\.0\.1):\d+$")


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_uid(request: Request) -> str:
    """Return the anonymous client id assigned by the uid middleware."""
    return request.state.uid


def get_entitlement_store(request: Request) -> CookieEntitlementStore:
    """Build the cookie-backed entitlement store for this request."""
    container = get_container(request)
    return CookieEntitlementStore(
        signer=container.cookie_signer,
        cookies=request.cookies,
        secure=container.settings.is_production,
    )


def get_rate_limit_key(request: Request) -> str:
    host = request.client.host if request.client else "unknown"
    return f"{host}:{request.url.path}"


def resolve_site_origin(request: Request) -> str:
    """Return the origin to use for checkout redirects."""
    origin = request.headers.get("origin")
    if origin and (
        origin in request.app.state.allowed_origins or _LOCAL_ORIGIN.match(origin)
    ):
        return origin.rstrip("/")
    host = request.headers.get("host")
    if host:
        proto = request.headers.get("x-forwarded-proto", "http")
        return f"{proto}://{host}".rstrip("/")
    return get_container(request).settings.resolved_site_origin
