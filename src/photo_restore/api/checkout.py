"""Credit purchase endpoints backed by hosted checkout."""

from fastapi import APIRouter, Depends, Request, Response

from photo_restore.adapters.cookie_entitlement_store import CookieEntitlementStore
from photo_restore.api.dependencies import (
    get_container,
    get_entitlement_store,
    get_rate_limit_key,
    get_uid,
    resolve_site_origin,
)
from photo_restore.api.models import BuyCreditsRequest, ConfirmRequest

router = APIRouter(prefix="/api", tags=["checkout"])


@router.get("/config")
async def public_config(request: Request) -> dict[str, object]:
    """Expose only the publishable payment key."""
    settings = get_container(request).settings
    return {"stripePublishableKey": settings.stripe_publishable_key}


@router.post("/buy-credits")
async def buy_credits(
    request: Request,
    payload: BuyCreditsRequest | None = None,
    uid: str = Depends(get_uid),
    rate_key: str = Depends(get_rate_limit_key),
) -> dict[str, object]:
    """Create a checkout session for a 500, 1000 or 2000 credit pack."""
    body = payload or BuyCreditsRequest()
    session = await get_container(request).checkout_service.create_checkout(
        identity=uid,
        credits=body.credits,
        site_origin=resolve_site_origin(request),
        rate_key=rate_key,
    )
    return {"id": session.id, "url": session.url}


@router.post("/confirm")
async def confirm(  # noqa: PLR0913
    request: Request,
    response: Response,
    payload: ConfirmRequest | None = None,
    uid: str = Depends(get_uid),
    store: CookieEntitlementStore = Depends(get_entitlement_store),
    rate_key: str = Depends(get_rate_limit_key),
) -> dict[str, object]:
    """Credit a completed checkout session to the caller."""
    body = payload or ConfirmRequest()
    result = await get_container(request).checkout_service.confirm_checkout(
        store=store,
        identity=uid,
        session_id=body.session_id,
        rate_key=rate_key,
    )
    store.write_cookies(response)
    return result.to_dict()
