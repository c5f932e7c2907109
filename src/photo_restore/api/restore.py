"""Restoration endpoints."""

from fastapi import APIRouter, Depends, Request, Response

from photo_restore.adapters.cookie_entitlement_store import CookieEntitlementStore
from photo_restore.api.dependencies import (
    get_container,
    get_entitlement_store,
    get_rate_limit_key,
    get_uid,
)
from photo_restore.api.models import RestoreRequest, RestoreTextRequest
from photo_restore.domain.generation import GenerationRequest

router = APIRouter(prefix="/api", tags=["restore"])


@router.post("/restore")
async def restore(  # noqa: PLR0913
    request: Request,
    response: Response,
    payload: RestoreRequest | None = None,
    uid: str = Depends(get_uid),
    store: CookieEntitlementStore = Depends(get_entitlement_store),
    rate_key: str = Depends(get_rate_limit_key),
) -> dict[str, object]:
    """Restore an uploaded photo, charging the free use or 100 credits."""
    body = payload or RestoreRequest()
    result = await get_container(request).restoration_service.restore(
        store=store,
        identity=uid,
        request=GenerationRequest(
            prompt=body.prompt or "",
            mime_type=body.mime_type,
            data=body.data,
            model=body.model,
        ),
        rate_key=rate_key,
    )
    store.write_cookies(response)
    return result.to_dict()


@router.post("/restore-text")
async def restore_text(  # noqa: PLR0913
    request: Request,
    response: Response,
    payload: RestoreTextRequest | None = None,
    uid: str = Depends(get_uid),
    store: CookieEntitlementStore = Depends(get_entitlement_store),
    rate_key: str = Depends(get_rate_limit_key),
) -> dict[str, object]:
    """Generate an image from text only."""
    body = payload or RestoreTextRequest()
    result = await get_container(request).restoration_service.restore_text(
        store=store,
        identity=uid,
        prompt=body.prompt,
        model=body.model,
        rate_key=rate_key,
    )
    store.write_cookies(response)
    return result.to_dict()
