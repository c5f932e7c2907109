"""Metered restoration: entitlement check, generation, then deduction."""

import logging
from dataclasses import dataclass

from photo_restore.domain.entitlements import CREDITS_PER_IMAGE, Entitlement, Usage
from photo_restore.domain.errors import (
    ContentBlocked,
    InvalidRequest,
    PaymentRequired,
    ProviderNotConfigured,
    UpstreamFailure,
)
from photo_restore.domain.generation import (
    GenerationRequest,
    RestoreResult,
    validate_image,
)
from photo_restore.services.entitlements import EntitlementStore
from photo_restore.services.generation import GenerationGateway
from photo_restore.services.rate_limit import FixedWindowRateLimiter, RateLimitRule

logger = logging.getLogger(__name__)


@dataclass
class RestorationService:
    """Runs one restoration request against a client's entitlement.

    Two concurrent requests from the same client can both read the same
    entitlement before either writes it back; the cookie-carried state has
    no server-side lock to prevent that.
    """

    gateway: GenerationGateway
    rate_limiter: FixedWindowRateLimiter
    image_rule: RateLimitRule
    text_rule: RateLimitRule

    async def restore(
        self,
        *,
        store: EntitlementStore,
        identity: str,
        request: GenerationRequest,
        rate_key: str,
    ) -> RestoreResult:
        """Restore an uploaded photo."""
        self.rate_limiter.enforce(rate_key, self.image_rule)
        if not request.prompt or not request.mime_type or not request.data:
            raise InvalidRequest("Missing prompt, mimeType, or data")
        validate_image(request.mime_type, request.data)
        return await self._generate(store, identity, request, route="restore")

    async def restore_text(
        self,
        *,
        store: EntitlementStore,
        identity: str,
        prompt: str | None,
        model: str | None,
        rate_key: str,
    ) -> RestoreResult:
        """Generate an image from a prompt alone."""
        self.rate_limiter.enforce(rate_key, self.text_rule)
        if not prompt:
            raise InvalidRequest("Missing prompt")
        request = GenerationRequest(prompt=prompt, model=model)
        return await self._generate(store, identity, request, route="restore-text")

    async def _generate(
        self,
        store: EntitlementStore,
        identity: str,
        request: GenerationRequest,
        *,
        route: str,
    ) -> RestoreResult:
        if not self.gateway.is_configured:
            raise ProviderNotConfigured()
        entitlement = store.get_entitlement(identity)
        if not entitlement.can_use_free and not entitlement.has_credits:
            raise PaymentRequired(credits=entitlement.credits)

        outcome = await self.gateway.generate(request, route=route, uid=identity)
        if outcome.status == "blocked":
            raise ContentBlocked()
        if outcome.status != "success" or outcome.image is None:
            logger.warning(
                "Generation failed",
                extra={"route": route, "provider": outcome.provider, "uid": identity},
            )
            raise UpstreamFailure(outcome.message)

        usage = _deduct(store, identity, entitlement)
        return RestoreResult(
            mime_type=outcome.image.mime_type, data=outcome.image.data, usage=usage
        )


def _deduct(store: EntitlementStore, identity: str, entitlement: Entitlement) -> Usage:
    """Consume the free restoration if still available, otherwise 100 credits."""
    if entitlement.can_use_free:
        store.mark_free_used(identity)
        return Usage(credits=entitlement.credits, free_remaining=0)
    remaining = entitlement.credits - CREDITS_PER_IMAGE
    store.set_credits(identity, remaining)
    return Usage(credits=remaining, free_remaining=0)
