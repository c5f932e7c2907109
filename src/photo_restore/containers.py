"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from photo_restore.adapters.cookie_entitlement_store import CookieSigner
from photo_restore.adapters.gemini_image_client import GeminiImageProvider
from photo_restore.adapters.openrouter_image_client import OpenRouterImageProvider
from photo_restore.adapters.stripe_payment_client import StripePaymentClient
from photo_restore.config import (
    DEFAULT_GEMINI_MODELS,
    DEFAULT_OPENROUTER_MODELS,
    Settings,
    resolve_allowed_models,
)
from photo_restore.services.checkout import (
    CheckoutService,
    InMemoryProcessedSessionStore,
)
from photo_restore.services.generation import GenerationGateway, ImageProvider
from photo_restore.services.rate_limit import FixedWindowRateLimiter, RateLimitRule
from photo_restore.services.restoration import RestorationService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    cookie_signer: CookieSigner
    rate_limiter: FixedWindowRateLimiter
    generation_gateway: GenerationGateway
    restoration_service: RestorationService
    checkout_service: CheckoutService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    window = resolved_settings.rate_limit_window_seconds
    rate_limiter = FixedWindowRateLimiter()

    gemini: GeminiImageProvider | None = None
    openrouter: OpenRouterImageProvider | None = None
    providers: list[ImageProvider] = []
    if resolved_settings.gemini_api_key:
        gemini = GeminiImageProvider.create(
            api_key=resolved_settings.gemini_api_key,
            base_url=resolved_settings.gemini_base_url,
            default_model=resolved_settings.gemini_model,
            allowed_models=resolve_allowed_models(
                resolved_settings.gemini_allowed_models,
                DEFAULT_GEMINI_MODELS,
                resolved_settings.gemini_model,
            ),
            timeout=resolved_settings.provider_timeout_seconds,
        )
        providers.append(gemini)
    if resolved_settings.openrouter_api_key:
        openrouter = OpenRouterImageProvider.create(
            api_key=resolved_settings.openrouter_api_key,
            base_url=resolved_settings.openrouter_base_url,
            default_model=resolved_settings.openrouter_model,
            allowed_models=resolve_allowed_models(
                resolved_settings.openrouter_allowed_models,
                DEFAULT_OPENROUTER_MODELS,
                resolved_settings.openrouter_model,
            ),
            site_url=(
                resolved_settings.openrouter_site_url
                or resolved_settings.resolved_site_origin
            ),
            app_name=resolved_settings.openrouter_app_name,
            timeout=resolved_settings.provider_timeout_seconds,
        )
        providers.append(openrouter)
    gateway = GenerationGateway(providers=providers)

    restoration_service = RestorationService(
        gateway=gateway,
        rate_limiter=rate_limiter,
        image_rule=RateLimitRule(resolved_settings.restore_rate_limit, window),
        text_rule=RateLimitRule(resolved_settings.restore_text_rate_limit, window),
    )
    payment_client = (
        StripePaymentClient(
            secret_key=resolved_settings.stripe_secret_key,
            timeout=resolved_settings.payment_timeout_seconds,
        )
        if resolved_settings.stripe_secret_key
        else None
    )
    checkout_service = CheckoutService(
        payment_client=payment_client,
        processed_sessions=InMemoryProcessedSessionStore(),
        rate_limiter=rate_limiter,
        create_rule=RateLimitRule(resolved_settings.buy_credits_rate_limit, window),
        confirm_rule=RateLimitRule(resolved_settings.confirm_rate_limit, window),
    )

    async def close_resources() -> None:
        if gemini is not None:
            await gemini.close()
        if openrouter is not None:
            await openrouter.close()

    return AppContainer(
        settings=resolved_settings,
        cookie_signer=CookieSigner(resolved_settings.cookie_secret),
        rate_limiter=rate_limiter,
        generation_gateway=gateway,
        restoration_service=restoration_service,
        checkout_service=checkout_service,
        close_resources=close_resources,
    )
