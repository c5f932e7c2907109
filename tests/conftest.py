"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from photo_restore.adapters.cookie_entitlement_store import CookieSigner
from photo_restore.config import Settings
from photo_restore.containers import AppContainer
from photo_restore.domain.checkout import CheckoutSession
from photo_restore.domain.entitlements import Entitlement
from photo_restore.domain.generation import (
    GeneratedImage,
    GenerationOutcome,
    GenerationRequest,
)
from photo_restore.services.checkout import (
    CheckoutService,
    InMemoryProcessedSessionStore,
    PaymentClient,
)
from photo_restore.services.entitlements import EntitlementStore
from photo_restore.services.generation import GenerationGateway, ImageProvider
from photo_restore.services.rate_limit import FixedWindowRateLimiter, RateLimitRule
from photo_restore.services.restoration import RestorationService

SAMPLE_IMAGE_B64 = "aGVsbG8gd29ybGQ="
RESTORED_IMAGE_B64 = "cmVzdG9yZWQ="


@dataclass
class FakeClock:
    """Manually advanced clock for rate limiter tests."""

    now: float = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeImageProvider(ImageProvider):
    """Provider that replays a fixed outcome and records requests."""

    name: str = "fake"
    outcome: GenerationOutcome | None = None
    requests: list[GenerationRequest] = field(default_factory=list)

    async def generate(self, request: GenerationRequest) -> GenerationOutcome:
        self.requests.append(request)
        if self.outcome is not None:
            return self.outcome
        return GenerationOutcome.success(
            self.name,
            GeneratedImage(mime_type="image/png", data=RESTORED_IMAGE_B64),
        )


@dataclass
class InMemoryEntitlementStore(EntitlementStore):
    """Entitlement store backed by a dict for service tests."""

    entitlements: dict[str, Entitlement] = field(default_factory=dict)
    writes: list[str] = field(default_factory=list)

    def get_entitlement(self, identity: str) -> Entitlement:
        return self.entitlements.get(identity, Entitlement())

    def set_credits(self, identity: str, credits: int) -> None:
        current = self.get_entitlement(identity)
        self.entitlements[identity] = Entitlement(
            credits=max(0, credits), free_used=current.free_used
        )
        self.writes.append("credits")

    def mark_free_used(self, identity: str) -> None:
        current = self.get_entitlement(identity)
        self.entitlements[identity] = Entitlement(
            credits=current.credits, free_used=True
        )
        self.writes.append("free_used")


@dataclass
class FakePaymentClient(PaymentClient):
    """Payment client holding checkout sessions in memory."""

    sessions: dict[str, CheckoutSession] = field(default_factory=dict)
    created: list[dict[str, object]] = field(default_factory=list)
    is_test: bool = True

    @property
    def test_mode(self) -> bool:
        return self.is_test

    async def create_checkout_session(  # noqa: PLR0913
        self,
        *,
        owner: str,
        credits: int,
        amount_cents: int,
        product_name: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        session_id = f"cs_test_{len(self.created) + 1}"
        self.created.append(
            {
                "owner": owner,
                "credits": credits,
                "amount_cents": amount_cents,
                "product_name": product_name,
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.test/{session_id}",
            owner=owner,
            credits=credits,
            payment_status="unpaid",
        )
        self.sessions[session_id] = session
        return session

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        return self.sessions[session_id]

    def mark_paid(self, session_id: str) -> None:
        session = self.sessions[session_id]
        self.sessions[session_id] = CheckoutSession(
            id=session.id,
            url=session.url,
            owner=session.owner,
            credits=session.credits,
            payment_status="paid",
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        gemini_api_key="gemini-key",
        openrouter_api_key="openrouter-key",
        stripe_secret_key="sk_test_123",
        stripe_publishable_key="pk_test_123",
        cookie_secret="cookie-secret",
        site_origin="http://127.0.0.1:3000",
        environment="test",
    )


@pytest.fixture
def primary_provider() -> FakeImageProvider:
    return FakeImageProvider(name="primary")


@pytest.fixture
def secondary_provider() -> FakeImageProvider:
    return FakeImageProvider(name="secondary")


@pytest.fixture
def payment_client() -> FakePaymentClient:
    return FakePaymentClient()


@pytest.fixture
def container(
    settings: Settings,
    primary_provider: FakeImageProvider,
    secondary_provider: FakeImageProvider,
    payment_client: FakePaymentClient,
) -> AppContainer:
    window = settings.rate_limit_window_seconds
    rate_limiter = FixedWindowRateLimiter()
    gateway = GenerationGateway(providers=[primary_provider, secondary_provider])
    restoration_service = RestorationService(
        gateway=gateway,
        rate_limiter=rate_limiter,
        image_rule=RateLimitRule(settings.restore_rate_limit, window),
        text_rule=RateLimitRule(settings.restore_text_rate_limit, window),
    )
    checkout_service = CheckoutService(
        payment_client=payment_client,
        processed_sessions=InMemoryProcessedSessionStore(),
        rate_limiter=rate_limiter,
        create_rule=RateLimitRule(settings.buy_credits_rate_limit, window),
        confirm_rule=RateLimitRule(settings.confirm_rate_limit, window),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        cookie_signer=CookieSigner(settings.cookie_secret),
        rate_limiter=rate_limiter,
        generation_gateway=gateway,
        restoration_service=restoration_service,
        checkout_service=checkout_service,
        close_resources=close_resources,
    )
