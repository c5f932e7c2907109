"""Credit pack checkout and payment confirmation."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from photo_restore.domain.checkout import (
    CheckoutSession,
    ConfirmationResult,
    parse_credit_pack,
    price_cents,
)
from photo_restore.domain.errors import (
    Forbidden,
    InvalidRequest,
    PaymentNotCompleted,
    PaymentNotConfigured,
)
from photo_restore.services.entitlements import EntitlementStore
from photo_restore.services.rate_limit import FixedWindowRateLimiter, RateLimitRule

logger = logging.getLogger(__name__)


class PaymentClient(Protocol):
    """Interface for a hosted checkout provider."""

    @property
    def test_mode(self) -> bool:
        """Return true when the provider runs against test keys."""

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
        """Create a hosted checkout session for a credit pack."""

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """Fetch a checkout session by id."""


class ProcessedSessionStore(Protocol):
    """Record of checkout sessions that already credited a balance."""

    def contains(self, session_id: str) -> bool:
        """Return true when the session was already credited."""

    def add(self, session_id: str) -> None:
        """Mark the session as credited."""


@dataclass
class InMemoryProcessedSessionStore(ProcessedSessionStore):
    """Per-process set of credited sessions; lost on restart."""

    _session_ids: set[str] = field(default_factory=set)

    def contains(self, session_id: str) -> bool:
        return session_id in self._session_ids

    def add(self, session_id: str) -> None:
        self._session_ids.add(session_id)


@dataclass
class CheckoutService:
    """Sells credit packs and credits them once per paid session."""

    payment_client: PaymentClient | None
    processed_sessions: ProcessedSessionStore
    rate_limiter: FixedWindowRateLimiter
    create_rule: RateLimitRule
    confirm_rule: RateLimitRule
    product_label: str = "PhotoRestore Credits"

    async def create_checkout(
        self,
        *,
        identity: str,
        credits: object,
        site_origin: str,
        rate_key: str,
    ) -> CheckoutSession:
        """Create a checkout session tagged with the owner and pack size."""
        self.rate_limiter.enforce(rate_key, self.create_rule)
        client = self._require_client()
        pack = parse_credit_pack(credits)
        if pack is None:
            raise InvalidRequest("Invalid credits pack")
        prefix = "[TEST] " if client.test_mode else ""
        base = site_origin.rstrip("/")
        return await client.create_checkout_session(
            owner=identity,
            credits=pack,
            amount_cents=price_cents(pack),
            product_name=f"{prefix}{self.product_label} ({pack})",
            success_url=f"{base}/?p=success&session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base}/?p=cancel",
        )

    async def confirm_checkout(
        self,
        *,
        store: EntitlementStore,
        identity: str,
        session_id: str | None,
        rate_key: str,
    ) -> ConfirmationResult:
        """Credit a paid session's pack to its owner exactly once."""
        self.rate_limiter.enforce(rate_key, self.confirm_rule)
        client = self._require_client()
        if not session_id:
            raise InvalidRequest("Missing session_id")
        session = await client.retrieve_checkout_session(session_id)
        if not session.owner or session.owner != identity:
            logger.warning(
                "Checkout owner mismatch",
                extra={"session_id": session_id, "uid": identity},
            )
            raise Forbidden()
        if not session.is_paid:
            raise PaymentNotCompleted()

        current = store.get_entitlement(identity).credits
        if self.processed_sessions.contains(session_id):
            return ConfirmationResult(uid=identity, credited=False, credits=current)
        total = current + session.credits
        store.set_credits(identity, total)
        self.processed_sessions.add(session_id)
        logger.info(
            "Credited checkout session",
            extra={"session_id": session_id, "uid": identity, "credits": session.credits},
        )
        return ConfirmationResult(uid=identity, credited=True, credits=total)

    def _require_client(self) -> PaymentClient:
        if self.payment_client is None:
            raise PaymentNotConfigured()
        return self.payment_client
