"""Stripe Checkout adapter for credit pack purchases."""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import stripe

from photo_restore.domain.checkout import CheckoutSession
from photo_restore.domain.errors import PaymentProviderError
from photo_restore.services.checkout import PaymentClient

logger = logging.getLogger(__name__)


@dataclass
class StripePaymentClient(PaymentClient):
    """Payment client calling Stripe Checkout off the event loop."""

    secret_key: str
    timeout: float = 30.0
    currency: str = "usd"

    @property
    def test_mode(self) -> bool:
        return self.secret_key.startswith("sk_test")

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
        """Create a one-off card payment session for a credit pack."""
        session = await self._call(
            stripe.checkout.Session.create,
            api_key=self.secret_key,
            mode="payment",
            payment_method_types=["card"],
            client_reference_id=owner,
            metadata={"credits": str(credits)},
            line_items=[
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": product_name},
                        "unit_amount": amount_cents,
                    },
                    "quantity": 1,
                }
            ],
            success_url=success_url,
            cancel_url=cancel_url,
        )
        return _to_checkout_session(session)

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """Fetch a checkout session with its owner and payment status."""
        session = await self._call(
            stripe.checkout.Session.retrieve, session_id, api_key=self.secret_key
        )
        return _to_checkout_session(session)

    async def _call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args, **kwargs), timeout=self.timeout
            )
        except TimeoutError as exc:
            raise PaymentProviderError("Payment provider timed out") from exc
        except stripe.StripeError as exc:
            logger.exception("Stripe request failed")
            raise PaymentProviderError(exc.user_message or str(exc)) from exc


def _to_checkout_session(session: Any) -> CheckoutSession:
    metadata = _field(session, "metadata") or {}
    try:
        credits = int(_field(metadata, "credits") or 0)
    except (TypeError, ValueError):
        credits = 0
    return CheckoutSession(
        id=_field(session, "id"),
        url=_field(session, "url"),
        owner=_field(session, "client_reference_id"),
        credits=credits,
        payment_status=_field(session, "payment_status"),
    )


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)
