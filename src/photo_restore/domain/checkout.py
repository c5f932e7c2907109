"""Credit packs and checkout session records."""

from dataclasses import dataclass

CREDIT_PACKS = (500, 1000, 2000)
CENTS_PER_CREDIT = 0.5
PAID_STATUS = "paid"


@dataclass(frozen=True)
class CheckoutSession:
    """Subset of a payment provider's checkout session used for crediting."""

    id: str
    url: str | None = None
    owner: str | None = None
    credits: int = 0
    payment_status: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PAID_STATUS


@dataclass(frozen=True)
class ConfirmationResult:
    uid: str
    credited: bool
    credits: int

    def to_dict(self) -> dict[str, object]:
        return {
            "ok": True,
            "uid": self.uid,
            "credited": self.credited,
            "credits": self.credits,
        }


def parse_credit_pack(raw: object) -> int | None:
    """Return the pack size when it is one of the allowed packs."""
    try:
        value = int(raw)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None
    if isinstance(raw, float) and not raw.is_integer():
        return None
    return value if value in CREDIT_PACKS else None


def price_cents(credits: int) -> int:
    """Price of a credit pack in cents (100 credits = $0.50)."""
    return round(credits * CENTS_PER_CREDIT)
