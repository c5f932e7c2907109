"""Entitlement store carried in signed client cookies."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from itsdangerous import BadSignature, Signer
from starlette.responses import Response

from photo_restore.domain.entitlements import Entitlement
from photo_restore.services.entitlements import EntitlementStore

CREDITS_COOKIE = "credits"
FREE_USED_COOKIE = "free_used"
ENTITLEMENT_MAX_AGE = 2 * 365 * 24 * 60 * 60


@dataclass(frozen=True)
class CookieSigner:
    """Signs cookie values per identity; passes them through without a secret."""

    secret: str | None = None

    @property
    def is_signing(self) -> bool:
        return bool(self.secret)

    def _signer(self, identity: str) -> Signer:
        return Signer(self.secret, salt=f"photo-restore.entitlement.{identity}")

    def sign(self, identity: str, value: str) -> str:
        if not self.secret:
            return value
        return self._signer(identity).sign(value).decode("utf-8")

    def unsign(self, identity: str, raw: str | None) -> str | None:
        """Return the verified value, or None when missing or tampered."""
        if raw is None:
            return None
        if not self.secret:
            return raw
        try:
            return self._signer(identity).unsign(raw).decode("utf-8")
        except BadSignature:
            return None


@dataclass
class CookieEntitlementStore(EntitlementStore):
    """Request-scoped store that reads incoming cookies and queues new ones."""

    signer: CookieSigner
    cookies: Mapping[str, str]
    secure: bool = False
    pending: dict[str, str] = field(default_factory=dict)

    def get_entitlement(self, identity: str) -> Entitlement:
        credits = _parse_credits(self._read(identity, CREDITS_COOKIE))
        free_used = self._read(identity, FREE_USED_COOKIE) == "1"
        return Entitlement(credits=credits, free_used=free_used)

    def set_credits(self, identity: str, credits: int) -> None:
        safe = max(0, int(credits))
        self.pending[CREDITS_COOKIE] = self.signer.sign(identity, str(safe))

    def mark_free_used(self, identity: str) -> None:
        self.pending[FREE_USED_COOKIE] = self.signer.sign(identity, "1")

    def write_cookies(self, response: Response) -> None:
        """Re-issue every mutated value on the outgoing response."""
        for name, value in self.pending.items():
            response.set_cookie(
                name,
                value,
                max_age=ENTITLEMENT_MAX_AGE,
                httponly=True,
                secure=self.secure,
                samesite="lax",
            )

    def _read(self, identity: str, name: str) -> str | None:
        raw = self.pending.get(name, self.cookies.get(name))
        return self.signer.unsign(identity, raw)


def _parse_credits(raw: str | None) -> int:
    if raw is None:
        return 0
    try:
        value = int(raw)
    except ValueError:
        return 0
    return value if value >= 0 else 0
