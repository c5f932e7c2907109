"""Entitlement store interface."""

from typing import Protocol

from photo_restore.domain.entitlements import Entitlement


class EntitlementStore(Protocol):
    """Reads and writes a client's credits and free-use flag."""

    def get_entitlement(self, identity: str) -> Entitlement:
        """Return the current entitlement for the identity."""

    def set_credits(self, identity: str, credits: int) -> None:
        """Replace the credit balance for the identity."""

    def mark_free_used(self, identity: str) -> None:
        """Record that the identity consumed its free restoration."""
