"""Entitlement models for metered restorations."""

from dataclasses import dataclass

CREDITS_PER_IMAGE = 100


@dataclass(frozen=True)
class Entitlement:
    """A client's free-use flag and paid credit balance."""

    credits: int = 0
    free_used: bool = False

    @property
    def can_use_free(self) -> bool:
        return not self.free_used

    @property
    def has_credits(self) -> bool:
        return self.credits >= CREDITS_PER_IMAGE

    @property
    def free_remaining(self) -> int:
        return 0 if self.free_used else 1


@dataclass(frozen=True)
class Usage:
    """Usage snapshot returned to the client after a generation."""

    credits: int
    free_remaining: int

    def to_dict(self) -> dict[str, int]:
        return {"credits": self.credits, "freeRemaining": self.free_remaining}
