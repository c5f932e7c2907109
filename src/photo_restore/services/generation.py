"""Provider gateway with ordered fallback between image providers."""

import logging
from dataclasses import dataclass
from typing import Protocol

from photo_restore.domain.errors import ProviderNotConfigured
from photo_restore.domain.generation import (
    GenerationOutcome,
    GenerationRequest,
    validate_image,
)

logger = logging.getLogger(__name__)


class ImageProvider(Protocol):
    """Interface for a multimodal image generation backend."""

    name: str

    async def generate(self, request: GenerationRequest) -> GenerationOutcome:
        """Generate an image and classify the provider's answer."""


@dataclass
class GenerationGateway:
    """Try each provider in order until one returns an image.

    A policy block from any provider is reported in preference to a generic
    upstream error, since it tells the user why nothing came back.
    """

    providers: list[ImageProvider]

    @property
    def is_configured(self) -> bool:
        return bool(self.providers)

    async def generate(
        self,
        request: GenerationRequest,
        *,
        route: str = "restore",
        uid: str | None = None,
    ) -> GenerationOutcome:
        """Return the first successful outcome, or the most specific failure."""
        if request.mime_type is not None or request.data is not None:
            validate_image(request.mime_type, request.data)
        if not self.providers:
            raise ProviderNotConfigured()

        blocked: GenerationOutcome | None = None
        last_error: GenerationOutcome | None = None
        previous: GenerationOutcome | None = None
        for provider in self.providers:
            if previous is not None:
                logger.info(
                    "Falling back to %s",
                    provider.name,
                    extra={
                        "route": route,
                        "reason": f"{previous.provider}_{previous.status}",
                        "uid": uid,
                    },
                )
            outcome = await provider.generate(request)
            previous = outcome
            if outcome.status == "success" and outcome.image is not None:
                return outcome
            if outcome.status == "blocked":
                blocked = blocked or outcome
            else:
                last_error = outcome
                logger.warning(
                    "Provider %s failed: %s",
                    provider.name,
                    outcome.message,
                    extra={"route": route, "uid": uid},
                )
        if blocked is not None:
            return blocked
        if last_error is not None:
            return last_error
        return GenerationOutcome.error("gateway", "No provider returned an image")
