"""Models and validation for image generation requests."""

import re
from dataclasses import dataclass
from typing import Literal

from photo_restore.domain.entitlements import Usage
from photo_restore.domain.errors import InvalidRequest, PayloadTooLarge

MAX_IMAGE_BYTES = 12 * 1024 * 1024
RESTORE_PROMPT_SUFFIX = (
    "\n\nReturn only the restored photograph as an image (no text)."
)
DEFAULT_OUTPUT_MIME_TYPE = "image/png"
_BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/]*={0,2}")

OutcomeStatus = Literal["success", "blocked", "error"]


@dataclass(frozen=True)
class GenerationRequest:
    """Prompt plus optional base64 input image for a provider call."""

    prompt: str
    mime_type: str | None = None
    data: str | None = None
    model: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.mime_type and self.data)

    def provider_prompt(self) -> str:
        """Return the prompt text sent upstream."""
        if self.has_image:
            return f"{self.prompt}{RESTORE_PROMPT_SUFFIX}"
        return self.prompt


@dataclass(frozen=True)
class GeneratedImage:
    mime_type: str
    data: str


@dataclass(frozen=True)
class GenerationOutcome:
    """Normalized result of one provider attempt."""

    status: OutcomeStatus
    provider: str
    image: GeneratedImage | None = None
    message: str | None = None

    @classmethod
    def success(cls, provider: str, image: GeneratedImage) -> "GenerationOutcome":
        return cls(status="success", provider=provider, image=image)

    @classmethod
    def blocked(cls, provider: str, message: str | None = None) -> "GenerationOutcome":
        return cls(status="blocked", provider=provider, message=message)

    @classmethod
    def error(cls, provider: str, message: str | None = None) -> "GenerationOutcome":
        return cls(status="error", provider=provider, message=message)


@dataclass(frozen=True)
class RestoreResult:
    """Image returned to the client together with post-deduction usage."""

    mime_type: str
    data: str
    usage: Usage

    def to_dict(self) -> dict[str, object]:
        return {
            "mimeType": self.mime_type,
            "data": self.data,
            "usage": self.usage.to_dict(),
        }


def decoded_size(data: str) -> int:
    """Return the decoded byte length of a padded base64 payload."""
    if len(data) % 4 or not _BASE64_PATTERN.fullmatch(data):
        raise InvalidRequest("Invalid image data")
    return len(data) // 4 * 3 - data.count("=", -2)


def validate_image(mime_type: str | None, data: str | None) -> None:
    """Reject non-image mime types and payloads above the size cap."""
    if not isinstance(mime_type, str) or not mime_type.startswith("image/"):
        raise InvalidRequest("Invalid mimeType")
    if not isinstance(data, str) or not data:
        raise InvalidRequest("Missing image data")
    if decoded_size(data) > MAX_IMAGE_BYTES:
        raise PayloadTooLarge("Image too large")


def resolve_model(requested: str | None, allowed: list[str], default: str) -> str:
    """Return the requested model when allow-listed, else the default."""
    candidate = (requested or default).strip()
    return candidate if candidate in allowed else default
