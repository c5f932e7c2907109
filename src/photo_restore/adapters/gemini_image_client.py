"""Gemini generateContent client for image restoration."""

import re
from dataclasses import dataclass

import httpx

from photo_restore.domain.generation import (
    DEFAULT_OUTPUT_MIME_TYPE,
    GeneratedImage,
    GenerationOutcome,
    GenerationRequest,
    resolve_model,
)
from photo_restore.services.generation import ImageProvider

BLOCKED_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "IMAGE_SAFETY"}
_POLICY_PATTERN = re.compile(r"safety|prohibited_content|policy", re.IGNORECASE)


@dataclass
class GeminiImageProvider(ImageProvider):
    """Primary provider calling the Gemini REST API with httpx."""

    api_key: str
    base_url: str
    default_model: str
    allowed_models: list[str]
    http_client: httpx.AsyncClient
    timeout: float = 120.0
    name: str = "gemini"

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        api_key: str,
        base_url: str,
        default_model: str,
        allowed_models: list[str],
        timeout: float,
    ) -> "GeminiImageProvider":
        """Create a Gemini provider with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            default_model=_strip_models_prefix(default_model),
            allowed_models=[_strip_models_prefix(m) for m in allowed_models],
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def generate(self, request: GenerationRequest) -> GenerationOutcome:
        """Call generateContent and classify the response."""
        requested = _strip_models_prefix(request.model) if request.model else None
        model = resolve_model(requested, self.allowed_models, self.default_model)
        parts: list[dict[str, object]] = [{"text": request.provider_prompt()}]
        if request.has_image:
            parts.append(
                {"inlineData": {"mimeType": request.mime_type, "data": request.data}}
            )
        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            response = await self.http_client.post(
                url,
                headers={"x-goog-api-key": self.api_key},
                json={"contents": [{"parts": parts}]},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            return GenerationOutcome.error(self.name, f"{type(exc).__name__}: {exc}")

        if response.is_error:
            if _POLICY_PATTERN.search(response.text):
                return GenerationOutcome.blocked(self.name)
            return GenerationOutcome.error(self.name, _error_message(response))
        try:
            payload = response.json()
        except ValueError:
            return GenerationOutcome.error(self.name, "Non-JSON response")
        return _parse_generate_content(self.name, payload)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _parse_generate_content(name: str, payload: object) -> GenerationOutcome:
    if not isinstance(payload, dict):
        return GenerationOutcome.error(name, "Malformed response")
    feedback = payload.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        return GenerationOutcome.blocked(name, str(feedback["blockReason"]))
    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list):
        return GenerationOutcome.error(name, "Malformed response")
    candidate = candidates[0] if candidates else {}
    if not isinstance(candidate, dict):
        return GenerationOutcome.error(name, "Malformed response")
    finish_reason = candidate.get("finishReason")
    if finish_reason in BLOCKED_FINISH_REASONS:
        return GenerationOutcome.blocked(name, finish_reason)
    content = candidate.get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if content and not isinstance(parts, list):
        return GenerationOutcome.error(name, "Malformed response")
    for part in parts or []:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        data = inline.get("data") if isinstance(inline, dict) else None
        if not isinstance(data, str) or not data:
            continue
        mime_type = (
            inline.get("mimeType") or inline.get("mime_type") or DEFAULT_OUTPUT_MIME_TYPE
        )
        return GenerationOutcome.success(
            name, GeneratedImage(mime_type=str(mime_type), data=data)
        )
    return GenerationOutcome.error(name, "No image in response")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {response.status_code}"


def _strip_models_prefix(model: str) -> str:
    return model.removeprefix("models/").strip()
