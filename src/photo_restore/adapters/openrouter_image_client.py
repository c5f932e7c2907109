"""OpenRouter chat completions client used as the fallback image provider."""

import re
from dataclasses import dataclass

from openai import APIError, APIStatusError, AsyncOpenAI

from photo_restore.domain.generation import (
    DEFAULT_OUTPUT_MIME_TYPE,
    GeneratedImage,
    GenerationOutcome,
    GenerationRequest,
    resolve_model,
)
from photo_restore.services.generation import ImageProvider

_POLICY_PATTERN = re.compile(r"policy|safety|not\s+allowed|blocked", re.IGNORECASE)
_DATA_URL_PATTERN = re.compile(r"^data:([^;]+);base64,(.*)$", re.DOTALL)


@dataclass
class OpenRouterImageProvider(ImageProvider):
    """Secondary provider backed by the OpenAI SDK pointed at OpenRouter."""

    client: AsyncOpenAI
    default_model: str
    allowed_models: list[str]
    name: str = "openrouter"

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        *,
        api_key: str,
        base_url: str,
        default_model: str,
        allowed_models: list[str],
        site_url: str,
        app_name: str,
        timeout: float,
    ) -> "OpenRouterImageProvider":
        """Create an OpenRouter provider with app attribution headers."""
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            default_headers={"HTTP-Referer": site_url, "X-Title": app_name},
        )
        return cls(
            client=client, default_model=default_model, allowed_models=allowed_models
        )

    async def generate(self, request: GenerationRequest) -> GenerationOutcome:
        """Request image output and extract the first returned data URL."""
        model = resolve_model(request.model, self.allowed_models, self.default_model)
        content: list[dict[str, object]] = [
            {"type": "text", "text": request.provider_prompt()}
        ]
        if request.has_image:
            content.append(
                {
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:{request.mime_type};base64,{request.data}"
                    },
                }
            )
        try:
            raw = await self.client.chat.completions.with_raw_response.create(
                model=model,
                messages=[{"role": "user", "content": content}],
                extra_body={"modalities": ["image", "text"]},
            )
        except APIStatusError as exc:
            if _POLICY_PATTERN.search(exc.response.text):
                return GenerationOutcome.blocked(self.name)
            return GenerationOutcome.error(self.name, _status_error_message(exc))
        except APIError as exc:
            return GenerationOutcome.error(self.name, exc.message)
        try:
            payload = raw.http_response.json()
        except ValueError:
            return GenerationOutcome.error(self.name, "Non-JSON response")
        if not isinstance(payload, dict):
            return GenerationOutcome.error(self.name, "Malformed response")
        return _parse_completion(self.name, payload)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def _parse_completion(name: str, payload: dict[str, object]) -> GenerationOutcome:
    error = payload.get("error")
    if isinstance(error, dict):
        message = str(error.get("message") or "")
        if _POLICY_PATTERN.search(message):
            return GenerationOutcome.blocked(name, message)
        return GenerationOutcome.error(name, message or None)
    choices = payload.get("choices") or []
    choice = choices[0] if isinstance(choices, list) and choices else None
    reply = choice.get("message") if isinstance(choice, dict) else None
    images = reply.get("images") if isinstance(reply, dict) else None
    if not images:
        return GenerationOutcome.error(name, "No image in response")
    first = images[0] if isinstance(images, list) else None
    image_url = first.get("image_url") if isinstance(first, dict) else None
    if isinstance(image_url, dict):
        image_url = image_url.get("url")
    if not isinstance(image_url, str):
        return GenerationOutcome.error(name, "Malformed response")
    if not image_url.startswith("data:image/"):
        return GenerationOutcome.error(name, "No image in response")
    match = _DATA_URL_PATTERN.match(image_url)
    if not match or not match.group(2):
        return GenerationOutcome.error(name, "Malformed image data URL")
    return GenerationOutcome.success(
        name,
        GeneratedImage(
            mime_type=match.group(1) or DEFAULT_OUTPUT_MIME_TYPE, data=match.group(2)
        ),
    )


def _status_error_message(exc: APIStatusError) -> str:
    body = exc.body
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {exc.status_code}"
