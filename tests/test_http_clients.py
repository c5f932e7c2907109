"""Tests for HTTP-based provider adapters."""

import asyncio
import json

import httpx
from openai import AsyncOpenAI

from photo_restore.adapters.gemini_image_client import GeminiImageProvider
from photo_restore.adapters.openrouter_image_client import OpenRouterImageProvider
from photo_restore.domain.generation import GenerationRequest
from tests.conftest import SAMPLE_IMAGE_B64

IMAGE_REQUEST = GenerationRequest(
    prompt="Restore this photo",
    mime_type="image/jpeg",
    data=SAMPLE_IMAGE_B64,
)


def _gemini(handler) -> GeminiImageProvider:  # type: ignore[no-untyped-def]
    return GeminiImageProvider(
        api_key="gemini-key",
        base_url="https://gemini.test/v1beta",
        default_model="gemini-2.5-flash-image-preview",
        allowed_models=["gemini-2.5-flash-image-preview", "gemini-2.5-flash"],
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _openrouter(handler) -> OpenRouterImageProvider:  # type: ignore[no-untyped-def]
    client = AsyncOpenAI(
        api_key="openrouter-key",
        base_url="https://openrouter.test/api/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return OpenRouterImageProvider(
        client=client,
        default_model="google/gemini-2.5-flash-image-preview",
        allowed_models=["google/gemini-2.5-flash-image-preview"],
    )


def test_gemini_extracts_inline_image() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {
                        "finishReason": "STOP",
                        "content": {
                            "parts": [
                                {"text": "Here you go"},
                                {"inlineData": {"mimeType": "image/jpeg", "data": "b3V0"}},
                            ]
                        },
                    }
                ]
            },
        )

    outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "success"
    assert outcome.image is not None
    assert outcome.image.mime_type == "image/jpeg"
    assert outcome.image.data == "b3V0"
    request = seen[0]
    assert request.url.path.endswith(
        "/models/gemini-2.5-flash-image-preview:generateContent"
    )
    assert request.headers["x-goog-api-key"] == "gemini-key"
    parts = json.loads(request.content)["contents"][0]["parts"]
    assert parts[0]["text"].endswith("as an image (no text).")
    assert parts[1]["inlineData"]["data"] == SAMPLE_IMAGE_B64


def test_gemini_rejects_unlisted_model_in_favor_of_default() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"candidates": []})

    request = GenerationRequest(prompt="a cat", model="evil-model")
    asyncio.run(_gemini(handler).generate(request))

    assert paths[0].endswith("/models/gemini-2.5-flash-image-preview:generateContent")


def test_gemini_safety_finish_reason_is_blocked() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"candidates": [{"finishReason": "PROHIBITED_CONTENT"}]}
        )

    outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "blocked"


def test_gemini_policy_error_body_is_blocked() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text='{"error": {"message": "SAFETY violation"}}')

    outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "blocked"


def test_gemini_http_error_carries_upstream_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": {"message": "Model overloaded"}})

    outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "error"
    assert outcome.message == "Model overloaded"


def test_gemini_network_failure_is_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "error"
    assert "ConnectError" in (outcome.message or "")


def test_gemini_text_only_answer_is_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": "no image"}]}}]},
        )

    outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "error"


def test_openrouter_extracts_data_url_image() -> None:
    payloads: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        payloads.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "id": "gen-1",
                "choices": [
                    {
                        "index": 0,
                        "message": {
                            "role": "assistant",
                            "content": "",
                            "images": [
                                {
                                    "type": "image_url",
                                    "image_url": {
                                        "url": "data:image/webp;base64,cmVzdWx0"
                                    },
                                }
                            ],
                        },
                    }
                ],
            },
        )

    request = GenerationRequest(
        prompt="Restore",
        mime_type="image/png",
        data=SAMPLE_IMAGE_B64,
        model="not-allowed/model",
    )
    outcome = asyncio.run(_openrouter(handler).generate(request))

    assert outcome.status == "success"
    assert outcome.image is not None
    assert outcome.image.mime_type == "image/webp"
    assert outcome.image.data == "cmVzdWx0"
    payload = payloads[0]
    assert payload["model"] == "google/gemini-2.5-flash-image-preview"
    assert payload["modalities"] == ["image", "text"]
    content = payload["messages"][0]["content"]
    assert content[1]["image_url"]["url"].startswith("data:image/png;base64,")


def test_openrouter_policy_rejection_is_blocked() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"error": {"message": "Request blocked by content policy"}}
        )

    outcome = asyncio.run(_openrouter(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "blocked"


def test_openrouter_upstream_error_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": {"message": "Provider returned error"}})

    outcome = asyncio.run(_openrouter(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "error"
    assert outcome.message == "Provider returned error"


def test_openrouter_missing_image_is_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "id": "gen-2",
                "choices": [
                    {"index": 0, "message": {"role": "assistant", "content": "Sorry"}}
                ],
            },
        )

    outcome = asyncio.run(_openrouter(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "error"
    assert outcome.message == "No image in response"


def test_gemini_policy_match_ignores_case() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"error": {"message": "Request violates our usage Policy"}}
        )

    outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "blocked"


def test_gemini_undecodable_body_is_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"\xff\xfe\xfd garbage")

    outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "error"


def test_gemini_error_with_undecodable_body_keeps_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, content=b"\xff\xfe\xfd")

    outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

    assert outcome.status == "error"
    assert outcome.message == "HTTP 503"


def test_gemini_malformed_nodes_are_errors() -> None:
    bodies = [
        {"candidates": [{"content": "oops"}]},
        {"candidates": ["oops"]},
        {"candidates": {"content": {}}},
        {"candidates": [{"content": {"parts": [{"inlineData": "oops"}]}}]},
    ]
    for body in bodies:

        def handler(request: httpx.Request, body: object = body) -> httpx.Response:
            return httpx.Response(200, json=body)

        outcome = asyncio.run(_gemini(handler).generate(IMAGE_REQUEST))

        assert outcome.status == "error", body


def _openrouter_reply(message: object) -> dict[str, object]:
    return {"id": "gen-3", "choices": [{"index": 0, "message": message}]}


def test_openrouter_malformed_replies_are_errors() -> None:
    bodies = [
        _openrouter_reply(
            {"role": "assistant", "images": ["data:image/png;base64,AAAA"]}
        ),
        _openrouter_reply("not an object"),
        {"id": "gen-4", "choices": ["not an object"]},
        _openrouter_reply({"role": "assistant", "images": {"url": "x"}}),
    ]
    for body in bodies:

        def handler(request: httpx.Request, body: object = body) -> httpx.Response:
            return httpx.Response(200, json=body)

        outcome = asyncio.run(_openrouter(handler).generate(IMAGE_REQUEST))

        assert outcome.status == "error", body
