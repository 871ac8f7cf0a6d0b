from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from catpost_mediator.common.config import Settings
from catpost_mediator.common.templates import SYSTEM_INSTRUCTION
from catpost_mediator.core.errors import ConfigurationError, UpstreamFailure
from catpost_mediator.core.upstream import (
    UpstreamInvoker,
    extract_output_text,
    map_creativity,
    top_p_for,
)

SETTINGS = Settings(openai_api_key="sk-test")


def _invoker(handler, settings: Settings = SETTINGS) -> UpstreamInvoker:
    return UpstreamInvoker(settings, transport=httpx.MockTransport(handler))


def test_creativity_mapping_bounds() -> None:
    assert map_creativity(0) == 0.2
    assert map_creativity(100) == 0.9
    assert map_creativity(-40) == 0.2
    assert map_creativity(250) == 0.9
    previous = 0.0
    for c in range(0, 101):
        t = map_creativity(c)
        assert 0.2 <= t <= 0.9
        assert t >= previous
        previous = t


def test_top_p() -> None:
    assert top_p_for(0.2) == pytest.approx(0.92)
    assert top_p_for(0.9) == pytest.approx(0.99)
    assert top_p_for(5.0) == 1.0


def test_chat_variant_request() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"output_text": "Meet Mochi\nShe is calm."})

    text = asyncio.run(_invoker(handler).generate("Cat name: Mochi", 0))
    assert text == "Meet Mochi\nShe is calm."
    assert seen["url"] == "https://api.openai.com/v1/responses"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert body["input"] == [
        {"role": "system", "content": SYSTEM_INSTRUCTION},
        {"role": "user", "content": "Cat name: Mochi"},
    ]
    assert body["temperature"] == 0.2
    assert "prompt" not in body


def test_stored_prompt_variant_request() -> None:
    settings = Settings(openai_api_key="sk-test", prompt_id="pmpt_123", max_output_tokens=300)
    payload = UpstreamInvoker(settings).build_payload("Cat name: Mochi", 100)
    assert payload["prompt"] == {"id": "pmpt_123"}
    assert payload["metadata"] == {"prompt_id": "pmpt_123"}
    assert payload["input"] == "Cat name: Mochi"
    assert payload["store"] is True
    assert payload["text"] == {"format": {"type": "text"}}
    assert payload["temperature"] == 0.9
    assert payload["max_output_tokens"] == 300
    assert "model" not in payload


def test_extract_output_text_from_output_items() -> None:
    data = {
        "output": [
            {"type": "reasoning", "content": []},
            {
                "type": "message",
                "content": [
                    {"type": "output_text", "text": "Meet Mochi"},
                    {"type": "refusal", "refusal": "no"},
                    {"type": "output_text", "text": "She is calm."},
                ],
            },
        ]
    }
    assert extract_output_text(data) == "Meet Mochi\nShe is calm."
    assert extract_output_text({}) == ""


def test_non_success_surfaces_raw_text_without_retry() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(429, text='{"error": {"message": "quota"}}')

    with pytest.raises(UpstreamFailure) as exc:
        asyncio.run(_invoker(handler).generate("p", 50))
    assert exc.value.status_code == 502
    assert exc.value.message == 'OpenAI error: {"error": {"message": "quota"}}'
    assert len(calls) == 1


def test_transport_error_is_upstream_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamFailure):
        asyncio.run(_invoker(handler).generate("p", 50))


def test_non_json_success_is_upstream_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(UpstreamFailure):
        asyncio.run(_invoker(handler).generate("p", 50))


def test_missing_credential() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("should not be called")

    with pytest.raises(ConfigurationError) as exc:
        asyncio.run(_invoker(handler, Settings()).generate("p", 50))
    assert exc.value.status_code == 500
