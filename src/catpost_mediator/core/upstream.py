"""Single call to the OpenAI Responses API per request.

No retry: a failed generation may already have been billed upstream, so the
decision to try again is left to the caller.
"""
from __future__ import annotations
import logging
import time
from typing import Any, Optional

import httpx

from catpost_mediator.common.config import Settings
from catpost_mediator.common.templates import SYSTEM_INSTRUCTION
from catpost_mediator.core.errors import ConfigurationError, UpstreamFailure

LOGGER = logging.getLogger("catpost.core.upstream")


def map_creativity(creativity: float) -> float:
    """Map creativity in [0, 100] to a temperature in [0.2, 0.9]."""
    clamped = max(0.0, min(100.0, float(creativity)))
    return round(0.2 + 0.7 * clamped / 100, 2)


def top_p_for(temperature: float) -> float:
    return min(1.0, 0.9 + 0.1 * temperature)


def extract_output_text(data: dict[str, Any]) -> str:
    """Pull the reply text out of a Responses API payload."""
    text = data.get("output_text")
    if isinstance(text, str) and text:
        return text
    parts = []
    for item in data.get("output") or []:
        if not isinstance(item, dict):
            continue
        for content in item.get("content") or []:
            if isinstance(content, dict) and content.get("type") == "output_text":
                parts.append(content.get("text") or "")
    return "\n".join(parts)


class UpstreamInvoker:
    def __init__(
        self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def model(self) -> str:
        return self._settings.model

    def ensure_configured(self) -> None:
        if not self._settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

    def build_payload(self, prompt: str, creativity: float) -> dict[str, Any]:
        s = self._settings
        temperature = map_creativity(creativity)
        payload: dict[str, Any] = {
            "temperature": temperature,
            "top_p": top_p_for(temperature),
            "max_output_tokens": s.max_output_tokens,
        }
        if s.prompt_id:
            payload.update(
                {
                    "prompt": {"id": s.prompt_id},
                    "metadata": {"prompt_id": s.prompt_id},
                    "text": {"format": {"type": "text"}},
                    "input": prompt,
                    "store": True,
                }
            )
        else:
            payload.update(
                {
                    "model": s.model,
                    "input": [
                        {"role": "system", "content": SYSTEM_INSTRUCTION},
                        {"role": "user", "content": prompt},
                    ],
                }
            )
        return payload

    async def generate(self, prompt: str, creativity: float) -> str:
        """
        Send the prompt upstream and return the raw reply text.

        Raises:
            ConfigurationError: no API credential configured.
            UpstreamFailure: non-success status, transport error or a non-JSON body.
        """
        self.ensure_configured()
        s = self._settings
        url = f"{s.upstream_base_url}/responses"
        headers = {"Authorization": f"Bearer {s.openai_api_key}"}
        payload = self.build_payload(prompt, creativity)

        start = time.time()
        try:
            async with httpx.AsyncClient(
                timeout=s.upstream_timeout, transport=self._transport
            ) as client:
                r = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            LOGGER.error("Upstream request failed: %s", e)
            raise UpstreamFailure(f"OpenAI error: {e}")

        latency = int((time.time() - start) * 1000)
        if not r.is_success:
            LOGGER.error("Upstream returned %s after %sms", r.status_code, latency)
            raise UpstreamFailure(f"OpenAI error: {r.text}")

        try:
            data = r.json()
        except ValueError as e:
            LOGGER.error("Malformed upstream response: %s", e)
            raise UpstreamFailure("OpenAI error: malformed response")
        if not isinstance(data, dict):
            raise UpstreamFailure("OpenAI error: malformed response")

        LOGGER.info("Upstream replied in %sms", latency)
        return extract_output_text(data)
