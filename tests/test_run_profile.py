from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx

from catpost_mediator.common.config import Settings
from catpost_mediator.core.upstream import UpstreamInvoker
from catpost_mediator.local.run_profile import generate, load_profile


def test_profile_runs_through_upstream(tmp_path: Path) -> None:
    profile_path = tmp_path / "mochi.yaml"
    profile_path.write_text(
        "stylePreset: playful\n"
        "creativity: 100\n"
        "outputLength: short\n"
        "inputs:\n"
        "  catName: Mochi\n"
        "  temperament: [calm, cuddly]\n",
        encoding="utf-8",
    )
    profile = load_profile(str(profile_path))
    assert profile.inputs.cat_name == "Mochi"

    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"output_text": "Meet Mochi\n" + "z" * 700})

    settings = Settings(openai_api_key="sk-test")
    invoker = UpstreamInvoker(settings, transport=httpx.MockTransport(handler))
    result = asyncio.run(generate(profile, settings, invoker))

    assert result.title == "Meet Mochi"
    assert result.text == "z" * 500
    assert sent[0]["temperature"] == 0.9
    assert "Temperament: calm, cuddly" in sent[0]["input"][1]["content"]
