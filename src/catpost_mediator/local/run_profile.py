"""Generate a post for one cat profile straight from the command line.

Skips the origin, token and rate-limit checks; reads the profile from YAML
(same keys as the JSON request body) and calls the upstream model directly.
"""
from __future__ import annotations
import argparse
import asyncio
import logging
import time
from typing import Optional

import yaml

from catpost_mediator.common.config import Settings, load_settings
from catpost_mediator.common.logging_setup import setup_logging
from catpost_mediator.common.schema import GenerateIn, GenerationResult
from catpost_mediator.common.templates import output_char_cap, render_prompt
from catpost_mediator.core.normalizer import normalize
from catpost_mediator.core.upstream import UpstreamInvoker

LOGGER = logging.getLogger("catpost.local.cli")


def load_profile(path: str) -> GenerateIn:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return GenerateIn.model_validate(data)


async def generate(
    profile: GenerateIn, settings: Settings, invoker: Optional[UpstreamInvoker] = None
) -> GenerationResult:
    """
    Run prompt building, the upstream call and normalization for one profile.

    Args:
        profile: Parsed request fields; ``token`` is ignored.
        settings: Loaded settings.
        invoker: Upstream invoker, built from ``settings`` when omitted.
    """
    invoker = invoker or UpstreamInvoker(settings)
    prompt = render_prompt(profile.inputs, profile.style_preset, profile.output_length)
    start = time.time()
    raw = await invoker.generate(prompt, profile.creativity)
    LOGGER.info("Latency: %sms", int((time.time() - start) * 1000))
    return normalize(raw, output_char_cap(settings.max_output_chars, profile.output_length))


def main() -> None:
    ap = argparse.ArgumentParser(description="Generate a cat adoption post from a YAML profile")
    ap.add_argument("--profile", required=True, help="YAML file with inputs, stylePreset, creativity")
    ap.add_argument("--cfg", default=None, help="Optional YAML settings file")
    args = ap.parse_args()

    settings = load_settings(cfg_path=args.cfg)
    setup_logging(settings.log_level)
    result = asyncio.run(generate(load_profile(args.profile), settings))
    if result.title:
        print(result.title)
        print()
    print(result.text)


if __name__ == "__main__":
    main()
