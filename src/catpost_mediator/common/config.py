"""Process-wide settings, read once at startup and injected into components."""
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, TypeVar

import yaml

_T = TypeVar("_T")

DEFAULT_CLIENT_IP_HEADERS = (
    "cf-connecting-ip",
    "x-nf-client-connection-ip",
    "x-forwarded-for",
)


def split_csv(raw: str) -> tuple[str, ...]:
    """Split a comma-separated list, trimming entries and dropping empty ones."""
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    allowed_tokens: tuple[str, ...] = ()
    allowed_origin: str = ""
    max_output_chars: int = 2500
    openai_api_key: str = ""
    prompt_id: str = ""
    model: str = "gpt-4.1-mini"
    max_output_tokens: int = 700
    upstream_base_url: str = "https://api.openai.com/v1"
    upstream_timeout: float = 120.0
    client_ip_headers: tuple[str, ...] = DEFAULT_CLIENT_IP_HEADERS
    rate_limit_window_seconds: float = 60.0
    rate_limit_max_requests: int = 12
    log_level: str = "INFO"


def load_cfg(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings(
    environ: Optional[Mapping[str, str]] = None, cfg_path: Optional[str] = None
) -> Settings:
    """
    Build settings from the environment.

    An optional YAML file (``cfg_path`` or ``$CATPOST_CONFIG``) keyed by the
    same variable names supplies defaults; environment values win.

    Args:
        environ: Mapping to read instead of ``os.environ``.
        cfg_path: YAML config path.
    """
    env = os.environ if environ is None else environ
    cfg_path = cfg_path or env.get("CATPOST_CONFIG")
    file_values = load_cfg(cfg_path) if cfg_path else {}

    def read(name: str, transform: Callable[[str], _T], default: _T) -> _T:
        raw = env.get(name)
        if raw is None or raw == "":
            raw = file_values.get(name)
        if raw is None or raw == "":
            return default
        if isinstance(raw, list):
            raw = ",".join(str(item) for item in raw)
        try:
            return transform(str(raw))
        except ValueError:
            return default

    defaults = Settings()
    return Settings(
        allowed_tokens=read("ALLOWED_TOKENS", split_csv, defaults.allowed_tokens),
        allowed_origin=read("ALLOWED_ORIGIN", str.strip, defaults.allowed_origin),
        max_output_chars=read("MAX_OUTPUT_CHARS", int, defaults.max_output_chars),
        openai_api_key=read("OPENAI_API_KEY", str.strip, defaults.openai_api_key),
        prompt_id=read("PROMPT_ID", str.strip, defaults.prompt_id),
        model=read("OPENAI_MODEL", str.strip, defaults.model),
        max_output_tokens=read("MAX_OUTPUT_TOKENS", int, defaults.max_output_tokens),
        upstream_base_url=read("OPENAI_BASE_URL", lambda v: v.strip().rstrip("/"), defaults.upstream_base_url),
        upstream_timeout=read("UPSTREAM_TIMEOUT", float, defaults.upstream_timeout),
        client_ip_headers=read(
            "CLIENT_IP_HEADERS",
            lambda v: tuple(h.lower() for h in split_csv(v)),
            defaults.client_ip_headers,
        ),
        rate_limit_window_seconds=read(
            "RATE_LIMIT_WINDOW_SECONDS", float, defaults.rate_limit_window_seconds
        ),
        rate_limit_max_requests=read(
            "RATE_LIMIT_MAX_REQUESTS", int, defaults.rate_limit_max_requests
        ),
        log_level=read("LOG_LEVEL", lambda v: v.strip().upper(), defaults.log_level),
    )
