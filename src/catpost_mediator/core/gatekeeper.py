"""Origin, method, body and token checks run before any other work."""
from __future__ import annotations
import json
import logging
from typing import Any

from pydantic import ValidationError

from catpost_mediator.common.config import Settings
from catpost_mediator.common.schema import GenerateIn
from catpost_mediator.core.errors import AccessDenied, MalformedInput, MethodNotAllowed

LOGGER = logging.getLogger("catpost.core.gatekeeper")

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}


class Gatekeeper:
    def __init__(self, settings: Settings) -> None:
        self._allowed_origin = settings.allowed_origin
        self._allowed_tokens = frozenset(settings.allowed_tokens)

    def allowed_origin(self, origin: str) -> str:
        """Return the origin if it equals the configured one exactly, else ""."""
        if origin and self._allowed_origin and origin == self._allowed_origin:
            return origin
        return ""

    def check_origin(self, origin: str) -> str:
        allowed = self.allowed_origin(origin)
        if not allowed:
            raise AccessDenied("Origin not allowed", status_code=403)
        return allowed

    @staticmethod
    def check_method(method: str) -> None:
        if method.upper() != "POST":
            raise MethodNotAllowed("Method not allowed")

    @staticmethod
    def parse_body(body: bytes) -> GenerateIn:
        """Decode and validate the JSON body; any failure is a 400."""
        try:
            data: Any = json.loads(body or b"{}")
        except (ValueError, UnicodeDecodeError):
            raise MalformedInput("Invalid JSON")
        if not isinstance(data, dict):
            raise MalformedInput("Invalid JSON")
        try:
            return GenerateIn.model_validate(data)
        except ValidationError as e:
            LOGGER.info("Rejected request body: %s", e.errors(include_url=False))
            raise MalformedInput("Invalid request body")

    def check_token(self, token: str) -> None:
        if not token or token not in self._allowed_tokens:
            raise AccessDenied("Unauthorized", status_code=401)
