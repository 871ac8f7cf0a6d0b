"""Request-lifecycle driver: gatekeeper -> rate limiter -> prompt -> upstream -> normalizer."""
from __future__ import annotations
import logging
from typing import Optional

from catpost_mediator.common.config import Settings
from catpost_mediator.common.schema import AccessRequest, GenerateOut, MediatorResponse
from catpost_mediator.common.templates import output_char_cap, render_prompt
from catpost_mediator.core.errors import MediatorError, RateLimited
from catpost_mediator.core.gatekeeper import PREFLIGHT_HEADERS, Gatekeeper
from catpost_mediator.core.normalizer import normalize
from catpost_mediator.core.ratelimit import RateLimiter
from catpost_mediator.core.upstream import UpstreamInvoker

LOGGER = logging.getLogger("catpost.core.mediator")


def _json_response(body: dict, status_code: int = 200, origin: str = "") -> MediatorResponse:
    headers = {"Content-Type": "application/json"}
    if origin:
        headers["Access-Control-Allow-Origin"] = origin
    return MediatorResponse(status_code=status_code, body=body, headers=headers)


class Mediator:
    def __init__(
        self,
        settings: Settings,
        gatekeeper: Optional[Gatekeeper] = None,
        limiter: Optional[RateLimiter] = None,
        invoker: Optional[UpstreamInvoker] = None,
    ) -> None:
        self.settings = settings
        self.gatekeeper = gatekeeper or Gatekeeper(settings)
        self.limiter = limiter or RateLimiter(
            settings.rate_limit_window_seconds, settings.rate_limit_max_requests
        )
        self.invoker = invoker or UpstreamInvoker(settings)

    async def handle(self, request: AccessRequest) -> MediatorResponse:
        origin = self.gatekeeper.allowed_origin(request.origin)

        if request.method.upper() == "OPTIONS":
            if not origin:
                return MediatorResponse(status_code=403)
            headers = {"Access-Control-Allow-Origin": origin, **PREFLIGHT_HEADERS}
            return MediatorResponse(status_code=204, headers=headers)

        try:
            return await self._generate(request, origin)
        except MediatorError as e:
            LOGGER.info("Request rejected with %s: %s", e.status_code, e.message)
            response = _json_response({"error": e.message}, e.status_code, origin)
            if isinstance(e, RateLimited):
                response.headers["Retry-After"] = str(e.retry_after)
            return response

    async def _generate(self, request: AccessRequest, origin: str) -> MediatorResponse:
        self.gatekeeper.check_origin(request.origin)
        self.gatekeeper.check_method(request.method)
        payload = self.gatekeeper.parse_body(request.body)
        self.gatekeeper.check_token(payload.token)
        self.limiter.check(payload.token, request.client_address)
        self.invoker.ensure_configured()

        prompt = render_prompt(payload.inputs, payload.style_preset, payload.output_length)
        max_chars = output_char_cap(self.settings.max_output_chars, payload.output_length)
        raw = await self.invoker.generate(prompt, payload.creativity)
        result = normalize(raw, max_chars)
        out = GenerateOut(title=result.title, text=result.text)
        return _json_response(out.model_dump(), 200, origin)
