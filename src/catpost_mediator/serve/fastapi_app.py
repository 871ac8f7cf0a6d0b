"""FastAPI front for the cat adoption post mediator.

Endpoints:
- GET /health
- <any method> /generate  { "token": "...", "inputs": {...}, "stylePreset": "...", "creativity": 50 }
"""
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from catpost_mediator.common.config import Settings, load_settings
from catpost_mediator.common.logging_setup import setup_logging
from catpost_mediator.common.schema import AccessRequest, MediatorResponse
from catpost_mediator.core.mediator import Mediator
from catpost_mediator.core.upstream import UpstreamInvoker

LOGGER = logging.getLogger("catpost.serve.app")


def client_address(request: Request, header_names: tuple[str, ...]) -> str:
    """First platform-supplied address header that is present, else "unknown"."""
    for name in header_names:
        value = request.headers.get(name, "").strip()
        if value:
            return value
    return "unknown"


def _to_response(result: MediatorResponse) -> Response:
    if result.body is None:
        return Response(status_code=result.status_code, headers=result.headers)
    headers = {k: v for k, v in result.headers.items() if k.lower() != "content-type"}
    return JSONResponse(result.body, status_code=result.status_code, headers=headers)


class GenerateEndpoint:
    """Raw ASGI endpoint for /generate.

    Registered without a method list so every method, HEAD and TRACE included,
    reaches the origin check before any method dispatch.
    """

    def __init__(self, mediator: Mediator, settings: Settings) -> None:
        self.mediator = mediator
        self.settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        access = AccessRequest(
            method=request.method,
            origin=request.headers.get("origin", ""),
            client_address=client_address(request, self.settings.client_ip_headers),
            body=await request.body(),
        )
        response = _to_response(await self.mediator.handle(access))
        await response(scope, receive, send)


def _warn_on_missing_config(settings: Settings) -> None:
    if not settings.allowed_origin:
        LOGGER.warning("ALLOWED_ORIGIN is empty; every /generate request will be rejected")
    if not settings.allowed_tokens:
        LOGGER.warning("ALLOWED_TOKENS is empty; every token will be rejected")
    if not settings.openai_api_key:
        LOGGER.warning("OPENAI_API_KEY is empty; admitted requests will fail with 500")


def create_app(
    settings: Optional[Settings] = None, invoker: Optional[UpstreamInvoker] = None
) -> FastAPI:
    settings = settings or load_settings()
    mediator = Mediator(settings, invoker=invoker)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _warn_on_missing_config(settings)
        LOGGER.info("Serving model %s", mediator.invoker.model)
        yield

    app = FastAPI(title="Cat adoption post mediator", lifespan=lifespan)
    app.state.settings = settings
    app.state.mediator = mediator

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "model": mediator.invoker.model}

    app.router.routes.append(Route("/generate", GenerateEndpoint(mediator, settings)))

    return app


def build_default_app() -> FastAPI:
    settings = load_settings()
    setup_logging(settings.log_level)
    return create_app(settings)
