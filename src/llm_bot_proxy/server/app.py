"""
FastAPI application exposing the request handler over HTTP.

Every method and path is routed to the handler; the proxied site owns the
whole URL space, so no routes of our own are registered.

Usage:
    app = create_app(get_settings())
    uvicorn.run(app, host=settings.host, port=settings.port)
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from starlette.background import BackgroundTask
from starlette.responses import Response, StreamingResponse

from ..config.settings import Settings
from ..proxy.exceptions import ConfigurationError, FetchError, LoopDetectedError
from ..proxy.handler import RequestHandler
from ..proxy.models import ClientContext, IncomingRequest
from ..utils.http_utils import strip_hop_by_hop_headers

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _to_incoming(request: Request, body: bytes) -> IncomingRequest:
    return IncomingRequest(
        method=request.method.upper(),
        url=httpx.URL(str(request.url)),
        headers=httpx.Headers(
            [(key.decode("latin-1"), value.decode("latin-1")) for key, value in request.headers.raw]
        ),
        body=body,
    )


def _client_context(request: Request, settings: Settings) -> ClientContext:
    return ClientContext(
        ip=request.headers.get(settings.client_ip_header) or None,
        country=request.headers.get(settings.country_header) or None,
    )


def _to_starlette(upstream: httpx.Response) -> Response:
    """Convert an httpx response, streaming the body when it is still unread."""
    headers = strip_hop_by_hop_headers(upstream.headers)

    if upstream.is_stream_consumed:
        if "content-length" in headers:
            del headers["content-length"]
        response = Response(content=upstream.content, status_code=upstream.status_code)
    else:
        response = StreamingResponse(
            upstream.aiter_raw(),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )

    # append keeps repeated headers like Set-Cookie
    for key, value in headers.multi_items():
        response.headers.append(key, value)
    return response


def create_app(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the proxy application.

    Args:
        settings: Loaded settings; a missing organization id is allowed
            and turns the proxy into a plain pass-through
        transport: Optional httpx transport (tests inject a MockTransport)

    Returns:
        Configured FastAPI app

    Raises:
        ConfigurationError: If settings other than the organization id are invalid
    """
    errors = settings.validate(require_organization_id=False)
    if errors:
        raise ConfigurationError("; ".join(errors), field="settings")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(settings.fetch_timeout_seconds),
            follow_redirects=False,
        ) as client:
            handler = RequestHandler.from_client(settings, client)
            app.state.handler = handler
            if not settings.has_organization_id:
                logger.error(
                    "organization_id is not set; all requests will pass through unmodified"
                )
            logger.info(
                f"Proxy ready (origin={settings.origin_url}, "
                f"alt_origin={settings.alt_origin or 'n/a'})"
            )
            try:
                yield
            finally:
                await handler.telemetry.drain()

    app = FastAPI(
        title="LLM bot content proxy",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
    async def proxy(request: Request, path: str) -> Response:
        handler: RequestHandler = request.app.state.handler
        incoming = _to_incoming(request, await request.body())
        try:
            upstream = await handler.handle(incoming, _client_context(request, settings))
        except LoopDetectedError:
            return Response(content="Loop Detected", status_code=508, media_type="text/plain")
        except FetchError as e:
            logger.error(f"Pass-through failed for {incoming.url}: {e}")
            return Response(content="Bad Gateway", status_code=502, media_type="text/plain")
        return _to_starlette(upstream)

    return app
