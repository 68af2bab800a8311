"""
Shared fixtures for proxy tests.

Provides:
- MockUpstream: an httpx.MockTransport-backed fake of every remote the proxy
  talks to (primary origin, secondary store, telemetry endpoint)
- Settings and request factories
"""

import asyncio
from typing import Callable, Optional, Union

import httpx
import pytest

from llm_bot_proxy.config.settings import Settings
from llm_bot_proxy.proxy.models import IncomingRequest

ORG_ID = "org-123"
SITE = "https://www.example.com"
ALT = f"https://salespeak-public-serving.s3.amazonaws.com/{ORG_ID}"
TELEMETRY = "https://telemetry.example.net/prod/event_stream"

CHATGPT_UA = "Mozilla/5.0 AppleWebKit/537.36 (KHTML, like Gecko); compatible; ChatGPT-User/1.0; +https://openai.com/bot"
BROWSER_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"

ORIGIN_HTML = "<html><body><p>X</p></body></html>"
ALT_HTML = '<html><body><nav>menu</nav><section id="optimized-for-ai">ABC</section></body></html>'

Route = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class MockUpstream:
    """
    Routes requests by URL (without query) to canned responses.

    Unrouted URLs answer 404. Every request is recorded, including the
    ones that raise.
    """

    def __init__(self):
        self.routes: dict[str, Route] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, route: Route) -> None:
        self.routes[url] = route

    def html(self, url: str, body: str, status: int = 200, **headers: str) -> None:
        merged = {"Content-Type": "text/html; charset=utf-8"}
        merged.update({k.replace("_", "-"): v for k, v in headers.items()})
        self.add(url, httpx.Response(status, headers=merged, text=body))

    def redirect(self, url: str, location: str, status: int = 302) -> None:
        self.add(url, httpx.Response(status, headers={"Location": location}))

    def fail(self, url: str, error: Optional[Exception] = None) -> None:
        self.add(url, error or httpx.ConnectError("connection refused"))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = str(request.url.copy_with(query=None))
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        # Fresh copy so one route can be served repeatedly
        return httpx.Response(
            route.status_code, headers=route.headers, content=route.content
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(prefix)]


@pytest.fixture
def upstream() -> MockUpstream:
    return MockUpstream()


@pytest.fixture
def settings() -> Settings:
    return Settings(organization_id=ORG_ID, origin_url=SITE, telemetry_endpoint=TELEMETRY)


def make_request(
    path: str = "/page",
    user_agent: str = BROWSER_UA,
    method: str = "GET",
    headers: Optional[list[tuple[str, str]]] = None,
    body: bytes = b"",
) -> IncomingRequest:
    """Build an inbound request for the example site."""
    all_headers = [("host", "www.example.com"), ("user-agent", user_agent)]
    all_headers.extend(headers or [])
    return IncomingRequest.build(method, SITE + path, all_headers, body)


def run(coro):
    """Run a coroutine to completion in a fresh event loop."""
    return asyncio.run(coro)
