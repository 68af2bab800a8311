"""
Request-scoped data passed between the HTTP surface and the proxy core.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from ..config.constants import (
    LOOP_PREVENTION_HEADER,
    LOOP_PREVENTION_VALUE,
    USER_AGENT_OVERRIDE_PARAM,
    VIA_PSEUDONYM,
)


@dataclass(frozen=True)
class ClientContext:
    """Client details supplied by the hosting platform (CDN / edge)."""

    ip: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class IncomingRequest:
    """
    An inbound request as received.

    The body is read once up front so the request can be re-issued
    more than once (AI path, then fallback).
    """

    method: str
    url: httpx.URL
    headers: httpx.Headers
    body: bytes = b""

    @classmethod
    def build(
        cls,
        method: str,
        url: str,
        headers: Optional[list[tuple[str, str]]] = None,
        body: bytes = b"",
    ) -> "IncomingRequest":
        """Convenience constructor from plain values."""
        return cls(
            method=method.upper(),
            url=httpx.URL(url),
            headers=httpx.Headers(headers or []),
            body=body,
        )

    @property
    def origin(self) -> str:
        """scheme://host[:port] of the visited URL."""
        host = f"[{self.url.host}]" if ":" in self.url.host else self.url.host
        port = f":{self.url.port}" if self.url.port else ""
        return f"{self.url.scheme}://{host}{port}"

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def user_agent_override(self) -> Optional[str]:
        return self.url.params.get(USER_AGENT_OVERRIDE_PARAM)

    @property
    def has_loop_marker(self) -> bool:
        """True when this request was issued by the proxy itself."""
        return self.headers.get(LOOP_PREVENTION_HEADER) == LOOP_PREVENTION_VALUE

    @property
    def has_visited_proxy(self) -> bool:
        """True when a Via entry shows the request already passed through us."""
        for entry in self.headers.get_list("via", split_commas=True):
            parts = entry.split()
            if len(parts) >= 2 and parts[1] == VIA_PSEUDONYM:
                return True
        return False
