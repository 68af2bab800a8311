"""
Response header finalization for rewritten responses.
"""

import httpx

from ..config.constants import AI_VARIANT_CACHE_CONTROL, AI_VARIANT_PRAGMA


def _append_vary(existing: list[str], field_name: str) -> str:
    """Add field_name to Vary tokens unless already listed (case-insensitive)."""
    tokens = [token for token in existing if token]
    if field_name.lower() not in (token.lower() for token in tokens):
        tokens.append(field_name)
    return ", ".join(tokens)


def _body_stream(response: httpx.Response) -> httpx.SyncByteStream | httpx.AsyncByteStream:
    try:
        return httpx.ByteStream(response.content)
    except httpx.ResponseNotRead:
        return response.stream


def finalize_response(
    response: httpx.Response,
    vary_on_user_agent: bool = False,
    ai_variant: bool = False,
) -> httpx.Response:
    """
    Rebuild a response with headers fit for a rewritten body.

    Content-Length is always dropped since the body changed; the server
    computes the framing. The AI variant must never be stored by shared
    caches under a URL also served to ordinary visitors.

    Args:
        response: Response whose status and body are kept
        vary_on_user_agent: Append "User-Agent" to Vary, keeping prior values
        ai_variant: Force Cache-Control/Pragma to non-cacheable directives

    Returns:
        A new httpx.Response
    """
    headers = httpx.Headers(response.headers)
    if "content-length" in headers:
        del headers["content-length"]

    if vary_on_user_agent:
        headers["Vary"] = _append_vary(
            headers.get_list("vary", split_commas=True), "User-Agent"
        )

    if ai_variant:
        headers["Cache-Control"] = AI_VARIANT_CACHE_CONTROL
        headers["Pragma"] = AI_VARIANT_PRAGMA

    # stream= keeps httpx from re-adding a Content-Length default
    return httpx.Response(
        status_code=response.status_code,
        headers=headers,
        stream=_body_stream(response),
        extensions=response.extensions,
    )
