"""
Unit tests for telemetry event building and emission.
"""

import asyncio
import json
import logging
import uuid

import httpx

from conftest import CHATGPT_UA, ORG_ID, SITE, TELEMETRY, make_request, run
from llm_bot_proxy.monitoring.telemetry import (
    TelemetryEmitter,
    TelemetryEvent,
    build_telemetry_event,
    resolve_client_ip,
)
from llm_bot_proxy.proxy.models import ClientContext
from llm_bot_proxy.utils.bot_classifier import BotCategory


class TestBuildTelemetryEvent:
    """Tests for build_telemetry_event."""

    def test_fields(self):
        request = make_request("/pricing?plan=pro", CHATGPT_UA)
        event = build_telemetry_event(
            request, BotCategory.CHATGPT_USER, ORG_ID, ClientContext("1.2.3.4", "NL")
        )

        assert event.url == f"{SITE}/pricing?plan=pro"
        assert event.bot_type == "ChatGPT-User"
        assert event.client_ip == "1.2.3.4"
        assert event.country == "NL"
        assert event.organization_id == ORG_ID
        assert event.event_type == "chatgpt_user_agent"
        assert event.campaign_id == "00000000-0000-0000-0000-000000000000"
        uuid.UUID(event.user_id)

    def test_user_id_unique_per_event(self):
        request = make_request()
        a = build_telemetry_event(request, BotCategory.GPTBOT, ORG_ID)
        b = build_telemetry_event(request, BotCategory.GPTBOT, ORG_ID)
        assert a.user_id != b.user_id

    def test_unknown_defaults(self):
        event = build_telemetry_event(make_request(), BotCategory.CLAUDE_BOT, ORG_ID)
        assert event.client_ip == "unknown"
        assert event.country == "unknown"

    def test_payload_shape(self):
        event = TelemetryEvent(
            url="https://x.example/a",
            bot_type="GPTBot",
            client_ip="9.9.9.9",
            country="US",
            organization_id="o",
            user_id="u-1",
        )
        assert event.to_payload() == {
            "data": {
                "launcher": "proxy",
                "url": "https://x.example/a",
                "bot_type": "GPTBot",
                "client_ip": "9.9.9.9",
                "country": "US",
            },
            "event_type": "chatgpt_user_agent",
            "url": "https://x.example/a",
            "user_id": "u-1",
            "campaign_id": "00000000-0000-0000-0000-000000000000",
            "organization_id": "o",
        }


class TestResolveClientIp:
    """Tests for resolve_client_ip precedence."""

    def test_context_ip_first(self):
        request = make_request(headers=[("x-forwarded-for", "5.5.5.5")])
        assert resolve_client_ip(request, ClientContext(ip="1.1.1.1")) == "1.1.1.1"

    def test_forwarded_for_second(self):
        request = make_request(headers=[("x-forwarded-for", "5.5.5.5, 10.0.0.1")])
        assert resolve_client_ip(request, ClientContext()) == "5.5.5.5, 10.0.0.1"

    def test_unknown_last(self):
        assert resolve_client_ip(make_request(), None) == "unknown"


def _event() -> TelemetryEvent:
    return build_telemetry_event(make_request(), BotCategory.PERPLEXITY_BOT, ORG_ID)


class TestTelemetryEmitter:
    """Tests for TelemetryEmitter delivery behavior."""

    def test_posts_json_with_fixed_headers(self, upstream):
        upstream.add(TELEMETRY, httpx.Response(200))
        event = _event()

        async def scenario():
            async with httpx.AsyncClient(transport=upstream.transport()) as client:
                emitter = TelemetryEmitter(client, TELEMETRY)
                emitter.emit(event)
                await emitter.drain()

        run(scenario())

        [sent] = upstream.requests_to(TELEMETRY)
        assert sent.method == "POST"
        assert sent.headers["content-type"] == "application/json"
        assert sent.headers["user-agent"] == "PostmanRuntime/7.32.2"
        assert json.loads(sent.content) == event.to_payload()

    def test_emit_does_not_wait(self, caplog):
        """emit() returns before the send completes."""

        async def scenario():
            gate = asyncio.Event()

            async def slow_send(request):
                await gate.wait()
                return httpx.Response(200)

            transport = httpx.MockTransport(slow_send)
            async with httpx.AsyncClient(transport=transport) as client:
                emitter = TelemetryEmitter(client, TELEMETRY)
                task = emitter.emit(_event())
                assert not task.done()
                assert emitter.pending_count == 1
                gate.set()
                await emitter.drain()
                assert emitter.pending_count == 0

        with caplog.at_level(logging.INFO):
            run(scenario())

        assert "Draining 1 pending telemetry event(s)" in caplog.text

    def test_transport_failure_logged_and_swallowed(self, upstream, caplog):
        upstream.fail(TELEMETRY)

        async def scenario():
            async with httpx.AsyncClient(transport=upstream.transport()) as client:
                emitter = TelemetryEmitter(client, TELEMETRY)
                task = emitter.emit(_event())
                await task
                return task

        with caplog.at_level(logging.WARNING):
            task = run(scenario())

        assert task.exception() is None
        assert "Failed to POST telemetry event" in caplog.text
        assert len(upstream.requests_to(TELEMETRY)) == 1

    def test_rejected_event_logged(self, upstream, caplog):
        upstream.add(TELEMETRY, httpx.Response(500))

        async def scenario():
            async with httpx.AsyncClient(transport=upstream.transport()) as client:
                emitter = TelemetryEmitter(client, TELEMETRY)
                await emitter.emit(_event())

        with caplog.at_level(logging.WARNING):
            run(scenario())

        assert "HTTP 500" in caplog.text
        assert len(upstream.requests_to(TELEMETRY)) == 1

    def test_disabled_sends_nothing(self, upstream):
        async def scenario():
            async with httpx.AsyncClient(transport=upstream.transport()) as client:
                emitter = TelemetryEmitter(client, TELEMETRY, enabled=False)
                assert emitter.emit(_event()) is None
                await emitter.drain()

        run(scenario())
        assert upstream.requests == []

    def test_drain_cancels_stragglers(self):
        async def scenario():
            async def never(request):
                await asyncio.sleep(3600)
                return httpx.Response(200)

            async with httpx.AsyncClient(transport=httpx.MockTransport(never)) as client:
                emitter = TelemetryEmitter(client, TELEMETRY)
                task = emitter.emit(_event())
                await emitter.drain(timeout=0.05)
                await asyncio.gather(task, return_exceptions=True)
                return task

        task = run(scenario())
        assert task.cancelled()
