"""
Unit tests for request models.
"""

from llm_bot_proxy.proxy.models import IncomingRequest


class TestIncomingRequest:
    """Tests for IncomingRequest derived properties."""

    def test_origin(self):
        request = IncomingRequest.build("get", "https://www.example.com/a?b=1")
        assert request.method == "GET"
        assert request.origin == "https://www.example.com"

    def test_origin_with_port(self):
        request = IncomingRequest.build("GET", "http://localhost:8080/")
        assert request.origin == "http://localhost:8080"

    def test_origin_ipv6(self):
        request = IncomingRequest.build("GET", "http://[::1]:8080/")
        assert request.origin == "http://[::1]:8080"

    def test_user_agent(self):
        request = IncomingRequest.build("GET", "https://x.example/", [("User-Agent", "GPTBot/1.0")])
        assert request.user_agent == "GPTBot/1.0"
        assert IncomingRequest.build("GET", "https://x.example/").user_agent == ""

    def test_user_agent_override(self):
        request = IncomingRequest.build("GET", "https://x.example/?user-agent=chatgpt")
        assert request.user_agent_override == "chatgpt"
        assert IncomingRequest.build("GET", "https://x.example/").user_agent_override is None

    def test_loop_marker(self):
        marked = IncomingRequest.build(
            "GET", "https://x.example/", [("x-internal-fetch", "true")]
        )
        assert marked.has_loop_marker is True
        assert IncomingRequest.build("GET", "https://x.example/").has_loop_marker is False

    def test_visited_proxy(self):
        seen = IncomingRequest.build(
            "GET", "https://x.example/", [("via", "1.1 cdn-edge, 1.1 llm-bot-proxy")]
        )
        assert seen.has_visited_proxy is True

    def test_not_visited_proxy(self):
        other = IncomingRequest.build("GET", "https://x.example/", [("via", "1.1 cdn-edge")])
        assert other.has_visited_proxy is False
        assert IncomingRequest.build("GET", "https://x.example/").has_visited_proxy is False

    def test_visited_proxy_across_repeated_headers(self):
        seen = IncomingRequest.build(
            "GET",
            "https://x.example/",
            [("via", "1.1 cdn-edge"), ("via", "1.1 llm-bot-proxy")],
        )
        assert seen.has_visited_proxy is True
